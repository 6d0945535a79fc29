from unittest import mock

import pytest

from maxtime.config import WalkOptions
from maxtime.errors import TraversalError
from maxtime.ignore import IgnoreMatcher, read_rules


def _matcher_for(root, options=WalkOptions()):
    return IgnoreMatcher.for_root(str(root), options).child(str(root))


def _ignored(matcher, root, rel, is_dir=False):
    return matcher.is_ignored(str(root / rel), is_dir)


@pytest.mark.parametrize("in_repo", (False, True))
@pytest.mark.parametrize("require_git", (False, True))
def test_gitignore_needs_repo(make_tree, in_repo, require_git):
    entries = {".gitignore": ("*.log\n", 1)}
    if in_repo:
        entries[".git/"] = 1
    root = make_tree(entries)

    matcher = _matcher_for(root, WalkOptions(require_git=require_git))

    assert _ignored(matcher, root, "a.log") is (in_repo or not require_git)
    assert not _ignored(matcher, root, "a.txt")


def test_dot_ignore_applies_outside_repo(make_tree):
    root = make_tree({".ignore": ("*.log\n", 1)})
    matcher = _matcher_for(root)

    assert _ignored(matcher, root, "a.log")
    assert not _ignored(matcher, root, "a.txt")


def test_negation_last_match_wins(make_tree):
    root = make_tree({
        ".git/": 1,
        ".gitignore": ("*.log\n!keep.log\n", 1),
    })
    matcher = _matcher_for(root)

    assert _ignored(matcher, root, "drop.log")
    assert not _ignored(matcher, root, "keep.log")


def test_deeper_gitignore_overrides(make_tree):
    root = make_tree({
        ".git/": 1,
        ".gitignore": ("*.tmp\n", 1),
        "sub/.gitignore": ("!*.tmp\n", 1),
    })
    matcher = _matcher_for(root)
    sub_matcher = matcher.child(str(root / "sub"))

    assert _ignored(matcher, root, "x.tmp")
    assert not _ignored(sub_matcher, root, "sub/x.tmp")


def test_patterns_relative_to_their_file(make_tree):
    root = make_tree({
        ".git/": 1,
        "sub/.gitignore": ("/only-here\n", 1),
    })
    matcher = _matcher_for(root)
    sub_matcher = matcher.child(str(root / "sub"))

    assert _ignored(sub_matcher, root, "sub/only-here")
    assert not _ignored(sub_matcher, root, "sub/deeper/only-here")


def test_directory_only_pattern(make_tree):
    root = make_tree({".ignore": ("build/\n", 1)})
    matcher = _matcher_for(root)

    assert _ignored(matcher, root, "build", is_dir=True)
    assert not _ignored(matcher, root, "build", is_dir=False)


def test_trailing_double_star_spares_directory(make_tree):
    root = make_tree({".ignore": ("foo/**\n", 1)})
    matcher = _matcher_for(root)
    foo_matcher = matcher.child(str(root / "foo"))

    assert not _ignored(matcher, root, "foo", is_dir=True)
    assert _ignored(foo_matcher, root, "foo/inner")
    assert _ignored(foo_matcher, root, "foo/deeper", is_dir=True)


def test_paths_matched_as_themselves(make_tree):
    root = make_tree({".ignore": ("*\n!*/\n!*.c\n", 1)})
    matcher = _matcher_for(root)
    src_matcher = matcher.child(str(root / "src"))

    assert not _ignored(matcher, root, "src", is_dir=True)
    assert _ignored(src_matcher, root, "src/readme")
    assert not _ignored(src_matcher, root, "src/main.c")


def test_pattern_doesnt_match_descendant_only(make_tree):
    root = make_tree({".ignore": ("docs/build\n", 1)})
    matcher = _matcher_for(root)

    assert _ignored(matcher, root, "docs/build", is_dir=True)
    assert not _ignored(matcher, root, "docs/build/index")
    assert not _ignored(matcher, root, "docs", is_dir=True)


@pytest.mark.parametrize("line", ("/", "!/", "# comment", "   "))
def test_inert_lines(make_tree, line):
    root = make_tree({".ignore": (f"{line}\n", 1)})

    assert read_rules(str(root), str(root / ".ignore")) is None


def test_dot_ignore_beats_gitignore(make_tree):
    root = make_tree({
        ".git/": 1,
        ".gitignore": ("a.txt\n", 1),
        ".ignore": ("!a.txt\n", 1),
    })
    matcher = _matcher_for(root)

    assert not _ignored(matcher, root, "a.txt")


def test_git_info_exclude(make_tree):
    root = make_tree({".git/info/exclude": ("secret\n", 1)})
    matcher = _matcher_for(root)

    assert _ignored(matcher, root, "secret")
    assert _ignored(matcher, root, "sub/secret")

    matcher = _matcher_for(root, WalkOptions(git_exclude=False))
    assert not _ignored(matcher, root, "secret")


@pytest.mark.parametrize("hidden", (False, True))
def test_hidden(make_tree, hidden):
    root = make_tree({
        ".ignore": ("!.keep\n", 1),
    })
    matcher = _matcher_for(root, WalkOptions(hidden=hidden))

    assert _ignored(matcher, root, ".hidden") is hidden
    assert _ignored(matcher, root, ".hiddendir", is_dir=True) is hidden
    # whitelisting beats hidden-ness
    assert not _ignored(matcher, root, ".keep")


@pytest.mark.parametrize("parents", (False, True))
def test_parent_ignore_files(make_tree, parents):
    outer = make_tree({
        ".git/": 1,
        ".gitignore": ("*.log\n", 1),
        "inner/.gitignore": ("*.tmp\n", 1),
    }, name="outer")
    inner = outer / "inner"

    matcher = _matcher_for(inner, WalkOptions(parents=parents))

    assert matcher.in_git_repo
    assert _ignored(matcher, inner, "a.log") is parents
    # inner's own rules count as a git repo was found above it
    assert _ignored(matcher, inner, "a.tmp")


def test_no_rules_shares_parent(make_tree):
    root = make_tree({".ignore": ("*.log\n", 1), "plain/": 1})
    matcher = _matcher_for(root)

    assert matcher.child(str(root / "plain")) is matcher


def test_ignore_disabled(make_tree):
    root = make_tree({
        ".git/": 1,
        ".gitignore": ("*.log\n", 1),
        ".ignore": ("*.tmp\n", 1),
    })
    matcher = _matcher_for(
        root,
        WalkOptions(ignore=False, git_ignore=False, git_exclude=False),
    )

    assert not _ignored(matcher, root, "a.log")
    assert not _ignored(matcher, root, "a.tmp")


def test_read_rules_unreadable(make_tree):
    root = make_tree({".gitignore": ("*.log\n", 1)})

    with mock.patch(
        "maxtime.ignore.open",
        side_effect=PermissionError(13, "Permission denied"),
        create=True,
    ):
        with pytest.raises(TraversalError, match="Permission denied"):
            read_rules(str(root), str(root / ".gitignore"))


def test_read_rules_empty_or_missing(make_tree):
    root = make_tree({".gitignore": ("# just a comment\n\n", 1)})

    assert read_rules(str(root), str(root / ".gitignore")) is None
    assert read_rules(str(root), str(root / "missing")) is None

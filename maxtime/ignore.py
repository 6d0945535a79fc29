from dataclasses import dataclass
import enum
import logging
from os import sep as path_sep
from os.path import (
    abspath,
    basename,
    dirname,
    join as path_join,
    lexists,
    relpath,
)
from typing import Optional

from pathspec import GitIgnoreSpec
from pathspec.pattern import Pattern

from maxtime.config import WalkOptions
from maxtime.errors import TraversalError


logger = logging.getLogger(__name__)


class RuleKind(enum.Enum):
    # declaration order is precedence order
    IGNORE = enum.auto()
    GIT_IGNORE = enum.auto()
    GIT_EXCLUDE = enum.auto()


@dataclass(frozen=True, slots=True)
class Rule:
    pattern: Pattern
    dir_only: bool

    def matches(self, rel:str, is_dir:bool) -> bool:
        if self.dir_only and not is_dir:
            return False
        result = self.pattern.match_file(rel)
        if result is None:
            return False
        # a hit through the directory marker group means only something
        # below rel matched, and the walker never gets that far into an
        # ignored directory
        match = getattr(result, "match", None)
        return match is None or match.groupdict().get("ps_d") is None


@dataclass(frozen=True, slots=True)
class IgnoreRules:
    base: str
    source: str
    rules: tuple[Rule, ...]

    def matched(self, path:str, is_dir:bool) -> Optional[bool]:
        """
        True if the last matching pattern ignores path, False if it
        whitelists it, None if nothing in this file has an opinion.
        """
        rel = relpath(path, self.base)
        if path_sep != "/":
            rel = rel.replace(path_sep, "/")

        for rule in reversed(self.rules):
            if rule.matches(rel, is_dir):
                return rule.pattern.include
        return None


def _parse_line(line:str) -> Optional[Rule]:
    if not line.endswith("\\ "):
        line = line.rstrip()
    if not line or line.startswith("#"):
        return None

    dir_only = line.endswith("/")
    if dir_only:
        line = line[:-1]
        if line in ("", "!"):
            return None
    if line.endswith("/**"):
        # "foo/**" covers what is inside foo, not foo itself
        line += "/*"

    (pattern,) = GitIgnoreSpec.from_lines((line,)).patterns
    if pattern.include is None:
        return None
    return Rule(pattern, dir_only)


def _parse_lines(source:str, lines:list[str]) -> tuple[Rule, ...]:
    rules = []
    for lineno, line in enumerate(lines, 1):
        try:
            rule = _parse_line(line)
        except ValueError:
            # git silently drops lines it can't make sense of, so do the
            # same rather than throwing the whole file away
            logger.warning(
                "ignoring invalid pattern %(line)r at %(source)s:%(lineno)s",
                {"line": line, "source": source, "lineno": lineno},
            )
            continue
        if rule is not None:
            rules.append(rule)
    return tuple(rules)


def read_rules(base:str, source:str) -> Optional[IgnoreRules]:
    try:
        with open(source, "r", encoding="utf-8", errors="replace") as f:
            lines = f.read().splitlines()
    except (FileNotFoundError, NotADirectoryError, IsADirectoryError):
        return None
    except OSError as e:
        raise TraversalError(source, e.strerror or str(e)) from e

    rules = _parse_lines(source, lines)
    if not rules:
        return None

    logger.debug("loaded ignore rules from %s", source)
    return IgnoreRules(base, source, rules)


def _ancestors(path:str) -> list[str]:
    # outermost first, not including path itself
    ancestors = []
    parent = dirname(path)
    while parent != path:
        ancestors.append(parent)
        path, parent = parent, dirname(parent)
    ancestors.reverse()
    return ancestors


class IgnoreMatcher:
    """
    Immutable chain of per-directory ignore rules. Each directory level
    only links to its parent, so siblings being walked by different threads
    share their common ancestry without any locking.
    """
    __slots__ = ("parent", "in_git_repo", "_options", "_rules")

    def __init__(
        self,
        options:WalkOptions,
        parent:Optional["IgnoreMatcher"]=None,
        in_git_repo:bool=False,
        rules:Optional[dict[RuleKind, IgnoreRules]]=None,
    ):
        self.parent = parent
        self.in_git_repo = in_git_repo
        self._options = options
        self._rules = rules or {}

    @classmethod
    def for_root(cls, root:str, options:WalkOptions) -> "IgnoreMatcher":
        """
        Matcher holding the rules that apply to root's own directory
        listing from *above* root. Root's own ignore files are picked
        up when the walker descends into it.
        """
        ancestors = _ancestors(abspath(root))
        if options.parents:
            matcher = cls(options)
            for ancestor in ancestors:
                matcher = matcher.child(ancestor)
            return matcher

        # even without reading them, we need to know whether we're
        # inside a repository for root's own .gitignore to count
        return cls(
            options,
            in_git_repo=any(lexists(path_join(a, ".git")) for a in ancestors),
        )

    def child(self, dir_path:str) -> "IgnoreMatcher":
        options = self._options
        is_repo_root = lexists(path_join(dir_path, ".git"))
        in_git_repo = self.in_git_repo or is_repo_root
        apply_git = in_git_repo or not options.require_git

        rules = {}
        if options.ignore:
            rules[RuleKind.IGNORE] = read_rules(dir_path, path_join(dir_path, ".ignore"))
        if options.git_ignore and apply_git:
            rules[RuleKind.GIT_IGNORE] = read_rules(
                dir_path,
                path_join(dir_path, ".gitignore"),
            )
        if options.git_exclude and is_repo_root:
            rules[RuleKind.GIT_EXCLUDE] = read_rules(
                dir_path,
                path_join(dir_path, ".git", "info", "exclude"),
            )
        rules = {k: v for k, v in rules.items() if v is not None}

        if not rules and in_git_repo == self.in_git_repo:
            # nothing new at this level
            return self

        return type(self)(options, self, in_git_repo, rules)

    def matched(self, path:str, is_dir:bool) -> Optional[bool]:
        for kind in RuleKind:
            level = self
            while level is not None:
                rules = level._rules.get(kind)
                if rules is not None:
                    m = rules.matched(path, is_dir)
                    if m is not None:
                        return m
                level = level.parent
        return None

    def is_ignored(self, path:str, is_dir:bool) -> bool:
        m = self.matched(path, is_dir)
        if m is not None:
            # an explicit whitelist beats the hidden check
            return m
        return self._options.hidden and basename(path).startswith(".")

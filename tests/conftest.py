from dataclasses import dataclass
import os
from pathlib import Path

import pytest


SECOND = 10**9
DEFAULT_MTIME = 1_000_000_000 * SECOND


@dataclass(frozen=True)
class Symlink:
    target: str


def set_mtime(path, ns:int):
    os.utime(path, ns=(ns, ns))


def build_tree(root:Path, entries:dict, default_mtime:int=DEFAULT_MTIME):
    """
    entries maps paths relative to root onto an mtime, a (contents, mtime)
    tuple or a Symlink. Paths ending in "/" are directories. Any directory
    not given explicitly gets default_mtime. Directory mtimes
    are applied last, deepest first, so creating their contents doesn't
    disturb them.
    """
    root.mkdir(parents=True, exist_ok=True)
    dir_mtimes = {root: default_mtime}

    for rel, spec in entries.items():
        path = root / rel.rstrip("/")

        parent = path.parent
        parent.mkdir(parents=True, exist_ok=True)
        while parent != root and parent not in dir_mtimes:
            dir_mtimes[parent] = default_mtime
            parent = parent.parent

        if isinstance(spec, Symlink):
            os.symlink(spec.target, path)
        elif rel.endswith("/"):
            path.mkdir(exist_ok=True)
            dir_mtimes[path] = spec
        else:
            contents, mtime = spec if isinstance(spec, tuple) else ("", spec)
            path.write_text(contents)
            set_mtime(path, mtime)

    for d in sorted(dir_mtimes, key=lambda p: len(p.parts), reverse=True):
        set_mtime(d, dir_mtimes[d])

    return root


@pytest.fixture
def make_tree(tmp_path):
    def _make_tree(entries, default_mtime=DEFAULT_MTIME, name="root"):
        return build_tree(tmp_path / name, entries, default_mtime)
    return _make_tree

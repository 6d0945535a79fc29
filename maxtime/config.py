from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True, slots=True)
class WalkOptions:
    # skip entries whose name starts with "."
    hidden: bool = True
    # honour .ignore files
    ignore: bool = True
    # honour .gitignore files
    git_ignore: bool = True
    # honour .git/info/exclude
    git_exclude: bool = True
    # read ignore files of the root's ancestors too
    parents: bool = True
    # only apply git rules inside a git repository
    require_git: bool = True
    follow_links: bool = False
    max_depth: Optional[int] = None

    def __post_init__(self):
        if self.max_depth is not None and self.max_depth < 0:
            raise ValueError("Negative values for max_depth make no sense")


@dataclass(frozen=True, slots=True)
class Config:
    path: str = "."
    stamp: Optional[str] = None
    quiet: bool = False
    threads: Optional[int] = None
    walk_options: WalkOptions = field(default_factory=WalkOptions)

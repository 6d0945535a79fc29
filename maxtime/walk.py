from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
import enum
import logging
from os import cpu_count, scandir, stat
from os.path import isdir
from threading import Condition, Event
from typing import Optional

from maxtime.config import WalkOptions
from maxtime.errors import TraversalError
from maxtime.ignore import IgnoreMatcher
from maxtime.naive_executor import NaiveExecutor


logger = logging.getLogger(__name__)


MAX_DEFAULT_THREADS = 12


def default_threads() -> int:
    return min(MAX_DEFAULT_THREADS, cpu_count() or 1)


class WalkState(enum.Enum):
    CONTINUE = enum.auto()
    # don't descend into this directory
    SKIP = enum.auto()
    # stop handing out entries to anyone
    QUIT = enum.auto()


@dataclass(frozen=True, slots=True)
class WalkEntry:
    path: str
    depth: int
    is_dir: bool


@dataclass(slots=True)
class _Job:
    entry: WalkEntry
    # rules applying to entry's siblings, None for the root
    matcher: Optional[IgnoreMatcher]
    # (st_dev, st_ino) of the directories above entry, only tracked
    # when following links
    ancestors: tuple[tuple[int,int], ...] = ()


class ParallelWalker:
    """
    Walks the tree below root on a pool of worker threads, pushing every
    entry that survives the ignore rules to exactly one visitor.

    Each worker gets its own visitor from visitor_builder.build(). A visitor
    must be a context manager with methods

        visit(entry:WalkEntry) -> WalkState
        visit_error(error:TraversalError) -> WalkState

    and is only ever used from the worker thread it was built for. A
    worker exits its visitor's context when it retires, whether that's
    because the tree is exhausted or because someone asked to quit.
    """
    def __init__(
        self,
        root:str,
        options:WalkOptions=WalkOptions(),
        threads:Optional[int]=None,
    ):
        if (threads or 0) < 0:
            raise ValueError("Negative values for threads argument make no sense")

        self.root = root
        self.options = options
        self.threads = default_threads() if threads is None else threads
        self.dispatched = 0

        self._stack = []
        # jobs pushed but not yet finished, including ones in _stack
        self._pending = 0
        self._cond = Condition()
        self._quit = Event()

    def quit(self):
        self._quit.set()
        with self._cond:
            self._cond.notify_all()

    @property
    def quitting(self) -> bool:
        return self._quit.is_set()

    def run(self, visitor_builder):
        self._push_all((
            _Job(
                WalkEntry(self.root, 0, isdir(self.root)),
                None,
            ),
        ))

        if self.threads == 0:
            executor = NaiveExecutor()
            n_workers = 1
        else:
            executor = ThreadPoolExecutor(
                max_workers=self.threads,
                thread_name_prefix="maxtime-walk",
            )
            n_workers = self.threads

        logger.debug("starting %s walk worker(s) at %s", n_workers, self.root)
        with executor:
            # iterating the results re-raises anything a worker raised
            for _ in executor.map(
                self._work,
                [visitor_builder.build() for _ in range(n_workers)],
            ):
                pass

    def _work(self, visitor):
        with visitor:
            try:
                while True:
                    job = self._pop()
                    if job is None:
                        return

                    try:
                        state = self._process(job, visitor)
                    finally:
                        self._done()

                    if state is WalkState.QUIT:
                        logger.debug("worker requested quit")
                        self.quit()
                        return
            except Exception:
                # don't leave the other workers waiting on us forever
                self.quit()
                raise

    def _pop(self) -> Optional[_Job]:
        with self._cond:
            while not self._stack and self._pending and not self._quit.is_set():
                self._cond.wait()

            if self._quit.is_set() or not self._stack:
                return None

            self.dispatched += 1
            return self._stack.pop()

    def _push_all(self, jobs):
        jobs = list(jobs)
        if not jobs:
            return

        with self._cond:
            self._stack.extend(jobs)
            self._pending += len(jobs)
            self._cond.notify(len(jobs))

    def _done(self):
        with self._cond:
            self._pending -= 1
            if not self._pending:
                self._cond.notify_all()

    def _process(self, job:_Job, visitor) -> WalkState:
        entry = job.entry
        state = visitor.visit(entry)
        if state is not WalkState.CONTINUE or not entry.is_dir:
            return state

        max_depth = self.options.max_depth
        if max_depth is not None and entry.depth >= max_depth:
            return WalkState.CONTINUE

        try:
            matcher = job.matcher
            if matcher is None:
                matcher = IgnoreMatcher.for_root(self.root, self.options)
            matcher = matcher.child(entry.path)
            ancestors = self._ancestry(job)
            children = self._list(entry, matcher, ancestors)
        except TraversalError as e:
            return visitor.visit_error(e)

        self._push_all(children)
        return WalkState.CONTINUE

    def _ancestry(self, job:_Job) -> tuple[tuple[int,int], ...]:
        if not self.options.follow_links:
            return ()

        path = job.entry.path
        try:
            s = stat(path)
        except OSError as e:
            raise TraversalError(path, e.strerror or str(e)) from e

        key = (s.st_dev, s.st_ino)
        if key in job.ancestors:
            raise TraversalError(path, "filesystem loop found")
        return job.ancestors + (key,)

    def _list(
        self,
        entry:WalkEntry,
        matcher:IgnoreMatcher,
        ancestors:tuple[tuple[int,int], ...],
    ) -> list[_Job]:
        follow_links = self.options.follow_links
        depth = entry.depth + 1
        jobs = []
        try:
            with scandir(entry.path) as it:
                for direntry in it:
                    if self._quit.is_set():
                        return []

                    is_dir = direntry.is_dir(follow_symlinks=follow_links)
                    if matcher.is_ignored(direntry.path, is_dir):
                        continue

                    jobs.append(_Job(
                        WalkEntry(direntry.path, depth, is_dir),
                        matcher,
                        ancestors,
                    ))
        except OSError as e:
            raise TraversalError(entry.path, e.strerror or str(e)) from e

        return jobs

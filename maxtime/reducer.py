import logging
from threading import Lock
from typing import Callable, Optional

from maxtime.errors import MaxtimeError
from maxtime.fs import EPOCH, mtime_ns
from maxtime.walk import WalkEntry, WalkState


logger = logging.getLogger(__name__)


class SharedMax:
    """
    Maximum over everything folded into it so far. Only touched once per
    worker, so a plain lock is plenty.
    """
    def __init__(self, value:int=EPOCH):
        self._lock = Lock()
        self._value = value

    def fold(self, value:int) -> int:
        with self._lock:
            if value > self._value:
                self._value = value
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


class ErrorSignal:
    """
    Holds the first error reported by any worker. Later errors are dropped.
    """
    def __init__(self):
        self._lock = Lock()
        self._error:Optional[MaxtimeError] = None

    def set(self, error:MaxtimeError) -> bool:
        with self._lock:
            if self._error is not None:
                return False
            self._error = error
            return True

    @property
    def error(self) -> Optional[MaxtimeError]:
        with self._lock:
            return self._error

    def is_set(self) -> bool:
        return self.error is not None


class MtimeVisitor:
    def __init__(
        self,
        shared_max:SharedMax,
        error_signal:ErrorSignal,
        extract:Callable[[str], int]=mtime_ns,
    ):
        # max mtime seen by this worker alone. never shared, so no locking
        self.thread_max = EPOCH
        self.shared_max = shared_max
        self.error_signal = error_signal
        self._extract = extract
        self._retired = False

    def visit(self, entry:WalkEntry) -> WalkState:
        try:
            mtime = self._extract(entry.path)
        except MaxtimeError as e:
            return self._fail(e)

        if mtime > self.thread_max:
            self.thread_max = mtime
        return WalkState.CONTINUE

    def visit_error(self, error:MaxtimeError) -> WalkState:
        return self._fail(error)

    def _fail(self, error:MaxtimeError) -> WalkState:
        if self.error_signal.set(error):
            logger.debug("recorded error: %s", error)
        else:
            logger.debug("discarding error after first: %s", error)
        return WalkState.QUIT

    def retire(self):
        if self._retired:
            return
        self._retired = True
        # partial progress still gets folded if we were cancelled - whether
        # the result is usable is decided by whoever reads error_signal
        self.shared_max.fold(self.thread_max)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.retire()


class MtimeVisitorBuilder:
    def __init__(self, extract:Callable[[str], int]=mtime_ns):
        self.shared_max = SharedMax()
        self.error_signal = ErrorSignal()
        self._extract = extract

    def build(self) -> MtimeVisitor:
        return MtimeVisitor(self.shared_max, self.error_signal, self._extract)

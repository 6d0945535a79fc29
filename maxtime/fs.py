from os import stat, stat_result
from typing import Optional

from maxtime.errors import (
    MetadataError,
    PreEpochError,
    TimestampOverflowError,
    TimestampUnavailableError,
)


EPOCH = 0
MAX_TIMESTAMP = 2**64 - 1


def checked_timestamp(path:str, ns:Optional[int]) -> int:
    """
    Validate a raw nanoseconds-since-epoch value, refusing rather than
    clamping anything we can't represent as an unsigned 64 bit count.
    """
    if ns is None:
        raise TimestampUnavailableError(
            path,
            "modification time not available on this platform",
        )
    if ns < EPOCH:
        raise PreEpochError(path, f"modification time {ns}ns predates the epoch")
    if ns > MAX_TIMESTAMP:
        raise TimestampOverflowError(
            path,
            f"modification time {ns}ns does not fit in 64 bits",
        )
    return ns


def stat_mtime_ns(path:str, s:stat_result) -> int:
    return checked_timestamp(path, getattr(s, "st_mtime_ns", None))


def mtime_ns(path:str) -> int:
    # follows symlinks - a dangling link is an error, not something
    # to quietly skip
    try:
        s = stat(path)
    except OSError as e:
        raise MetadataError(path, e.strerror or str(e)) from e

    return stat_mtime_ns(path, s)

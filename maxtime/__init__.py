from datetime import datetime, timezone
import logging
from typing import Optional

from humanfriendly import Timer
from humanfriendly.text import pluralize

from maxtime.config import Config, WalkOptions
from maxtime.reducer import MtimeVisitorBuilder
from maxtime.stamp import write_stamp
from maxtime.walk import ParallelWalker

logger = logging.getLogger(__name__)


def _friendly_timestamp(timestamp:int) -> str:
    return datetime.fromtimestamp(timestamp / 1e9, timezone.utc).isoformat()


def max_mtime(
    path:str=".",
    walk_options:WalkOptions=WalkOptions(),
    threads:Optional[int]=None,
) -> int:
    walker = ParallelWalker(path, walk_options, threads)
    visitor_builder = MtimeVisitorBuilder()

    timer = Timer()
    walker.run(visitor_builder)

    logger.info(
        "walked %(entries)s below %(path)s in %(elapsed)s",
        {
            "entries": pluralize(walker.dispatched, "entry", "entries"),
            "path": path,
            "elapsed": timer,
        },
    )

    error = visitor_builder.error_signal.error
    if error is not None:
        logger.debug(
            "max mtime among entries visited before failure was %s",
            visitor_builder.shared_max.value,
        )
        raise error

    result = visitor_builder.shared_max.value
    logger.info(
        "max mtime is %(timestamp)s (%(friendly)s)",
        {
            "timestamp": result,
            "friendly": _friendly_timestamp(result),
        },
    )
    return result


def maxtime(config:Config) -> int:
    result = max_mtime(
        config.path,
        walk_options=config.walk_options,
        threads=config.threads,
    )

    # stamp first so a failure to write it never leaves a value on stdout
    if config.stamp is not None:
        write_stamp(config.stamp, result)

    if not config.quiet:
        print(result)

    return result

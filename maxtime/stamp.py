import logging
from os import chmod, replace, stat, umask, unlink, utime
from os.path import basename, dirname
from stat import S_IMODE
from tempfile import NamedTemporaryFile

from maxtime.errors import StampError
from maxtime.fs import checked_timestamp


logger = logging.getLogger(__name__)


def _default_mode() -> int:
    mask = umask(0)
    umask(mask)
    return 0o666 & ~mask


def write_stamp(path:str, timestamp:int):
    """
    Write timestamp to path as decimal nanoseconds and make the file's own
    mtime match it, so tools that only look at mtimes agree with tools that
    read the contents.

    The new contents are prepared in a temporary file next to path and
    renamed over it once the mtime is set, so a failure part way through
    leaves any previous stamp as it was.
    """
    try:
        previous = stat(path)
    except FileNotFoundError:
        previous = None
    except OSError as e:
        raise StampError(path, f"unable to write: {e.strerror or e}") from e

    try:
        f = NamedTemporaryFile(
            "w",
            dir=dirname(path) or ".",
            prefix=f".{basename(path)}.",
            delete=False,
        )
    except OSError as e:
        raise StampError(path, f"unable to write: {e.strerror or e}") from e

    replaced = False
    try:
        try:
            with f:
                f.write(f"{timestamp}\n")
            if previous is None:
                chmod(f.name, _default_mode())
            else:
                chmod(f.name, S_IMODE(previous.st_mode))
        except OSError as e:
            raise StampError(path, f"unable to write: {e.strerror or e}") from e

        try:
            # leave atime alone
            atime = (previous or stat(f.name)).st_atime_ns
            utime(f.name, ns=(atime, timestamp))
        except OSError as e:
            raise StampError(path, f"unable to set mtime: {e.strerror or e}") from e

        try:
            replace(f.name, path)
        except OSError as e:
            raise StampError(path, f"unable to write: {e.strerror or e}") from e
        replaced = True
    finally:
        if not replaced:
            try:
                unlink(f.name)
            except OSError as e:
                logger.warning("unable to remove %(tmp)s: %(error)s", {
                    "tmp": f.name,
                    "error": e,
                })

    logger.debug("wrote stamp %(timestamp)s to %(path)s", {
        "timestamp": timestamp,
        "path": path,
    })


def read_stamp(path:str) -> int:
    try:
        with open(path, "r") as f:
            content = f.read()
    except OSError as e:
        raise StampError(path, f"unable to read: {e.strerror or e}") from e

    text = content[:-1] if content.endswith("\n") else content
    if not (text.isascii() and text.isdigit()):
        raise StampError(path, f"malformed contents {content!r}")

    return checked_timestamp(path, int(text))

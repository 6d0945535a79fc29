def _env_threads(environ) -> int|None:
    value = environ.get("MAXTIME_THREADS", "").strip()
    if not value:
        return None
    return int(value)


def main(argv=None):
    import argparse
    from importlib.metadata import version as metadata_version, PackageNotFoundError
    import logging
    from os import environ

    from maxtime import maxtime
    from maxtime.config import Config, WalkOptions
    from maxtime.errors import MaxtimeError

    try:
        version = metadata_version("maxtime")
    except PackageNotFoundError:
        version = "unknown"

    parser = argparse.ArgumentParser(
        description="print the most recent modification time of anything "
        "below a path, in nanoseconds since the epoch, skipping whatever "
        "ignore files say to skip",
    )

    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to scan. Defaults to the current directory.",
    )
    parser.add_argument(
        "--stamp",
        metavar="PATH",
        help="Output stamp file. Its contents and mtime will both be set to "
        "the max mtime, so it can serve as a freshness marker for build "
        "tools that only compare mtimes. Not touched if anything goes wrong.",
    )
    parser.add_argument(
        "--threads", "-t",
        type=int,
        help="Number of threads to walk the tree with. 0 disables "
        "multi-threading entirely. Defaults to the MAXTIME_THREADS "
        "environment variable if set, otherwise automatic.",
    )

    parser.add_argument(
        "--hidden",
        dest="skip_hidden",
        action="store_false",
        help="Include hidden files and directories.",
    )
    parser.add_argument(
        "--no-ignore",
        dest="ignore",
        action="store_false",
        help="Don't respect .ignore, .gitignore or .git/info/exclude files.",
    )
    parser.add_argument(
        "--no-ignore-vcs",
        dest="ignore_vcs",
        action="store_false",
        help="Don't respect .gitignore or .git/info/exclude files. .ignore "
        "files are still respected.",
    )
    parser.add_argument(
        "--no-ignore-parent",
        dest="parents",
        action="store_false",
        help="Don't respect ignore files in parent directories of PATH.",
    )
    parser.add_argument(
        "--require-git",
        default=True,
        action=argparse.BooleanOptionalAction,
        help="Only respect .gitignore files inside git repositories. "
        "Enabled by default.",
    )
    parser.add_argument(
        "--follow", "-L",
        dest="follow_links",
        action="store_true",
        help="Follow symbolic links to directories.",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        metavar="DEPTH",
        help="Don't descend more than DEPTH directories below PATH.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=version,
    )

    loglvl_grp = parser.add_mutually_exclusive_group()
    loglvl_grp.add_argument(
        "--verbose", "-v",
        dest="loglevel",
        action="store_const",
        const=logging.DEBUG,
    )
    loglvl_grp.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Don't print the max mtime to stdout and only log errors.",
    )

    parsed = vars(parser.parse_args(argv))

    if parsed["threads"] is None:
        try:
            parsed["threads"] = _env_threads(environ)
        except ValueError:
            parser.error("MAXTIME_THREADS must be an integer")
    if (parsed["threads"] or 0) < 0:
        parser.error("Negative values for threads argument make no sense")

    try:
        walk_options = WalkOptions(
            hidden=parsed["skip_hidden"],
            ignore=parsed["ignore"],
            git_ignore=parsed["ignore"] and parsed["ignore_vcs"],
            git_exclude=parsed["ignore"] and parsed["ignore_vcs"],
            parents=parsed["parents"],
            require_git=parsed["require_git"],
            follow_links=parsed["follow_links"],
            max_depth=parsed["max_depth"],
        )
    except ValueError as e:
        parser.error(str(e))

    loglevel = parsed["loglevel"]
    if loglevel is None:
        loglevel = logging.ERROR if parsed["quiet"] else logging.WARNING

    logging.basicConfig(
        level=loglevel,
        format="%(asctime)s:%(levelname)s:%(name)s: %(message)s",
    )

    config = Config(
        path=parsed["path"],
        stamp=parsed["stamp"],
        quiet=parsed["quiet"],
        threads=parsed["threads"],
        walk_options=walk_options,
    )

    try:
        maxtime(config)
    except MaxtimeError as e:
        logging.getLogger("maxtime").error("%s", e)
        raise SystemExit(1)


if __name__ == "__main__":
    main()

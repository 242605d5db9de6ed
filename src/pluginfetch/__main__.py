"""
Command line entry point: `python -m pluginfetch` or `pluginfetch`.
"""

import argparse
import asyncio
import logging
import pathlib
import sys
from typing import List, Optional

from pluginfetch.download_plugins import DownloadPluginsOptions, download_plugins
from pluginfetch.pluginfetch_config import FetchConfig
from pluginfetch.pluginfetch_exceptions import PluginFetchException


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pluginfetch",
        description="Download the plugins declared in package.json and verify them against the lockfile.",
    )
    parser.add_argument(
        "--packed",
        action="store_true",
        help="keep .vsix plugins packed instead of unpacking them",
    )
    parser.add_argument(
        "--ignore-errors",
        action="store_true",
        help="do not fail when some plugins could not be downloaded",
    )
    parser.add_argument(
        "--cwd",
        type=pathlib.Path,
        default=None,
        help="project directory holding package.json (default: current directory)",
    )
    parser.add_argument(
        "--config",
        type=pathlib.Path,
        default=None,
        help="configuration file (default: plugin-fetch.toml in the project directory, if present)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug output")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
        stream=sys.stderr,
    )

    root = (args.cwd or pathlib.Path.cwd()).resolve()
    options = DownloadPluginsOptions(packed=args.packed, ignore_errors=args.ignore_errors)
    try:
        config = FetchConfig.load(root, args.config)
        asyncio.run(download_plugins(options, cwd=root, config=config))
    except PluginFetchException as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
Command-line entry point: ``ghparts owner/repo[/ref] [path] -o DEST``.
"""

import argparse
import sys
from typing import List, Optional

from ..models import DownloadConfig, DownloadStrategy, RepoCoordinate
from ..infrastructure.error_handler import DownloadError
from ..infrastructure.logger import logger
from .api import download


EXIT_OK = 0
EXIT_PARTIAL_FAILURE = 1
EXIT_ERROR = 2

_STRATEGIES = {
    "individual": DownloadStrategy.INDIVIDUAL,
    "archive": DownloadStrategy.ARCHIVE,
    "git": DownloadStrategy.GIT_CLONE,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ghparts",
        description="Download a file, a directory or a whole repository from GitHub.",
    )
    parser.add_argument("repo", help="Repository as owner/repo[/ref]")
    parser.add_argument("path", nargs="?", default="", help="File or directory inside the repository")
    parser.add_argument("-o", "--output", default=".", help="Target directory (default: current directory)")
    parser.add_argument("--ref", help="Branch, tag or commit (overrides a ref given in REPO)")
    parser.add_argument(
        "--strategy", choices=sorted(_STRATEGIES), default="individual",
        help="How to fetch a whole repository when PATH is empty",
    )
    parser.add_argument("-j", "--jobs", type=int, default=4, help="Concurrent downloads (default: 4)")
    parser.add_argument("--retries", type=int, default=2, help="Retries per file (default: 2)")
    parser.add_argument(
        "--nest", action="store_true",
        help="Keep the requested directory's name inside the target directory",
    )
    parser.add_argument("--no-overwrite", action="store_true", help="Skip files that already exist")
    parser.add_argument("--dry-run", action="store_true", help="Show what would be downloaded")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        coordinate = RepoCoordinate.parse(args.repo, ref=args.ref)
        config = DownloadConfig(
            max_concurrent_downloads=args.jobs,
            max_retries=args.retries,
            overwrite_existing=not args.no_overwrite,
            nest_requested_dir=args.nest,
        )
    except ValueError as e:
        logger.error(str(e))
        return EXIT_ERROR

    try:
        result = download(
            coordinate,
            args.output,
            path=args.path,
            config=config,
            strategy=_STRATEGIES[args.strategy],
            dry_run=args.dry_run,
            verbose=args.verbose,
        )
    except (DownloadError, ValueError) as e:
        logger.error(f"Download failed: {e}")
        return EXIT_ERROR

    if args.dry_run:
        for path in result.matched_files:
            print(path)

    if result.failed_files:
        for path, reason in sorted(result.failed_files.items()):
            print(f"failed: {path}: {reason}", file=sys.stderr)
        return EXIT_PARTIAL_FAILURE
    return EXIT_OK


__all__ = [
    "main",
    "build_parser",
]

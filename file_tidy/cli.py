"""
Command-line interface for file_tidy.

Handles argument parsing, wires a ConsoleObserver into the operations and
prints a summary of each result.
"""

import argparse
import logging
import sys
from typing import List, Optional

from .config import Config, DEFAULT_CONFIG, DEFAULT_CATEGORIES, load_rules
from .dedupe import STRATEGIES, dedupe
from .errors import FileTidyError
from .observers import ConsoleObserver
from .operations import (
    CONFLICT_STRATEGIES,
    archive,
    arrange,
    find_empty_files,
    find_large_files,
    flatten,
)
from .utils import format_file_size


def create_parser(config: Config = DEFAULT_CONFIG) -> argparse.ArgumentParser:
    """
    Create the argument parser for the CLI.

    Args:
        config: Configuration to use for default values in help text

    Returns:
        Configured ArgumentParser
    """
    categories = "\n".join(
        f"  {name:<12}- {', '.join(sorted(exts)[:6])}, ..." for name, exts in DEFAULT_CATEGORIES.items()
    )
    parser = argparse.ArgumentParser(
        prog="file-tidy",
        description="Arrange, flatten, deduplicate and archive files in a directory tree",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Categories used by 'arrange':
{categories}
  {config.fallback_category:<12}- everything else

Safety:
  Files are never overwritten unless you ask for it (flatten --conflict overwrite).
  'dedupe' and 'empty --delete' delete files. Use --dry-run to preview first.
        """
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("directory", type=str, help="Directory to work on")
    common.add_argument(
        "--dry-run", "-n",
        action="store_true",
        help="Preview changes without touching any file"
    )
    common.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show debug logging"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("arrange", parents=[common], help="Move files into category folders")
    p.add_argument(
        "--rules",
        type=str,
        help="JSON file with extra categories, e.g. {\"Photos\": [\"jpg\", \"raw\"]}"
    )

    p = sub.add_parser("flatten", parents=[common], help="Move nested files up into the directory")
    p.add_argument("--depth", type=int, default=0, help="Levels to collect from (0 = unlimited)")
    p.add_argument(
        "--conflict",
        choices=CONFLICT_STRATEGIES,
        default="rename",
        help="What to do when two files share a name (default: rename)"
    )
    p.add_argument(
        "--keep-empty",
        action="store_true",
        help="Don't remove directories left empty"
    )

    p = sub.add_parser("dedupe", parents=[common], help="Delete files with identical content")
    p.add_argument("--strategy", choices=STRATEGIES, help="Which copy to keep (default: first)")
    p.add_argument("--canonical", type=str, help="Prefer copies under this path (relative paths start at the directory)")
    p.add_argument(
        "--ignore",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Skip paths matching PATTERN (* and ? wildcards); repeatable"
    )
    p.add_argument("--delete-empty", action="store_true", help="Remove directories left empty")

    p = sub.add_parser("archive", parents=[common], help="Move old files into an archive folder")
    p.add_argument(
        "--days",
        type=float,
        default=config.archive_age_days,
        help=f"Minimum age in days (default: {config.archive_age_days})"
    )
    p.add_argument(
        "--to",
        dest="archive_path",
        default=config.archive_folder,
        help=f"Archive folder, relative to the directory (default: {config.archive_folder})"
    )

    p = sub.add_parser("empty", parents=[common], help="Find zero-byte files")
    p.add_argument("--delete", action="store_true", help="Delete the empty files")

    p = sub.add_parser("large", parents=[common], help="List the largest files")
    p.add_argument(
        "--min-size",
        type=int,
        default=config.large_file_threshold_bytes,
        help=f"Minimum size in bytes (default: {format_file_size(config.large_file_threshold_bytes)})"
    )
    p.add_argument(
        "--limit",
        type=int,
        default=config.large_file_limit,
        help=f"How many files to show (default: {config.large_file_limit})"
    )

    return parser


def _print_errors(errors) -> None:
    for error in errors:
        print(f"  [ERROR] {error.path}: {error.message}", file=sys.stderr)


def run(
    args: argparse.Namespace,
    config: Config = DEFAULT_CONFIG,
) -> int:
    """
    Run one file_tidy command with the given arguments.

    Args:
        args: Parsed command-line arguments
        config: Configuration to use

    Returns:
        Exit code (0 for success, 1 for error)
    """
    prefix = "[DRY RUN] " if args.dry_run else ""
    observer = ConsoleObserver(dry_run=args.dry_run)

    try:
        if args.command == "arrange":
            rules = load_rules(args.rules) if args.rules else None
            stats = arrange(args.directory, rules=rules, dry_run=args.dry_run, observer=observer, config=config)
            _print_errors(stats.errors)
            print(f"\n{prefix}Summary: {stats.moved} moved, {stats.skipped} skipped, {stats.error_count} errors")

        elif args.command == "flatten":
            stats = flatten(
                args.directory,
                depth=args.depth,
                conflict=args.conflict,
                dry_run=args.dry_run,
                delete_empty=not args.keep_empty,
                observer=observer,
                config=config,
            )
            _print_errors(stats.errors)
            print(f"\n{prefix}Summary: {stats.moved} moved, {stats.skipped} skipped, {stats.error_count} errors")

        elif args.command == "dedupe":
            result = dedupe(
                args.directory,
                strategy=args.strategy,
                canonical_path=args.canonical,
                dry_run=args.dry_run,
                ignore_patterns=args.ignore,
                delete_empty=args.delete_empty,
                observer=observer,
                config=config,
            )
            _print_errors(result.errors)
            verb = "Would delete" if args.dry_run else "Deleted"
            print(
                f"\n{prefix}{verb} {result.files_deleted} duplicate files in {result.duplicate_groups} groups, "
                f"{format_file_size(result.space_saved)} reclaimed"
            )

        elif args.command == "archive":
            result = archive(
                args.directory,
                args.archive_path,
                args.days,
                dry_run=args.dry_run,
                observer=observer,
                config=config,
            )
            _print_errors(result.errors)
            print(f"\n{prefix}Archived {result.archived} files ({result.archived_size}) to {result.archive_path}")

        elif args.command == "empty":
            result = find_empty_files(
                args.directory,
                delete=args.delete,
                dry_run=args.dry_run,
                observer=observer,
            )
            _print_errors(result.errors)
            print(f"\n{prefix}{result.empty} empty files found, {result.deleted} deleted")

        elif args.command == "large":
            result = find_large_files(args.directory, args.min_size, args.limit, config=config)
            _print_errors(result.errors)
            for large in result.files:
                print(f"  {large.size_display:>12}  {large.path}")
            print(f"\nShowing {len(result.files)} of {result.matched} files of at least {format_file_size(args.min_size)}")

        return 0

    except (FileTidyError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    config = DEFAULT_CONFIG
    parser = create_parser(config)
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )
    return run(args, config)


if __name__ == "__main__":
    sys.exit(main())

"""Main CLI entry point for mboxsort."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from mboxsort.config.app_config import AppConfig
from mboxsort.config.config_loader import ConfigLoader
from mboxsort.errors import ConfigurationError, FormatError
from mboxsort.models.criteria import Criterion, DateGranularity
from mboxsort.services.pipeline.coordinator import PipelineResult, sort_mailbox
from mboxsort.services.reporting.report_formatter import ReportFormatter
from mboxsort.services.reporting.sender_stats import top_senders
from mboxsort.storage.result_writer import ResultWriter
from mboxsort.utils.logging_utils import configure_logging

logger = logging.getLogger(__name__)

CRITERIA = [criterion.value for criterion in Criterion]
GRANULARITIES = [granularity.value for granularity in DateGranularity]


def check_archive(archive: Path) -> None:
    """
    Check that the archive path names a readable file.

    Raises:
        FileNotFoundError: If the path does not exist
        IOError: If the path is not a file
    """
    if not archive.exists():
        raise FileNotFoundError(f"MBOX file not found at: {archive}")
    if not archive.is_file():
        raise IOError(f"The path specified is not a file: {archive}")


def load_config(args) -> AppConfig:
    """Load configuration and apply command-line overrides."""
    config = ConfigLoader(args.config).load_app_config()

    config = config.with_overrides(
        "classification",
        sort_by=getattr(args, "sort_by", None),
        group_by=getattr(args, "group_by", None),
        date_bucket_granularity=getattr(args, "granularity", None),
        subject_keywords=getattr(args, "keywords", None),
    )
    config = config.with_overrides("pipeline", max_workers=getattr(args, "workers", None))
    if getattr(args, "strict", False):
        config = config.with_overrides("decoder", strict_format=True)
    return config


def process_archive(archive: Path, config: AppConfig) -> PipelineResult:
    """
    Sort one archive.

    Args:
        archive: Path to the mbox file
        config: Validated application configuration

    Returns:
        PipelineResult of the run
    """
    check_archive(archive)
    size_mb = archive.stat().st_size // (1024 * 1024)
    logger.info("Processing %s (%d MB)", archive, size_mb)

    with open(archive, "rb") as stream:
        return sort_mailbox(stream, config)


def cmd_sort(args) -> int:
    """Sort archive command."""
    config = load_config(args)
    result = process_archive(Path(args.archive), config)

    formatter = ReportFormatter(config.report)
    print(formatter.format_report(result))

    if args.output:
        ResultWriter(Path(args.output)).write(result)
        print(f"Results exported to: {args.output}")
    if args.diagnostics_log and result.diagnostics:
        ResultWriter.append_diagnostics(Path(args.diagnostics_log), Path(args.archive), result.diagnostics)

    return 0


def cmd_senders(args) -> int:
    """Top senders command."""
    config = load_config(args)
    result = process_archive(Path(args.archive), config)

    limit = args.top or config.report.top_senders
    counts = top_senders(result.messages, limit=limit)
    formatter = ReportFormatter(config.report)

    if not counts:
        print("No senders found. The MBOX file may be empty, or message headers might be severely corrupted.")
    else:
        print("\n".join(formatter.format_top_senders(counts)))
    print(formatter.format_summary(result.attempted, result.succeeded, result.failed))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="mboxsort - Split, decode and sort MBOX archives")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    parser.add_argument("--log-file", help="Also write log records to this file")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    sort_parser = subparsers.add_parser("sort", help="Sort an archive into buckets")
    sort_parser.add_argument("archive", help="MBOX file to process")
    sort_parser.add_argument("--config", type=Path, help="Custom config file path")
    sort_parser.add_argument("--sort-by", choices=CRITERIA, help="Order inside each bucket")
    sort_parser.add_argument("--group-by", choices=CRITERIA, nargs="+", help="Grouping criteria")
    sort_parser.add_argument("--granularity", choices=GRANULARITIES, help="Date bucket width")
    sort_parser.add_argument("--keyword", dest="keywords", action="append", help="Subject keyword (repeatable)")
    sort_parser.add_argument("--workers", type=int, help="Decode worker threads")
    sort_parser.add_argument("--strict", action="store_true", help="Fail if the archive does not start with 'From '")
    sort_parser.add_argument("--output", type=Path, help="Export results as JSON")
    sort_parser.add_argument("--diagnostics-log", type=Path, help="Append diagnostics to a JSON-lines log")

    senders_parser = subparsers.add_parser("senders", help="Show the most frequent senders")
    senders_parser.add_argument("archive", help="MBOX file to process")
    senders_parser.add_argument("--config", type=Path, help="Custom config file path")
    senders_parser.add_argument("--top", type=int, help="Number of senders to show")
    senders_parser.add_argument("--workers", type=int, help="Decode worker threads")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    configure_logging(args.log_level, log_file=args.log_file)

    commands = {"sort": cmd_sort, "senders": cmd_senders}
    try:
        return commands[args.command](args)
    except ConfigurationError as e:
        print(f"CONFIGURATION ERROR: {e}", file=sys.stderr)
        return 2
    except FormatError as e:
        print(f"FORMAT ERROR: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"FATAL ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

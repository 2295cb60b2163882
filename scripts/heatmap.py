#!/usr/bin/env python3
"""
LANA Noise Heatmap Generator Script

Usage:
    python scripts/heatmap.py [--config CONFIG_FILE] [--date YYYY-MM-DD]

Examples:
    # Process the configured date
    python scripts/heatmap.py --config config.yaml

    # Process another date with 4 workers, writing decibel values
    python scripts/heatmap.py --date 2023-09-02 --workers 4 --format decibel
"""

import sys
import argparse
import logging
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from lana.config import Config, ConfigurationError, setup_logging
from lana.noise import AggregationCoordinator


def build_parser() -> argparse.ArgumentParser:
    """Create the command line parser."""
    parser = argparse.ArgumentParser(
        description="LANA Noise Heatmap - Aggregate aircraft noise around your points of interest"
    )
    parser.add_argument(
        "--config",
        type=str,
        default="config.yaml",
        help="Path to configuration file (default: config.yaml)",
    )
    parser.add_argument("--date", type=str, help="Snapshot date (YYYY-MM-DD)")
    parser.add_argument("--input-dir", type=str, help="Root snapshot directory")
    parser.add_argument("--output-dir", type=str, help="Heatmap output directory")
    parser.add_argument("--workers", type=int, help="Number of worker processes")
    parser.add_argument(
        "--timeout", type=float, help="Per-file processing timeout in seconds"
    )
    parser.add_argument(
        "--format",
        choices=["linear", "decibel", "db"],
        help="Heatmap intensity format",
    )
    parser.add_argument(
        "--lightweight",
        action="store_true",
        help="Process every second snapshot file only",
    )
    return parser


def apply_overrides(config: Config, args: argparse.Namespace) -> None:
    """Copy command line overrides into the configuration."""
    overrides = {
        "data.date": args.date,
        "data.flight_history_dir": args.input_dir,
        "data.output_dir": args.output_dir,
        "processing.workers": args.workers,
        "processing.file_timeout_seconds": args.timeout,
        "heatmap.output_format": args.format,
    }
    for key, value in overrides.items():
        if value is not None:
            config.set(key, value)
    if args.lightweight:
        config.set("heatmap.lightweight_mode", True)


def print_summary(summary) -> None:
    """Print run results to the console."""
    files = summary.files
    print("\n" + "=" * 70)
    print(f"🔊 LANA heatmaps for {summary.date}")
    print("=" * 70)
    print(f"Files:      {files.total:,} total | {files.processed:,} processed")
    print(
        f"            {files.quarantined:,} quarantined | {files.timed_out:,} timed out"
        f" | {files.failed:,} failed"
    )
    print(f"Positions:  {files.observations:,}")
    for identifier, count in summary.point_counts.items():
        print(f"  ✅ {identifier:24s} {count:8,} points")
    for identifier, error in summary.errors.items():
        print(f"  ❌ {identifier:24s} {error}")
    if summary.metadata_path:
        print(f"\n💾 Output written to: {summary.output_dir}")
    print("=" * 70)


def main():
    """Main entry point for heatmap generation."""
    args = build_parser().parse_args()

    config = Config(args.config)
    apply_overrides(config, args)
    setup_logging(config)

    try:
        summary = AggregationCoordinator(config).run()
    except ConfigurationError as e:
        print(f"❌ Configuration error: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\n👋 Stopped by user")
        sys.exit(130)
    except Exception:
        logging.getLogger(__name__).exception("Fatal error")
        sys.exit(1)

    print_summary(summary)
    if summary.errors:
        sys.exit(2)


if __name__ == "__main__":
    main()

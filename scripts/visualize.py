#!/usr/bin/env python3
"""
LANA Visualization Script

Usage:
    python scripts/visualize.py [OPTIONS]

Examples:
    # Render every heatmap of the last run
    python scripts/visualize.py --all

    # Render one point of interest and open it in the browser
    python scripts/visualize.py --poi USA_WA_Seattle --open
"""

import sys
import argparse
import webbrowser
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from lana.config import Config, setup_logging
from lana.visualization import HeatmapGenerator


def main():
    """Main entry point for visualization."""
    parser = argparse.ArgumentParser(
        description="LANA Visualizer - Render noise heatmaps as interactive maps"
    )
    parser.add_argument(
        "--config",
        type=str,
        default="config.yaml",
        help="Path to config file (default: config.yaml)",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        help="Heatmap directory (default: from config.yaml)",
    )

    target = parser.add_mutually_exclusive_group()
    target.add_argument(
        "--all", action="store_true", help="Render every point of interest"
    )
    target.add_argument(
        "--poi", type=str, metavar="IDENTIFIER", help="Render one point of interest"
    )

    parser.add_argument("--output", type=str, help="Output filename for --poi")
    parser.add_argument(
        "--open", action="store_true", help="Open the result in the default browser"
    )

    args = parser.parse_args()

    config = Config(args.config)
    setup_logging(config)
    output_dir = args.output_dir or config.output_dir

    try:
        generator = HeatmapGenerator(output_dir)

        if args.poi:
            written = [generator.generate_heatmap(args.poi, args.output)]
        elif args.all:
            written = generator.generate_all()
        else:
            parser.print_help()
            sys.exit(1)

    except FileNotFoundError as e:
        print(f"❌ Heatmap data not found: {e.filename}")
        print("   Run the aggregation first: python scripts/heatmap.py")
        sys.exit(1)
    except KeyError as e:
        print(f"❌ {e.args[0]}")
        sys.exit(1)

    for path in written:
        print(f"✅ {path}")

    if args.open and written:
        webbrowser.open(Path(written[0]).resolve().as_uri())


if __name__ == "__main__":
    main()

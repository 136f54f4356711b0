"""CLI entry point to run the daily curation pipeline."""
from __future__ import annotations

# ruff: noqa: E402

import argparse
from pathlib import Path
import sys

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from newsdigest.pipelines.curate import run_pipeline


def main() -> None:
    parser = argparse.ArgumentParser(description="Deduplicate, score and select the day's AI news")
    parser.add_argument(
        "--config",
        default="config/pipeline.yaml",
        help="Path to the YAML configuration file",
    )
    parser.add_argument(
        "--target",
        type=int,
        default=None,
        help="Number of items to select (overrides selection.target_count)",
    )
    args = parser.parse_args()
    result = run_pipeline(args.config, target_count=args.target)
    for rank, scored in enumerate(result.selected, start=1):
        print(f"{rank:2d}. [{scored.score:3d}] {scored.item.title} ({scored.source or 'unknown'})")


if __name__ == "__main__":
    main()

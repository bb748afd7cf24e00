from __future__ import annotations

import argparse
import json
import logging
from typing import Any, Sequence

from alluvial_flow.pipeline import run_from_files


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Lay out an alluvial chart from node and link tables and emit draw primitives."
    )
    parser.add_argument("--nodes", required=True, help="CSV with time, category, size columns.")
    parser.add_argument(
        "--links",
        required=True,
        help="CSV with time1, category1, time2, category2, thickness columns.",
    )
    parser.add_argument("--config", default=None, help="Optional YAML layout configuration.")
    parser.add_argument(
        "--output",
        default=None,
        help="Write primitive records as JSON here instead of stdout.",
    )
    parser.add_argument("--figure", default=None, help="Also render the chart to this image file.")
    parser.add_argument("--stat", default=None, choices=["percent", "count"])
    parser.add_argument("--interpolation", default=None, choices=["linear", "cosine"])
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides: dict[str, Any] = {}
    if args.stat is not None:
        overrides["stat"] = args.stat
    if args.interpolation is not None:
        overrides["interpolation"] = args.interpolation

    records = run_from_files(
        nodes_path=args.nodes,
        links_path=args.links,
        config_path=args.config,
        output_path=args.output,
        figure_path=args.figure,
        overrides=overrides,
    )
    if args.output is None:
        print(json.dumps(records, indent=2))


if __name__ == "__main__":
    main()

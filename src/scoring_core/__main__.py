"""CLI entry point: python -m scoring_core <command>."""

from __future__ import annotations

import argparse
import logging
import sys


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="scoring-core",
        description="Lead and assessment scoring CLI",
    )
    parser.add_argument("-v", "--verbose", action="store_true", default=False, help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    sc = sub.add_parser("score", help="Score a list of interaction events")
    sc.add_argument("--events", required=True, help="Path to a YAML or JSON list of events")
    sc.add_argument("--now", default="", help="Reference time (ISO 8601); defaults to the current time")
    sc.add_argument("--json", action="store_true", default=False, help="Output as JSON")

    ct = sub.add_parser("check-tools", help="Load assessment tools and report their health")
    ct.add_argument("--tool-dir", required=True, help="Path to assessment tool YAML directory")
    ct.add_argument("--json", action="store_true", default=False, help="Output as JSON")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "score":
        from scoring_core.cli.score import run_score
        run_score(args)
    elif args.command == "check-tools":
        from scoring_core.cli.check_tools import run_check_tools
        run_check_tools(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()

"""CLI handler for ``scoring-core score``."""

from __future__ import annotations

import sys
from argparse import Namespace
from pathlib import Path
from typing import Any

import yaml

from scoring_core.interaction.events import events_from_records
from scoring_core.interaction.parsing import parse_timestamp
from scoring_core.interaction.pipeline import get_scoring_summary
from scoring_core.report import format_score_json, format_score_table


def _read_records(path: Path) -> list[dict[str, Any]]:
    # JSON is a subset of YAML, so one loader handles both formats.
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if isinstance(data, dict):
        data = data.get("events")
    if not isinstance(data, list):
        raise ValueError("expected a list of events or a mapping with an 'events' list")
    return [r for r in data if isinstance(r, dict)]


def run_score(args: Namespace) -> None:
    events_path = Path(args.events)
    if not events_path.is_file():
        print(f"Error: events file does not exist: {events_path}", file=sys.stderr)
        sys.exit(1)

    now = None
    if args.now:
        now = parse_timestamp(args.now)
        if now is None:
            print(f"Error: cannot parse --now value: {args.now}", file=sys.stderr)
            sys.exit(1)

    try:
        records = _read_records(events_path)
    except (OSError, yaml.YAMLError, ValueError) as exc:
        print(f"Error: cannot read events from {events_path.name}: {exc}", file=sys.stderr)
        sys.exit(1)

    events = events_from_records(records)
    skipped = len(records) - len(events)
    if skipped:
        print(f"Warning: skipped {skipped} malformed event(s)", file=sys.stderr)

    summary = get_scoring_summary(events, now)
    if args.json:
        print(format_score_json(summary))
    else:
        print(format_score_table(summary))

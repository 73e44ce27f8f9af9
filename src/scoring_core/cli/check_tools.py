"""CLI handler for ``scoring-core check-tools``."""

from __future__ import annotations

import sys
from argparse import Namespace
from pathlib import Path

import yaml

from scoring_core.assessment.loader import load_tool_file
from scoring_core.assessment.models import AssessmentConfig
from scoring_core.report import check_tool, format_tools_json, format_tools_table


def run_check_tools(args: Namespace) -> None:
    tool_dir = Path(args.tool_dir)
    if not tool_dir.is_dir():
        print(f"Error: tool directory does not exist: {tool_dir}", file=sys.stderr)
        sys.exit(1)

    tools: dict[str, AssessmentConfig] = {}
    for path in sorted(tool_dir.rglob("*.yaml")):
        if path.name.startswith("_"):
            continue
        try:
            config = load_tool_file(path)
        except (OSError, yaml.YAMLError, ValueError) as exc:
            print(f"Warning: skipping {path.name}: {exc}", file=sys.stderr)
            continue
        if config.id in tools:
            print(f"Warning: skipping {path.name}: duplicate tool id {config.id!r}", file=sys.stderr)
            continue
        tools[config.id] = config

    if not tools:
        print("No tools loaded.", file=sys.stderr)
        sys.exit(1)

    checks = [check_tool(config) for config in tools.values()]
    if args.json:
        print(format_tools_json(checks))
    else:
        print(format_tools_table(checks))

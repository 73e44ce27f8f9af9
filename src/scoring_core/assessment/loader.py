"""YAML assessment tool loading. Files starting with underscore are skipped."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from scoring_core.assessment.models import AssessmentConfig
from scoring_core.assessment.registry import ToolRegistry
from scoring_core.errors import ConfigurationError

logger = logging.getLogger(__name__)


def load_tool_file(path: Path) -> AssessmentConfig:
    with open(path, encoding="utf-8") as f:
        raw_data = yaml.safe_load(f)
    if raw_data is None:
        raise ValueError(f"Empty tool YAML: {path}")
    if not isinstance(raw_data, dict):
        raise ValueError(f"Tool YAML root must be a mapping: {path}")

    data: dict[str, Any] = raw_data
    if isinstance(data.get("description"), str):
        data["description"] = data["description"].strip()
    return AssessmentConfig.model_validate(data)


def load_tool_directory(directory: str | Path, registry: ToolRegistry) -> int:
    """Load all YAML tools from a directory recursively. Returns count loaded."""
    directory = Path(directory)
    if not directory.is_dir():
        logger.warning("Tool directory does not exist: %s", directory)
        return 0

    count = 0
    for path in sorted(directory.rglob("*.yaml")):
        if path.name.startswith("_"):
            continue
        try:
            config = load_tool_file(path)
            registry.register(config)
            count += 1
        except (yaml.YAMLError, ConfigurationError, KeyError, ValueError, TypeError) as exc:
            logger.exception("Failed to load tool from %s: %s", path, exc)
    return count

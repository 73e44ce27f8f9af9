"""Tool registry -- in-memory index of loaded assessment configurations.

The registry maintains two lookup structures:
  - _tools: primary index by tool ID
  - _by_tag: secondary index mapping tags to tool IDs

Custom scoring strategies are resolved on registration, so every tool in
the registry can be scored.
"""

from __future__ import annotations

import logging

from scoring_core.assessment.models import AssessmentConfig
from scoring_core.assessment.strategies import StrategyRegistry, resolve_config_strategy
from scoring_core.errors import ConfigurationError, ToolNotFoundError

logger = logging.getLogger(__name__)


class ToolRegistry:
    """In-memory registry of assessment tool configurations."""

    def __init__(self, strategies: StrategyRegistry | None = None) -> None:
        self.strategies = strategies or StrategyRegistry()
        self._tools: dict[str, AssessmentConfig] = {}
        self._by_tag: dict[str, list[str]] = {}

    def register(self, config: AssessmentConfig) -> None:
        """Add a tool to all indexes.

        Raises ConfigurationError for duplicate ids or unresolvable strategies.
        """
        if config.id in self._tools:
            raise ConfigurationError(f"Duplicate tool id registered: {config.id!r}")
        resolve_config_strategy(config, self.strategies)
        self._tools[config.id] = config

        for tag in config.tags:
            ids = self._by_tag.setdefault(tag, [])
            if config.id not in ids:
                ids.append(config.id)

    def get(self, tool_id: str) -> AssessmentConfig | None:
        return self._tools.get(tool_id)

    def require(self, tool_id: str) -> AssessmentConfig:
        config = self._tools.get(tool_id)
        if config is None:
            raise ToolNotFoundError(f"Tool configuration not found: {tool_id}")
        return config

    def find_by_tag(self, tag: str) -> list[AssessmentConfig]:
        ids = self._by_tag.get(tag, [])
        return [self._tools[tid] for tid in ids]

    def search(self, *, tag: str | None = None, search: str | None = None) -> list[AssessmentConfig]:
        """Filter by tag and by case-insensitive title/description substring."""
        tools = self.find_by_tag(tag) if tag else self.all()
        if search:
            needle = search.lower()
            tools = [
                t for t in tools
                if needle in t.title.lower() or needle in t.description.lower()
            ]
        return tools

    def all(self) -> list[AssessmentConfig]:
        return list(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

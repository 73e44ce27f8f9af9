"""Named custom scoring strategies.

Configuration refers to a strategy by name (``scoring.type: custom``,
``scoring.strategy: <name>``); the name is resolved against a
:class:`StrategyRegistry` when the configuration is loaded, so a tool
with an unknown strategy is rejected up front rather than at completion.
"""

from __future__ import annotations

import logging
from typing import Callable

from scoring_core.assessment.models import (
    AssessmentConfig,
    AssessmentScores,
    CustomScoring,
    Question,
    QuestionResponse,
)
from scoring_core.errors import ConfigurationError

logger = logging.getLogger(__name__)

ScoringStrategy = Callable[[list[QuestionResponse], list[Question]], AssessmentScores]


class StrategyRegistry:
    def __init__(self) -> None:
        self._strategies: dict[str, ScoringStrategy] = {}

    def register(self, name: str, strategy: ScoringStrategy) -> None:
        """Raises ConfigurationError if *name* is already taken."""
        name = name.strip()
        if not name:
            raise ConfigurationError("Strategy name must not be empty")
        if name in self._strategies:
            raise ConfigurationError(f"Duplicate scoring strategy registered: {name!r}")
        self._strategies[name] = strategy

    def strategy(self, name: str) -> Callable[[ScoringStrategy], ScoringStrategy]:
        """Decorator form of :meth:`register`."""

        def decorator(fn: ScoringStrategy) -> ScoringStrategy:
            self.register(name, fn)
            return fn

        return decorator

    def get(self, name: str) -> ScoringStrategy | None:
        return self._strategies.get(name)

    def resolve(self, name: str) -> ScoringStrategy:
        strategy = self._strategies.get(name)
        if strategy is None:
            raise ConfigurationError(f"Unknown scoring strategy: {name!r}")
        return strategy

    def names(self) -> list[str]:
        return sorted(self._strategies)

    def __contains__(self, name: object) -> bool:
        return name in self._strategies


def resolve_config_strategy(
    config: AssessmentConfig,
    strategies: StrategyRegistry | None,
) -> ScoringStrategy | None:
    """Return the custom strategy a config needs, or ``None`` for built-in scoring."""
    if not isinstance(config.scoring, CustomScoring):
        return None
    if strategies is None:
        raise ConfigurationError(
            f"Tool {config.id!r} uses custom scoring but no strategy registry was given"
        )
    try:
        return strategies.resolve(config.scoring.strategy)
    except ConfigurationError:
        logger.error(
            "Tool %r references unknown strategy %r", config.id, config.scoring.strategy,
        )
        raise

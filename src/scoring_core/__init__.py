"""Scoring core -- behavioral lead scoring and assessment scoring.

Public API::

    from scoring_core.interaction import calculate_score, process_interaction, get_scoring_summary
    from scoring_core.assessment import AssessmentService, ToolRegistry, load_tool_directory
"""

from scoring_core.errors import (
    ConfigurationError,
    ProcessingError,
    ScoringCoreError,
    SessionNotFoundError,
    ToolNotFoundError,
    ValidationError,
)

__all__ = [
    "ConfigurationError",
    "ProcessingError",
    "ScoringCoreError",
    "SessionNotFoundError",
    "ToolNotFoundError",
    "ValidationError",
]
__version__ = "0.1.0"

"""Assessment scoring -- tool configuration, sessions, scoring, and insights."""

from scoring_core.assessment.engine import AssessmentEngine, ProgressSummary
from scoring_core.assessment.insights import generate_insights, generate_visualization
from scoring_core.assessment.loader import load_tool_directory, load_tool_file
from scoring_core.assessment.models import (
    AssessmentConfig,
    AssessmentResult,
    AssessmentScores,
    AssessmentSession,
    CategoryScore,
    Insight,
    Question,
    QuestionResponse,
    ResultTier,
    SessionStatus,
    VisualizationData,
)
from scoring_core.assessment.registry import ToolRegistry
from scoring_core.assessment.scoring import calculate_scores
from scoring_core.assessment.service import AssessmentService
from scoring_core.assessment.store import (
    InMemoryAssessmentStore,
    SessionStore,
    SQLiteAssessmentStore,
)
from scoring_core.assessment.strategies import ScoringStrategy, StrategyRegistry
from scoring_core.assessment.validation import check_response, validate_response

__all__ = [
    "AssessmentConfig",
    "AssessmentEngine",
    "AssessmentResult",
    "AssessmentScores",
    "AssessmentService",
    "AssessmentSession",
    "CategoryScore",
    "InMemoryAssessmentStore",
    "Insight",
    "ProgressSummary",
    "Question",
    "QuestionResponse",
    "ResultTier",
    "SQLiteAssessmentStore",
    "ScoringStrategy",
    "SessionStatus",
    "SessionStore",
    "StrategyRegistry",
    "ToolRegistry",
    "VisualizationData",
    "calculate_scores",
    "check_response",
    "generate_insights",
    "generate_visualization",
    "load_tool_directory",
    "load_tool_file",
    "validate_response",
]

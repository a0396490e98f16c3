"""
Topic Selection Engine.

Weighted topic selection with a pass/fail feedback loop.

Components:
- score_model: Pure multiplicative factors (mastery, importance, recency, ...)
- WeightCalculator: Final clamped weights plus the "create new topic" candidate
- WeightedSelector: Inverse-CDF weighted random draw and weight statistics
- FeedbackRedistributor: Moves weight from a passed topic to its peers
- ContentAnalyzer: Opportunity and gap signals derived from mastery
- SelectionOrchestrator: Storage-facing façade
"""
from microlearn.selection.analysis import ContentAnalyzer, MasteryDistribution
from microlearn.selection.errors import (
    EmptyCandidateSet,
    InvalidWeightRange,
    SelectionError,
    TopicNotFound,
)
from microlearn.selection.mastery import apply_completion, lesson_type_for
from microlearn.selection.models import (
    CREATE_NEW_TOPIC_ID,
    AnalysisSignals,
    Candidate,
    CompletionResult,
    CreateNewCandidate,
    DifficultyBand,
    ImportanceClass,
    LessonType,
    ScoredTopic,
    SelectionResult,
    Topic,
    UserPreferences,
    WeightBreakdown,
    WeightStatistics,
    WeightUpdate,
)
from microlearn.selection.orchestrator import (
    AnalysisSource,
    PreferenceSource,
    SelectionOrchestrator,
    TopicRepository,
)
from microlearn.selection.redistributor import FeedbackRedistributor
from microlearn.selection.selector import WeightedSelector, weight_statistics
from microlearn.selection.weight_calculator import WeightBounds, WeightCalculator

__all__ = [
    # Façade
    "SelectionOrchestrator",
    # Components
    "WeightCalculator",
    "WeightBounds",
    "WeightedSelector",
    "FeedbackRedistributor",
    "ContentAnalyzer",
    "MasteryDistribution",
    "apply_completion",
    "lesson_type_for",
    "weight_statistics",
    # Collaborators
    "TopicRepository",
    "AnalysisSource",
    "PreferenceSource",
    # Data models
    "CREATE_NEW_TOPIC_ID",
    "Topic",
    "ScoredTopic",
    "CreateNewCandidate",
    "Candidate",
    "WeightBreakdown",
    "WeightUpdate",
    "WeightStatistics",
    "UserPreferences",
    "AnalysisSignals",
    "SelectionResult",
    "CompletionResult",
    # Enums
    "DifficultyBand",
    "ImportanceClass",
    "LessonType",
    # Errors
    "SelectionError",
    "EmptyCandidateSet",
    "TopicNotFound",
    "InvalidWeightRange",
]

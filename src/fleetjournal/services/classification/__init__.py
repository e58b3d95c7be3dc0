"""Trip classification services."""

from .batch import process_journal, run_journal_batch
from .classifier import (
    TripEvaluation,
    check_completeness,
    classify_trip,
    evaluate_trip,
    should_auto_approve,
)
from .history import Suggestion, suggest_classification

__all__ = [
    "classify_trip",
    "check_completeness",
    "should_auto_approve",
    "evaluate_trip",
    "TripEvaluation",
    "suggest_classification",
    "Suggestion",
    "process_journal",
    "run_journal_batch",
]

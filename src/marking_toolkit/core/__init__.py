"""
Marking Toolkit Core Package

Immutable models and schema validation shared by the marking engine.
Nothing here holds learner state; that lives on ``parts.Part``.
"""

from .models import (
    FeedbackMessage,
    FeedbackOp,
    FeedbackOperation,
    MarkingResult,
    PartSettings,
    ReplacementStrategy,
    VariableReplacement,
)

__all__ = [
    "FeedbackMessage",
    "FeedbackOp",
    "FeedbackOperation",
    "MarkingResult",
    "PartSettings",
    "ReplacementStrategy",
    "VariableReplacement",
]

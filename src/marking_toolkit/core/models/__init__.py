"""
Core Models Package

Immutable records shared across the marking engine. The mutable scoring
state of a part lives in ``marking_toolkit.parts``; everything here is a
frozen dataclass.
"""

from .feedback import FeedbackOp, FeedbackOperation, FeedbackMessage, LogOp, MarkingResult
from .settings import PartSettings, ReplacementStrategy, VariableReplacement

__all__ = [
    "FeedbackOp",
    "FeedbackOperation",
    "FeedbackMessage",
    "LogOp",
    "MarkingResult",
    "PartSettings",
    "ReplacementStrategy",
    "VariableReplacement",
]

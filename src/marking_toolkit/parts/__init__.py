"""
Parts Package

Mutable part objects, their lifecycle hooks, the part type registry and the
Question container.
"""

from .hooks import HookOrder
from .part import Part
from .question import Question, QuestionConfig
from .registry import PART_TYPES, create_part, register_part_type
from .types import AnswerPart, InformationPart

__all__ = [
    "HookOrder",
    "Part",
    "Question",
    "QuestionConfig",
    "PART_TYPES",
    "create_part",
    "register_part_type",
    "AnswerPart",
    "InformationPart",
]

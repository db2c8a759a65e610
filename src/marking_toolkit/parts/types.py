"""
Built-in part types.

- ``answer``: marks a single entered value; the correct answer is read from
  the scope variable named by ``settings.answer_variable``
- ``information``: shows content only and does no marking
"""

from __future__ import annotations

from typing import Any, Dict

from marking_toolkit.marking.scope import Scope

from .part import Part
from .registry import register_part_type


@register_part_type("answer")
class AnswerPart(Part):
    """Part whose answer is a single value compared by its marking script."""

    correct_answer: Any = None

    def get_correct_answer(self, scope: Scope) -> None:
        variable = self.settings.answer_variable
        self.correct_answer = scope.get(variable) if variable else None

    def marking_parameters(self, student_answer: Any) -> Dict[str, Any]:
        params = super().marking_parameters(student_answer)
        params["correct_answer"] = self.correct_answer
        return params


@register_part_type("information")
class InformationPart(Part):
    does_marking = False

"""
Module: settings

Purpose:
    Immutable configuration for a part: marks, steps penalty, minimum marks
    floor and the adaptive marking rules. Loaded once per question and never
    mutated afterwards.

Key Classes:
    - ReplacementStrategy: "originalfirst" or "alwaysreplace"
    - VariableReplacement: One error-carried-forward rule
    - PartSettings: All configuration of a part

Dependencies:
    - dataclasses (std)
    - enum (std)

Used By:
    - parts.part.Part
    - marking.aggregator
    - marking.replacement
    - loading.loader
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class ReplacementStrategy(str, Enum):
    """How variable replacements are used when marking."""
    ORIGINAL_FIRST = "originalfirst"   # Try intended values, fall back to replacements
    ALWAYS_REPLACE = "alwaysreplace"   # Only ever mark against replacements

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class VariableReplacement:
    """
    Error-carried-forward rule.

    When the owning part is marked, ``variable`` is replaced by the answer
    given to the part at ``part``.

    Attributes:
        variable: Question variable name (normalised to lower case)
        part: Path of the upstream part, like "p0"
        must_go_first: If True the upstream part must be answered before
            the owning part can be marked at all

    Example:
        >>> VariableReplacement("X", "p0").variable
        'x'
    """

    variable: str
    part: str
    must_go_first: bool = False

    def __post_init__(self) -> None:
        if not self.variable or not self.variable.strip():
            raise ValueError("Variable replacement needs a variable name")
        if not self.part or not self.part.strip():
            raise ValueError(f"Variable replacement for {self.variable!r} needs a part path")
        object.__setattr__(self, "variable", self.variable.strip().lower())

    def to_dict(self) -> dict:
        return {"variable": self.variable, "part": self.part, "must_go_first": self.must_go_first}

    @classmethod
    def from_dict(cls, data: dict) -> VariableReplacement:
        return cls(
            variable=data["variable"],
            part=data["part"],
            must_go_first=bool(data.get("must_go_first", False)),
        )


@dataclass(frozen=True)
class PartSettings:
    """
    Configuration of a part (immutable).

    Attributes:
        marks: Maximum marks available
        steps_penalty: Marks deducted from the maximum once steps are shown
        enable_minimum_marks: Whether the minimum marks floor applies
        minimum_marks: Lowest score awarded when the floor is enabled
        variable_replacement_strategy: Adaptive marking strategy, or None
        variable_replacements: Error-carried-forward rules
        show_correct_answer: Show the correct answer on reveal
        show_feedback_icon: Show a tick/cross after marking
        answer_variable: Scope variable holding the correct answer (answer parts)

    Invariants:
        - marks >= 0
        - steps_penalty >= 0
    """

    marks: float = 0
    steps_penalty: float = 0
    enable_minimum_marks: bool = False
    minimum_marks: float = 0
    variable_replacement_strategy: Optional[ReplacementStrategy] = None
    variable_replacements: Tuple[VariableReplacement, ...] = ()
    show_correct_answer: bool = True
    show_feedback_icon: bool = True
    answer_variable: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate settings on construction."""
        if self.marks < 0:
            raise ValueError(f"marks cannot be negative: {self.marks}")
        if self.steps_penalty < 0:
            raise ValueError(f"steps_penalty cannot be negative: {self.steps_penalty}")
        strategy = self.variable_replacement_strategy
        if strategy is not None and not isinstance(strategy, ReplacementStrategy):
            try:
                object.__setattr__(self, "variable_replacement_strategy", ReplacementStrategy(strategy))
            except ValueError:
                raise ValueError(f"Unknown variable replacement strategy: {strategy!r}")

    @property
    def has_variable_replacements(self) -> bool:
        return len(self.variable_replacements) > 0

    def with_replacement(self, replacement: VariableReplacement) -> PartSettings:
        """Return new settings with one more replacement rule appended."""
        return replace(self, variable_replacements=self.variable_replacements + (replacement,))

    def to_dict(self) -> Dict[str, Any]:
        """Plain representation passed to marking scripts."""
        return {
            "marks": self.marks,
            "stepsPenalty": self.steps_penalty,
            "enableMinimumMarks": self.enable_minimum_marks,
            "minimumMarks": self.minimum_marks,
            "variableReplacementStrategy": (
                str(self.variable_replacement_strategy)
                if self.variable_replacement_strategy else None
            ),
            "variableReplacements": [r.to_dict() for r in self.variable_replacements],
            "hasVariableReplacements": self.has_variable_replacements,
            "showCorrectAnswer": self.show_correct_answer,
            "showFeedbackIcon": self.show_feedback_icon,
        }

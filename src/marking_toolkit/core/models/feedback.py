"""
Module: feedback

Purpose:
    Provides the records exchanged between the marking script, the feedback
    interpreter and the credit ledger:

    - FeedbackOperation: one instruction emitted by a marking script's
      ``mark`` note (the wire format consumed by the interpreter)
    - FeedbackMessage: one entry of a part's append-only feedback log
    - MarkingResult: the outcome of marking an answer against one scope

Key Functions:
    - FeedbackOperation.from_dict(data): Coerce a plain mapping
    - FeedbackOperation.set_credit(...) etc: Factory helpers
    - MarkingResult.with_comment_first(message): Prepend a comment

Dependencies:
    - dataclasses (std)
    - enum (std)

Used By:
    - marking.ledger
    - marking.interpreter
    - marking.invocation
    - parts.part
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Tuple

from marking_toolkit.errors import FeedbackInterpretationError


class FeedbackOp(str, Enum):
    """Kind of a feedback operation produced by a marking script."""
    SET_CREDIT = "set_credit"
    ADD_CREDIT = "add_credit"
    SUB_CREDIT = "sub_credit"
    MULTIPLY_CREDIT = "multiply_credit"
    WARNING = "warning"
    FEEDBACK = "feedback"
    START_LIFT = "start_lift"
    END_LIFT = "end_lift"
    END = "end"

    def __str__(self) -> str:
        return self.value


class LogOp(str, Enum):
    """Kind of an entry in the feedback log."""
    ADD_CREDIT = "add_credit"
    SUB_CREDIT = "sub_credit"
    COMMENT = "comment"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class FeedbackOperation:
    """
    A single feedback instruction.

    Only the payload fields relevant to ``op`` are meaningful:

    - ``credit`` for set/add/sub credit
    - ``factor`` for multiply_credit
    - ``scale`` for start_lift
    - ``invalid`` for end
    - ``message`` for everything except start_lift/end_lift

    Example:
        >>> FeedbackOperation.add_credit(0.5, "Half right").credit
        0.5
    """

    op: FeedbackOp
    credit: float = 0.0
    factor: float = 1.0
    scale: float = 1.0
    message: str = ""
    invalid: bool = False

    # ─────────────────────────────────────────────────────────────────────────
    # Factory Methods
    # ─────────────────────────────────────────────────────────────────────────

    @classmethod
    def set_credit(cls, credit: float, message: str = "") -> FeedbackOperation:
        return cls(FeedbackOp.SET_CREDIT, credit=credit, message=message)

    @classmethod
    def add_credit(cls, credit: float, message: str = "") -> FeedbackOperation:
        return cls(FeedbackOp.ADD_CREDIT, credit=credit, message=message)

    @classmethod
    def sub_credit(cls, credit: float, message: str = "") -> FeedbackOperation:
        return cls(FeedbackOp.SUB_CREDIT, credit=credit, message=message)

    @classmethod
    def multiply_credit(cls, factor: float, message: str = "") -> FeedbackOperation:
        return cls(FeedbackOp.MULTIPLY_CREDIT, factor=factor, message=message)

    @classmethod
    def warning(cls, message: str) -> FeedbackOperation:
        return cls(FeedbackOp.WARNING, message=message)

    @classmethod
    def feedback(cls, message: str) -> FeedbackOperation:
        return cls(FeedbackOp.FEEDBACK, message=message)

    @classmethod
    def start_lift(cls, scale: float) -> FeedbackOperation:
        return cls(FeedbackOp.START_LIFT, scale=scale)

    @classmethod
    def end_lift(cls) -> FeedbackOperation:
        return cls(FeedbackOp.END_LIFT)

    @classmethod
    def end(cls, invalid: bool = False, message: str = "") -> FeedbackOperation:
        return cls(FeedbackOp.END, invalid=invalid, message=message)

    # ─────────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────────

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FeedbackOperation:
        """
        Coerce a plain mapping produced by a script evaluator.

        Args:
            data: Mapping with an ``op`` key and optional payload keys

        Returns:
            FeedbackOperation instance

        Raises:
            FeedbackInterpretationError: If ``op`` is missing or unknown
        """
        try:
            op = FeedbackOp(data["op"])
        except KeyError:
            raise FeedbackInterpretationError(f"Feedback operation has no 'op': {dict(data)!r}")
        except ValueError:
            raise FeedbackInterpretationError(f"Unknown feedback operation: {data['op']!r}")
        return cls(
            op=op,
            credit=float(data.get("credit", 0.0)),
            factor=float(data.get("factor", 1.0)),
            scale=float(data.get("scale", 1.0)),
            message=str(data.get("message", "") or ""),
            invalid=bool(data.get("invalid", False)),
        )

    @classmethod
    def coerce_all(cls, items: Iterable[Any]) -> Tuple[FeedbackOperation, ...]:
        """Coerce a mixed sequence of operations and mappings."""
        return tuple(
            item if isinstance(item, FeedbackOperation) else cls.from_dict(item)
            for item in items
        )

    def to_dict(self) -> dict:
        d: dict = {"op": str(self.op)}
        if self.op in (FeedbackOp.SET_CREDIT, FeedbackOp.ADD_CREDIT, FeedbackOp.SUB_CREDIT):
            d["credit"] = self.credit
        elif self.op is FeedbackOp.MULTIPLY_CREDIT:
            d["factor"] = self.factor
        elif self.op is FeedbackOp.START_LIFT:
            d["scale"] = self.scale
        elif self.op is FeedbackOp.END and self.invalid:
            d["invalid"] = True
        if self.message:
            d["message"] = self.message
        return d


@dataclass(frozen=True, slots=True)
class FeedbackMessage:
    """
    One entry in a part's feedback log.

    Attributes:
        op: ADD_CREDIT, SUB_CREDIT or COMMENT
        credit: Change in credit for credit entries, None for comments
        message: Text explaining the entry
    """

    op: LogOp
    credit: Optional[float] = None
    message: str = ""

    @classmethod
    def comment(cls, message: str) -> FeedbackMessage:
        return cls(LogOp.COMMENT, None, message)

    def to_dict(self) -> dict:
        d: dict = {"op": str(self.op), "message": self.message}
        if self.credit is not None:
            d["credit"] = self.credit
        return d

    def __repr__(self) -> str:
        if self.credit is None:
            return f"FeedbackMessage({self.op.value}, {self.message!r})"
        return f"FeedbackMessage({self.op.value}, {self.credit:g}, {self.message!r})"


@dataclass(frozen=True)
class MarkingResult:
    """
    Result of marking a learner's answer against one evaluation scope.

    Attributes:
        credit: Proportion of the available marks earned (not clamped)
        answered: False if the answer could not be marked
        warnings: Messages to show next to the answer
        marking_feedback: Feedback log produced while marking
    """

    credit: float
    answered: bool
    warnings: Tuple[str, ...] = ()
    marking_feedback: Tuple[FeedbackMessage, ...] = field(default_factory=tuple)

    def with_comment_first(self, message: str) -> MarkingResult:
        """Return a copy whose feedback log starts with a comment."""
        return replace(
            self,
            marking_feedback=(FeedbackMessage.comment(message),) + self.marking_feedback,
        )

    def to_dict(self) -> dict:
        return {
            "credit": self.credit,
            "answered": self.answered,
            "warnings": list(self.warnings),
            "marking_feedback": [m.to_dict() for m in self.marking_feedback],
        }

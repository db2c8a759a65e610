"""
Module: marking.ledger

Purpose:
    Provides CreditLedger - the mutable credit value of a part together with
    its append-only feedback log. Every adjustment records an audit entry so
    the learner can see how their marks were arrived at.

Key Functions:
    - CreditLedger.set_credit(value, message)
    - CreditLedger.add_credit(delta, message)
    - CreditLedger.sub_credit(delta, message)
    - CreditLedger.multiply_credit(factor, message)
    - CreditLedger.comment(message)
    - CreditLedger.reset(prefix): Start a new marking pass

Dependencies:
    - marking_toolkit.core.models.feedback

Used By:
    - marking.interpreter.FeedbackInterpreter
    - parts.part.Part

Note:
    No operation clamps credit. Flooring and clipping belong to the score
    aggregator.
"""

from __future__ import annotations

from typing import Iterable, List, Tuple

from marking_toolkit.core.models.feedback import FeedbackMessage, LogOp


class CreditLedger:
    """
    Credit plus feedback log for a single marking pass.

    Example:
        >>> ledger = CreditLedger()
        >>> ledger.set_credit(1, "Correct")
        >>> ledger.multiply_credit(0.5, "Penalty")
        >>> ledger.credit
        0.5
        >>> [m.credit for m in ledger.feedback]
        [1.0, -0.5]
    """

    def __init__(self, credit: float = 0.0, feedback: Iterable[FeedbackMessage] = ()):
        self.credit = credit
        self._feedback: List[FeedbackMessage] = list(feedback)

    @property
    def feedback(self) -> Tuple[FeedbackMessage, ...]:
        """Snapshot of the feedback log."""
        return tuple(self._feedback)

    def reset(self, prefix: Iterable[FeedbackMessage] = (), credit: float = 0.0) -> None:
        """Replace the log with a copy of ``prefix`` and reset credit."""
        self.credit = credit
        self._feedback = list(prefix)

    # ─────────────────────────────────────────────────────────────────────────
    # Credit Operations
    # ─────────────────────────────────────────────────────────────────────────

    def set_credit(self, credit: float, message: str = "") -> None:
        """Set credit to an absolute value, logging the change."""
        old = self.credit
        self.credit = credit
        self._feedback.append(FeedbackMessage(LogOp.ADD_CREDIT, self.credit - old, message))

    def add_credit(self, credit: float, message: str = "") -> None:
        self.credit += credit
        self._feedback.append(FeedbackMessage(LogOp.ADD_CREDIT, credit, message))

    def sub_credit(self, credit: float, message: str = "") -> None:
        self.credit -= credit
        self._feedback.append(FeedbackMessage(LogOp.SUB_CREDIT, credit, message))

    def multiply_credit(self, factor: float, message: str = "") -> None:
        """Multiply credit, e.g. to apply a penalty. Logs the resulting change."""
        old = self.credit
        self.credit *= factor
        self._feedback.append(FeedbackMessage(LogOp.ADD_CREDIT, self.credit - old, message))

    def comment(self, message: str) -> None:
        self._feedback.append(FeedbackMessage.comment(message))

    def __repr__(self) -> str:
        return f"CreditLedger(credit={self.credit:g}, entries={len(self._feedback)})"

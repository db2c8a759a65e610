"""
Module: marking.interpreter

Purpose:
    Execute the feedback operations emitted by a marking script against a
    CreditLedger. Implemented as an explicit state machine: an instruction
    pointer, a current scale factor and a stack of lift frames.

Key Classes:
    - LiftFrame: Saved credit/scale for an open lift region
    - InterpreterState: Mutable machine state for one run
    - FeedbackInterpreter: Runs a sequence of FeedbackOperation

Lift semantics:
    ``start_lift(s)`` isolates the operations up to the matching ``end_lift``.
    Their credit is computed from zero, multiplied by ``s`` and added to the
    credit that was current when the lift started. Lifts nest.

    An ``end`` inside a lift only ends the lift body: execution resumes at
    the matching ``end_lift``. An ``end`` outside any lift stops the scan.

Dependencies:
    - marking_toolkit.core.models.feedback
    - marking.ledger.CreditLedger

Used By:
    - marking.invocation.MarkingInvocation
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from marking_toolkit.core.models.feedback import FeedbackOp, FeedbackOperation
from marking_toolkit.errors import FeedbackInterpretationError

from .ledger import CreditLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LiftFrame:
    """Credit and scale saved when a lift region starts."""
    saved_credit: float
    saved_scale: float


@dataclass
class InterpreterState:
    """
    Machine state for a single run.

    Attributes:
        pc: Index of the next operation to execute
        scale: Multiplier applied to credit operations
        frames: Open lift frames, innermost last
        valid: False once an unlifted ``end`` marks the answer invalid
        halted: True once the scan has terminated
    """
    pc: int = 0
    scale: float = 1.0
    frames: List[LiftFrame] = field(default_factory=list)
    valid: bool = True
    halted: bool = False


class FeedbackInterpreter:
    """
    Applies feedback operations to a ledger.

    Args:
        ledger: Ledger receiving credit changes and comments
        warn: Callback receiving warning messages

    Example:
        >>> ledger = CreditLedger()
        >>> ops = [FeedbackOperation.start_lift(0.5),
        ...        FeedbackOperation.add_credit(1.0),
        ...        FeedbackOperation.end_lift()]
        >>> FeedbackInterpreter(ledger, lambda m: None).run(ops)
        True
        >>> ledger.credit
        0.5
    """

    def __init__(self, ledger: CreditLedger, warn: Callable[[str], None]):
        self.ledger = ledger
        self.warn = warn
        self._handlers: Dict[FeedbackOp, Callable[[InterpreterState, FeedbackOperation, Sequence[FeedbackOperation]], None]] = {
            FeedbackOp.SET_CREDIT: self._set_credit,
            FeedbackOp.ADD_CREDIT: self._add_credit,
            FeedbackOp.SUB_CREDIT: self._sub_credit,
            FeedbackOp.MULTIPLY_CREDIT: self._multiply_credit,
            FeedbackOp.WARNING: self._warning,
            FeedbackOp.FEEDBACK: self._feedback,
            FeedbackOp.START_LIFT: self._start_lift,
            FeedbackOp.END_LIFT: self._end_lift,
            FeedbackOp.END: self._end,
        }

    def run(self, operations: Sequence[FeedbackOperation]) -> bool:
        """
        Execute ``operations`` from the start.

        Args:
            operations: Feedback operations in script order

        Returns:
            True if the answer is valid (could be marked)

        Raises:
            FeedbackInterpretationError: On an ``end_lift`` with no open lift
        """
        state = InterpreterState()
        while not state.halted and state.pc < len(operations):
            op = operations[state.pc]
            state.pc += 1
            logger.debug("feedback op %d: %s (scale=%g, depth=%d)", state.pc - 1, op.op, state.scale, len(state.frames))
            self._handlers[op.op](state, op, operations)

        # Regions left open by a malformed script are closed in LIFO order
        while state.frames:
            logger.debug("Closing unterminated lift at depth %d", len(state.frames))
            self._close_lift(state)

        return state.valid

    # ─────────────────────────────────────────────────────────────────────────
    # Handlers
    # ─────────────────────────────────────────────────────────────────────────

    def _set_credit(self, state, op, operations) -> None:
        self.ledger.set_credit(state.scale * op.credit, op.message)

    def _add_credit(self, state, op, operations) -> None:
        self.ledger.add_credit(state.scale * op.credit, op.message)

    def _sub_credit(self, state, op, operations) -> None:
        self.ledger.sub_credit(state.scale * op.credit, op.message)

    def _multiply_credit(self, state, op, operations) -> None:
        self.ledger.multiply_credit(state.scale * op.factor, op.message)

    def _warning(self, state, op, operations) -> None:
        self.warn(op.message)

    def _feedback(self, state, op, operations) -> None:
        self.ledger.comment(op.message)

    def _start_lift(self, state: InterpreterState, op: FeedbackOperation, operations) -> None:
        state.frames.append(LiftFrame(saved_credit=self.ledger.credit, saved_scale=state.scale))
        self.ledger.credit = 0.0
        state.scale = op.scale

    def _end_lift(self, state: InterpreterState, op, operations) -> None:
        if not state.frames:
            raise FeedbackInterpretationError(
                f"end_lift at position {state.pc - 1} has no matching start_lift"
            )
        self._close_lift(state)

    def _end(self, state: InterpreterState, op: FeedbackOperation, operations: Sequence[FeedbackOperation]) -> None:
        if state.frames:
            target = self._matching_end_lift(operations, state.pc)
            if target is None:
                logger.debug("end inside lift with no end_lift; stopping")
                state.halted = True
            else:
                state.pc = target
            return
        state.halted = True
        if op.invalid:
            state.valid = False

    # ─────────────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────────────

    def _close_lift(self, state: InterpreterState) -> None:
        frame = state.frames.pop()
        lifted = self.ledger.credit
        self.ledger.credit = frame.saved_credit
        self.ledger.add_credit(lifted * frame.saved_scale)
        state.scale = frame.saved_scale

    @staticmethod
    def _matching_end_lift(operations: Sequence[FeedbackOperation], start: int) -> Optional[int]:
        """Index of the end_lift closing the innermost open lift, searching from ``start``."""
        depth = 0
        for index in range(start, len(operations)):
            op = operations[index].op
            if op is FeedbackOp.START_LIFT:
                depth += 1
            elif op is FeedbackOp.END_LIFT:
                if depth == 0:
                    return index
                depth -= 1
        return None

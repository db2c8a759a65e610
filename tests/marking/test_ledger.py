"""
Unit Tests for CreditLedger

Every credit change must leave an audit entry in the feedback log.
"""

import pytest

from marking_toolkit.core.models.feedback import FeedbackMessage, LogOp
from marking_toolkit.marking.ledger import CreditLedger


class TestCreditLedger:
    """Tests for CreditLedger."""

    def test_set_credit_when_called_then_logs_change(self):
        """set_credit logs the difference from the previous value."""
        ledger = CreditLedger(credit=0.25)
        ledger.set_credit(1, "Correct")

        assert ledger.credit == 1
        assert ledger.feedback == (FeedbackMessage(LogOp.ADD_CREDIT, 0.75, "Correct"),)

    def test_add_credit_when_called_then_logs_amount(self):
        ledger = CreditLedger()
        ledger.add_credit(0.5, "Half")
        assert ledger.credit == 0.5
        assert ledger.feedback[-1] == FeedbackMessage(LogOp.ADD_CREDIT, 0.5, "Half")

    def test_sub_credit_when_called_then_logs_sub_entry(self):
        ledger = CreditLedger(credit=1)
        ledger.sub_credit(0.25, "Units missing")
        assert ledger.credit == 0.75
        assert ledger.feedback[-1] == FeedbackMessage(LogOp.SUB_CREDIT, 0.25, "Units missing")

    def test_multiply_credit_when_called_then_logs_change(self):
        """multiply_credit logs the resulting change as an add entry."""
        ledger = CreditLedger()
        ledger.set_credit(1, "Correct")
        ledger.multiply_credit(0.5, "Penalty")

        assert ledger.credit == 0.5
        assert [m.credit for m in ledger.feedback] == [1.0, -0.5]

    def test_credit_when_out_of_range_then_not_clamped(self):
        """The ledger never clamps; that is the aggregator's job."""
        ledger = CreditLedger()
        ledger.add_credit(1)
        ledger.add_credit(1)
        assert ledger.credit == 2
        ledger.sub_credit(3)
        assert ledger.credit == -1

    def test_comment_when_called_then_no_credit_change(self):
        ledger = CreditLedger(credit=0.5)
        ledger.comment("Well done")
        assert ledger.credit == 0.5
        assert ledger.feedback == (FeedbackMessage.comment("Well done"),)

    def test_feedback_when_modified_then_snapshot_unaffected(self):
        """The feedback property returns an immutable snapshot."""
        ledger = CreditLedger()
        snapshot = ledger.feedback
        ledger.comment("Later")
        assert snapshot == ()
        assert len(ledger.feedback) == 1

    def test_reset_when_prefix_given_then_log_starts_with_prefix(self):
        prefix = (FeedbackMessage.comment("You revealed the steps."),)
        ledger = CreditLedger(credit=1, feedback=[FeedbackMessage.comment("Old")])

        ledger.reset(prefix)

        assert ledger.credit == 0
        assert ledger.feedback == prefix

    @pytest.mark.parametrize("start", [0.0, 0.3, 1.0])
    def test_set_credit_when_logged_then_sum_matches_final_credit(self, start):
        """Credit entries sum to the change in credit."""
        ledger = CreditLedger(credit=start)
        ledger.set_credit(0.9)
        ledger.add_credit(0.2)
        ledger.multiply_credit(0.5)
        ledger.sub_credit(0.1)

        total = sum(
            m.credit if m.op is LogOp.ADD_CREDIT else -m.credit
            for m in ledger.feedback
        )
        assert total == pytest.approx(ledger.credit - start)

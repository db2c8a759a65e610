"""
Unit Tests for Marking Invocation

Running a part's marking script and applying its feedback.
"""

import pytest

from marking_toolkit.core.models.feedback import LogOp
from marking_toolkit.core.models.settings import PartSettings
from marking_toolkit.errors import MarkingConfigurationError, MarkingEvaluationError
from marking_toolkit.marking import invocation
from marking_toolkit.marking.scope import Scope
from marking_toolkit.marking.scripts import CallableMarkingScript, MarkingScript, ScriptResult
from marking_toolkit.parts import create_part


class DictScript:
    """Evaluator returning plain mappings, like an external script engine."""

    notes = ("interpreted_answer", "mark")

    def __init__(self, operations):
        self.operations = operations
        self.scopes = []

    def evaluate(self, scope, parameters):
        self.scopes.append(scope)
        return ScriptResult(
            states={"mark": list(self.operations)},
            values={"interpreted_answer": parameters["student_answer"], "mark": None},
        )


@pytest.fixture
def part(question):
    return create_part("answer", "p0", question, settings=PartSettings(marks=4, answer_variable="x"))


class TestMarkingParameters:
    """Tests for marking_parameters()."""

    def test_parameters_when_part_has_steps_then_included(self, question, part):
        step = create_part("answer", "p0s0", question, part, PartSettings(marks=1))
        part.add_step(step)
        part.answer_list = "12"
        step.answer_list = "3"

        params = part.marking_parameters(part.raw_student_answer())

        assert params["path"] == "p0"
        assert params["student_answer"] == "12"
        assert params["marks"] == 4
        assert params["part_type"] == "answer"
        assert params["settings"]["marks"] == 4
        assert params["steps"][0]["student_answer"] == "3"
        assert params["steps"][0]["path"] == "p0s0"

    def test_parameters_when_answer_part_then_includes_correct_answer(self, part):
        part.get_correct_answer(Scope({"x": 9}))
        assert part.marking_parameters(None)["correct_answer"] == 9


class TestMarkAnswer:
    """Tests for mark_answer()."""

    def test_mark_answer_when_no_script_then_raises_error(self, part):
        with pytest.raises(MarkingConfigurationError, match="no marking script"):
            invocation.mark_answer(part, Scope(), "1")

    def test_mark_answer_when_mark_note_raises_then_raises_evaluation_error(self, part):
        part.set_marking_script(CallableMarkingScript({
            "interpreted_answer": lambda ctx: ctx.student_answer,
            "mark": lambda ctx: int("not a number"),
        }))
        with pytest.raises(MarkingEvaluationError) as exc_info:
            invocation.mark_answer(part, Scope(), "1")
        assert exc_info.value.note == "mark"

    def test_mark_answer_when_other_note_raises_then_value_is_none(self, part):
        part.set_marking_script(CallableMarkingScript({
            "interpreted_answer": lambda ctx: 1 / 0,
            "mark": lambda ctx: ctx.correct(),
        }))
        result = invocation.mark_answer(part, Scope(), "1")

        assert result.values["interpreted_answer"] is None
        assert "interpreted_answer" in result.state_errors

    def test_mark_answer_when_called_then_part_unchanged(self, part, fixed_script):
        part.set_marking_script(fixed_script(1))
        invocation.mark_answer(part, Scope(), "1")
        assert part.credit == 0
        assert part.marking_feedback == ()


class TestApplyMark:
    """Tests for apply_mark() and mark_against_scope()."""

    def test_apply_mark_when_nothing_entered_then_zero_credit(self, part, fixed_script):
        part.set_marking_script(fixed_script(1))
        part.answer_list = None

        invocation.apply_mark(part, Scope())

        assert part.credit == 0
        assert part.marking_feedback[-1].message == "You did not enter an answer."

    def test_apply_mark_when_plain_mappings_then_coerced(self, part):
        script = DictScript([{"op": "set_credit", "credit": 1, "message": "Yes"}])
        assert isinstance(script, MarkingScript)
        part.set_marking_script(script)
        part.answer_list = "5"

        invocation.apply_mark(part, Scope())

        assert part.credit == 1
        assert part.answered is True
        assert part.interpreted_answer == "5"

    def test_apply_mark_when_no_mark_state_then_raises_error(self, part):
        """An evaluator that reports no ``mark`` state cannot mark the part."""

        class SilentScript:
            notes = ("interpreted_answer", "mark")

            def evaluate(self, scope, parameters):
                return ScriptResult(values={"interpreted_answer": parameters["student_answer"]})

        part.set_marking_script(SilentScript())
        part.answer_list = "5"

        with pytest.raises(MarkingEvaluationError, match="could not be marked") as excinfo:
            invocation.apply_mark(part, Scope())

        assert excinfo.value.note == "mark"
        assert part.answered is False

    def test_mark_against_scope_when_called_then_uses_given_scope(self, part):
        script = DictScript([])
        part.set_marking_script(script)
        part.answer_list = "5"
        scope = Scope({"x": 7})

        invocation.mark_against_scope(part, scope)

        assert script.scopes == [scope]
        assert part.correct_answer == 7

    def test_mark_against_scope_when_prefix_given_then_result_starts_from_it(self, part, fixed_script):
        part.set_marking_script(fixed_script(0.5))
        part.answer_list = "5"
        part.ledger.set_credit(1, "stale")

        result = invocation.mark_against_scope(part, Scope(), ["Earlier warning"])

        assert result.credit == 0.5
        assert result.answered is True
        assert result.warnings == ("Earlier warning",)
        assert [m.op for m in result.marking_feedback] == [LogOp.ADD_CREDIT]

    def test_mark_against_scope_when_invalid_end_then_not_answered(self, part):
        part.set_marking_script(CallableMarkingScript({
            "interpreted_answer": lambda ctx: None,
            "mark": lambda ctx: ctx.fail("That is not a number."),
        }))
        part.answer_list = "abc"

        result = invocation.mark_against_scope(part, Scope())

        assert result.answered is False
        assert result.credit == 0

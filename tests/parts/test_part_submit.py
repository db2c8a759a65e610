"""
Unit Tests for Part Submission

The submit flow: marking, adaptive strategies, steps, reveal and failure
handling.
"""

import pytest

from marking_toolkit.core.models.settings import PartSettings, VariableReplacement
from marking_toolkit.errors import MarkingEvaluationError, PartMarkingError, PrerequisiteError
from marking_toolkit.marking.scripts import CallableMarkingScript
from marking_toolkit.marking.variables import VariableDefinition
from marking_toolkit.parts import Question, create_part


class RecordingDisplay:
    """Records the calls a part makes on its display."""

    def __init__(self):
        self.calls = []

    def __getattr__(self, name):
        def record(*args):
            self.calls.append((name,) + args)
        return record


class RecordingStorage:
    def __init__(self):
        self.answered = []
        self.shown = []

    def part_answered(self, part):
        self.answered.append(part.path)

    def steps_shown(self, part):
        self.shown.append(part.path)

    def steps_hidden(self, part):
        pass


@pytest.fixture
def simple_part(question, fixed_script):
    """Factory for a top-level part with a fixed-credit script."""

    def factory(credit=0.5, marks=10, **settings):
        part = create_part("answer", "p0", question, settings=PartSettings(marks=marks, **settings))
        part.set_marking_script(fixed_script(credit))
        question.add_part(part)
        return part

    return factory


@pytest.fixture
def stepped_part(question, fixed_script):
    """Part worth 10 with a steps penalty of 2 and one step worth 5."""
    part = create_part("answer", "p0", question, settings=PartSettings(marks=10, steps_penalty=2))
    part.set_marking_script(fixed_script(1.0))
    step = create_part("answer", "p0s0", question, part, PartSettings(marks=5))
    step.set_marking_script(fixed_script(0.6))
    part.add_step(step)
    question.add_part(part)
    return part


class TestSubmit:
    """Tests for Part.submit() without adaptive marking."""

    def test_submit_when_answered_then_scored(self, question, simple_part):
        part = simple_part(credit=0.5)
        part.store_answer("anything")

        part.submit()

        assert part.answered is True
        assert part.credit == 0.5
        assert part.score == 5
        assert question.score == 5
        assert part.marking_feedback[-1].message == "You scored 5 marks for this part."

    def test_submit_when_answered_then_no_longer_dirty(self, simple_part):
        part = simple_part()
        part.store_answer("anything")
        assert part.is_dirty is True

        part.submit()

        assert part.is_dirty is False

    def test_submit_when_nothing_entered_then_warns_without_error(self, simple_part):
        part = simple_part(credit=1)

        part.submit()

        assert part.answered is False
        assert part.credit == 0
        assert part.score == 0
        assert part.warnings == ["No answer submitted."]
        assert part.marking_feedback[-1].message == "You did not answer this part."

    def test_submit_when_empty_string_then_treated_as_nothing_entered(self, simple_part):
        part = simple_part(credit=1)
        part.store_answer("")
        part.submit()
        assert part.answered is False

    def test_submit_when_minimum_marks_then_floor_applied(self, simple_part):
        part = simple_part(credit=0.2, enable_minimum_marks=True, minimum_marks=5)
        part.store_answer("anything")
        part.submit()
        assert part.score == 5

    def test_submit_when_script_raises_then_part_marking_error(self, question):
        part = create_part("answer", "p0", question, settings=PartSettings(marks=3))
        part.set_marking_script(CallableMarkingScript({
            "interpreted_answer": lambda ctx: None,
            "mark": lambda ctx: 1 / 0,
        }))
        question.add_part(part)
        part.store_answer("1")

        with pytest.raises(PartMarkingError) as exc_info:
            part.submit()

        assert isinstance(exc_info.value.__cause__, MarkingEvaluationError)
        assert exc_info.value.path == "p0"
        assert part.answered is False
        assert part.credit == 0
        assert part.score == 0
        assert part.submitting is False
        assert any("Error evaluating note 'mark'" in w for w in part.warnings)

    def test_submit_when_previously_scored_then_failure_resets_score(self, question, simple_part):
        part = simple_part(credit=1)
        part.store_answer("1")
        part.submit()
        assert question.score == 10

        part.marking_script = CallableMarkingScript({
            "interpreted_answer": lambda ctx: None,
            "mark": lambda ctx: 1 / 0,
        })
        with pytest.raises(PartMarkingError):
            part.submit()

        assert part.score == 0
        assert question.score == 0

    def test_submit_when_credit_exceeds_one_then_score_clamped_to_marks(self, question):
        """Credit is unclamped, but the part never scores more than its marks."""
        part = create_part("answer", "p0", question, settings=PartSettings(marks=10))

        def mark(ctx):
            ctx.add_credit(1, "First method.")
            ctx.add_credit(1, "Second method.")

        part.set_marking_script(CallableMarkingScript({
            "interpreted_answer": lambda ctx: ctx.student_answer,
            "mark": mark,
        }))
        question.add_part(part)
        part.store_answer("1")

        assert question.submit_part("p0") is True

        assert part.credit == 2
        assert part.score == 10
        assert question.score == 10

    def test_submit_when_display_and_storage_then_notified(self, simple_part):
        part = simple_part()
        part.display = RecordingDisplay()
        part.store = RecordingStorage()
        part.store_answer("1")

        part.submit()

        assert ("show_score", True) in part.display.calls
        assert part.store.answered == ["p0"]


class TestSteps:
    """Tests for steps, the steps penalty and reveal."""

    def test_submit_when_steps_shown_then_steps_folded_in_and_clipped(self, stepped_part):
        """Own credit 1 (base 8) plus step 3 of 5 is clipped to 8."""
        step = stepped_part.steps[0]
        stepped_part.show_steps()
        step.store_answer("s")
        stepped_part.store_answer("p")

        stepped_part.submit()

        assert step.score == pytest.approx(3)
        assert stepped_part.score == 8
        assert stepped_part.marking_feedback[0].message == (
            "You revealed the steps. The maximum you can score for this part is 8."
        )

    def test_add_step_when_called_then_attached_as_step(self, stepped_part):
        step = stepped_part.steps[0]
        assert step.is_step is True
        assert step.parent is stepped_part
        assert stepped_part.steps == [step]

    def test_show_steps_when_answered_then_resubmits_with_penalty(self, question, fixed_script):
        part = create_part("answer", "p0", question, settings=PartSettings(marks=10, steps_penalty=2))
        part.set_marking_script(fixed_script(0.5))
        part.add_step(create_part("answer", "p0s0", question, part, PartSettings(marks=5)))
        part.steps[0].set_marking_script(fixed_script(0))
        question.add_part(part)
        part.store_answer("p")
        part.submit()
        assert part.score == 5

        part.show_steps()

        assert part.steps_shown is True
        assert part.score == pytest.approx(4)

    def test_show_steps_when_storage_then_recorded_unless_dont_store(self, stepped_part):
        stepped_part.store = RecordingStorage()
        stepped_part.show_steps(dont_store=True)
        assert stepped_part.store.shown == []
        stepped_part.show_steps()
        assert stepped_part.store.shown == ["p0"]

    def test_step_answer_when_stored_then_parent_dirty(self, stepped_part):
        stepped_part.steps[0].store_answer("s")
        assert stepped_part.is_dirty is True

    def test_step_submit_when_alone_then_parent_score_recalculated(self, question, stepped_part):
        stepped_part.show_steps()
        step = stepped_part.steps[0]
        step.store_answer("s")

        step.submit()

        assert stepped_part.score == pytest.approx(3)

    def test_reveal_answer_when_scored_then_zero(self, question, stepped_part):
        stepped_part.store_answer("p")
        stepped_part.submit()
        assert question.score == 10

        stepped_part.reveal_answer()

        assert stepped_part.revealed is True
        assert stepped_part.steps_open is True
        assert stepped_part.steps[0].revealed is True
        assert stepped_part.score == 0
        assert question.score == 0

    def test_show_steps_when_revealed_then_no_penalty(self, stepped_part):
        stepped_part.reveal_answer()
        stepped_part.show_steps()
        assert stepped_part.steps_shown is False

    def test_hide_steps_when_called_then_closed(self, stepped_part):
        stepped_part.open_steps()
        stepped_part.hide_steps()
        assert stepped_part.steps_open is False


class TestAdaptiveMarking:
    """Tests for the variable replacement strategies."""

    def test_originalfirst_when_original_correct_then_no_replacement(self, ecf_question):
        q = ecf_question("originalfirst")
        p0, p1 = q.get_part("p0"), q.get_part("p1")
        p0.store_answer(2)
        p0.submit()
        p1.store_answer(6)

        p1.submit()

        assert p1.score == 2
        assert "This part was marked using your answers to previous parts." not in [
            m.message for m in p1.marking_feedback
        ]
        assert p0.error_carried_forward_back_references == set()

    def test_originalfirst_when_replacement_better_then_replacement_used(self, ecf_question):
        """A wrong p0 answer of 5 makes 15 the right answer for p1."""
        q = ecf_question("originalfirst")
        p0, p1 = q.get_part("p0"), q.get_part("p1")
        p0.store_answer(5)
        p0.submit()
        p1.store_answer(15)

        p1.submit()

        assert p1.credit == 1
        assert p1.score == 2
        assert p1.marking_feedback[0].message == "This part was marked using your answers to previous parts."
        assert p0.error_carried_forward_back_references == {"p1"}

    def test_originalfirst_when_equal_credit_then_original_kept(self, ecf_question):
        q = ecf_question("originalfirst")
        p0, p1 = q.get_part("p0"), q.get_part("p1")
        p0.store_answer(5)
        p0.submit()
        p1.store_answer(99)

        p1.submit()

        assert p1.score == 0
        assert p1.marking_feedback[0].message != "This part was marked using your answers to previous parts."

    def test_alwaysreplace_when_upstream_answered_then_only_replacement_counts(self, ecf_question):
        q = ecf_question("alwaysreplace")
        p0, p1 = q.get_part("p0"), q.get_part("p1")
        p0.store_answer(5)
        p0.submit()
        p1.store_answer(6)

        p1.submit()

        assert p1.score == 0
        assert p1.marking_feedback[0].message == "This part was marked using your answers to previous parts."

    def test_alwaysreplace_when_optional_upstream_unanswered_then_original_values(self, ecf_question):
        q = ecf_question("alwaysreplace")
        p1 = q.get_part("p1")
        p1.store_answer(6)

        p1.submit()

        assert p1.score == 2

    def _reciprocal_question(self, strategy, fixed_script):
        """y = 1/x; p1 takes x from p0 and always scores half credit."""
        q = Question([
            VariableDefinition("x", lambda s: 2),
            VariableDefinition("y", lambda s: 1 / s["x"], ("x",)),
        ])
        p0 = create_part("answer", "p0", q, settings=PartSettings(marks=1, answer_variable="x"))
        p0.set_marking_script(fixed_script(0))
        p1 = create_part("answer", "p1", q, settings=PartSettings(
            marks=10,
            answer_variable="y",
            variable_replacement_strategy=strategy,
            variable_replacements=(VariableReplacement("x", "p0"),),
        ))
        p1.set_marking_script(fixed_script(0.5))
        q.add_part(p0)
        q.add_part(p1)
        p0.store_answer(0)
        p0.submit()
        p1.store_answer(0.5)
        return q, p0, p1

    def test_originalfirst_when_replacement_scope_fails_then_original_kept(self, fixed_script):
        """An upstream answer of 0 makes y uncomputable; the original result still counts."""
        q, p0, p1 = self._reciprocal_question("originalfirst", fixed_script)

        p1.submit()

        assert p1.answered is True
        assert p1.score == 5
        assert q.score == 5
        assert p0.error_carried_forward_back_references == set()

    def test_alwaysreplace_when_replacement_scope_fails_then_raises_error(self, fixed_script):
        """With no original result to fall back on the failure is reported."""
        q, p0, p1 = self._reciprocal_question("alwaysreplace", fixed_script)

        with pytest.raises(PartMarkingError) as exc_info:
            p1.submit()

        assert isinstance(exc_info.value.__cause__, MarkingEvaluationError)
        assert p1.answered is False
        assert p1.score == 0

    def test_submit_when_must_go_first_unanswered_then_prerequisite_error(self, ecf_question):
        """Marking p1 before the must-go-first p0 fails and leaves p1 unanswered."""
        q = ecf_question("alwaysreplace", must_go_first=True)
        p1 = q.get_part("p1")
        p1.store_answer(6)

        with pytest.raises(PartMarkingError) as exc_info:
            p1.submit()

        assert isinstance(exc_info.value.__cause__, PrerequisiteError)
        assert p1.answered is False
        assert p1.score == 0
        assert "You must answer p0 first." in p1.warnings

    def test_submit_when_must_go_first_unanswered_then_script_not_run(self, ecf_question):
        q = ecf_question("originalfirst", must_go_first=True)
        p1 = q.get_part("p1")
        calls = []
        p1.set_marking_script(CallableMarkingScript({
            "interpreted_answer": lambda ctx: calls.append("interpreted_answer"),
            "mark": lambda ctx: calls.append("mark"),
        }))
        p1.store_answer(6)

        with pytest.raises(PartMarkingError):
            p1.submit()

        assert calls == []

import sys
from pathlib import Path

import pytest

# Add src to sys.path so we can import marking_toolkit
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from marking_toolkit.core.models.settings import PartSettings, VariableReplacement  # noqa: E402
from marking_toolkit.marking.scripts import CallableMarkingScript  # noqa: E402
from marking_toolkit.marking.variables import VariableDefinition  # noqa: E402
from marking_toolkit.parts import Question, QuestionConfig, create_part  # noqa: E402


# Common test fixtures
@pytest.fixture
def equals_script():
    """Factory for a script awarding full credit when the answer equals a scope variable."""

    def factory(variable: str) -> CallableMarkingScript:
        def mark(ctx):
            if ctx.student_answer == ctx.scope[variable]:
                ctx.correct("Correct.")
            else:
                ctx.incorrect("Incorrect.")

        return CallableMarkingScript(
            {"interpreted_answer": lambda ctx: ctx.student_answer, "mark": mark},
            name=f"equals-{variable}",
        )

    return factory


@pytest.fixture
def fixed_script():
    """Factory for a script that always awards the same credit."""

    def factory(credit: float) -> CallableMarkingScript:
        return CallableMarkingScript({
            "interpreted_answer": lambda ctx: ctx.student_answer,
            "mark": lambda ctx: ctx.set_credit(credit, "Fixed."),
        })

    return factory


@pytest.fixture
def question():
    """Empty question with no variables."""
    return Question(name="test")


@pytest.fixture
def ecf_question(equals_script):
    """
    Factory for a two-part question where p1 carries p0's answer forward.

    Variables: x = 2, y = 3x. p0 asks for x, p1 asks for y and replaces x
    with the answer to p0.
    """

    def factory(strategy="originalfirst", must_go_first=False, config=None):
        q = Question(
            [
                VariableDefinition("x", lambda s: 2),
                VariableDefinition("y", lambda s: s["x"] * 3, ("x",)),
            ],
            config=config or QuestionConfig(),
            name="ecf",
        )
        p0 = create_part("answer", "p0", q, settings=PartSettings(marks=1, answer_variable="x"))
        p0.set_marking_script(equals_script("x"))
        q.add_part(p0)

        p1 = create_part("answer", "p1", q, settings=PartSettings(
            marks=2,
            answer_variable="y",
            variable_replacement_strategy=strategy,
            variable_replacements=(VariableReplacement("x", "p0", must_go_first),),
        ))
        p1.set_marking_script(equals_script("y"))
        q.add_part(p1)
        return q

    return factory

"""
Module: loading.loader

Purpose:
    Build a Question from a JSON-compatible definition. Marking scripts,
    lifecycle hooks and variable definitions are Python objects supplied by
    the caller and referenced from the definition by name.

Key Functions:
    - load_question(): Build a question from a definition mapping
    - load_question_file(): Read a JSON definition file, then load_question()
    - parse_settings(): PartSettings from a part definition

Process:
    1. Validate the definition against question.schema.json
    2. Create the Question (computes variables, rejects cycles)
    3. Create each part and its steps, paths "p0", "p0s0", ...
    4. Attach hooks and marking scripts (required notes checked here)
    5. Check every variable replacement names a known part and variable

Dependencies:
    - json (std)
    - pathlib (std)
    - marking_toolkit.core.schemas.validator: Schema validation
    - marking_toolkit.parts: Question, create_part

Used By:
    - Host applications
    - tests/loading
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, Optional

from marking_toolkit.core.models.settings import PartSettings, VariableReplacement
from marking_toolkit.core.schemas.validator import validate_question_definition
from marking_toolkit.errors import MarkingConfigurationError
from marking_toolkit.marking.scripts import MarkingScript
from marking_toolkit.marking.variables import VariableDefinition
from marking_toolkit.parts import Part, Question, QuestionConfig, create_part

logger = logging.getLogger(__name__)


def parse_settings(data: Mapping[str, Any]) -> PartSettings:
    """
    Create PartSettings from a part definition.

    Args:
        data: Validated part definition

    Returns:
        PartSettings instance
    """
    adaptive = data.get("adaptive_marking", {})
    replacements = tuple(
        VariableReplacement.from_dict(r) for r in adaptive.get("replacements", [])
    )
    return PartSettings(
        marks=data.get("marks", 0),
        steps_penalty=data.get("steps_penalty", 0),
        enable_minimum_marks=data.get("enable_minimum_marks", False),
        minimum_marks=data.get("minimum_marks", 0),
        variable_replacement_strategy=adaptive.get("strategy"),
        variable_replacements=replacements,
        show_correct_answer=data.get("show_correct_answer", True),
        show_feedback_icon=data.get("show_feedback_icon", True),
        answer_variable=data.get("answer_variable"),
    )


def load_question(
    definition: Mapping[str, Any],
    scripts: Mapping[str, MarkingScript],
    *,
    variables: Iterable[VariableDefinition] = (),
    constants: Optional[Mapping[str, Any]] = None,
    hooks: Optional[Mapping[str, Callable[..., Any]]] = None,
    config: Optional[QuestionConfig] = None,
) -> Question:
    """
    Build a question from its definition.

    Args:
        definition: Question definition (see question.schema.json)
        scripts: Marking scripts by name, referenced by ``marking_script``
        variables: Question variable definitions
        constants: Fixed values visible to every variable
        hooks: Hook callables by name, referenced by ``scripts[].script``
        config: Question behaviour switches

    Returns:
        Question with every part created and configured

    Raises:
        DefinitionValidationError: If the definition fails schema validation
        MarkingConfigurationError: On unknown part types, scripts, hooks,
            missing required notes or bad replacement rules
        VariableDependencyError: On circular variable definitions

    Example:
        >>> question = load_question(
        ...     {"schema_version": 1, "parts": [{"type": "answer", "marks": 2, "marking_script": "exact"}]},
        ...     {"exact": exact_script},
        ... )
        >>> question.marks
        2
    """
    validate_question_definition(dict(definition))

    question = Question(variables, constants, config, name=definition.get("name", ""))
    for index, part_def in enumerate(definition["parts"]):
        part = _build_part(part_def, f"p{index}", question, None, scripts, hooks or {})
        question.add_part(part)

    _check_replacements(question)

    logger.info(
        "Loaded question %r: %d parts, %d variables",
        question.name, len(question.part_dictionary), len(question.definitions),
    )
    return question


def load_question_file(path: Path, scripts: Mapping[str, MarkingScript], **kwargs: Any) -> Question:
    """
    Load a question from a JSON definition file.

    Raises:
        MarkingConfigurationError: If the file cannot be read or parsed
    """
    try:
        definition = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise MarkingConfigurationError(f"Cannot read question definition {path}: {e}") from e
    return load_question(definition, scripts, **kwargs)


def _build_part(
    data: Mapping[str, Any],
    path: str,
    question: Question,
    parent: Optional[Part],
    scripts: Mapping[str, MarkingScript],
    hooks: Mapping[str, Callable[..., Any]],
) -> Part:
    """Create a part and its steps recursively."""
    hook_specs = []
    for entry in data.get("scripts", []):
        fn = hooks.get(entry["script"])
        if fn is None:
            raise MarkingConfigurationError(f"Unknown script {entry['script']!r} for {path}")
        hook_specs.append((entry["name"], entry["order"], fn))

    part = create_part(data["type"], path, question, parent, parse_settings(data), hook_specs)

    script_name = data.get("marking_script")
    if script_name is not None:
        script = scripts.get(script_name)
        if script is None:
            raise MarkingConfigurationError(f"Unknown marking script {script_name!r} for {path}")
        part.set_marking_script(script)
    elif part.does_marking:
        raise MarkingConfigurationError(f"Part {path} of type {part.type!r} needs a marking script")

    for index, step_def in enumerate(data.get("steps", [])):
        step = _build_part(step_def, f"{path}s{index}", question, part, scripts, hooks)
        part.add_step(step)

    return part


def _check_replacements(question: Question) -> None:
    """Every replacement must name another known part and a question variable."""
    for part in question.part_dictionary.values():
        for rule in part.settings.variable_replacements:
            if rule.part == part.path:
                raise MarkingConfigurationError(f"Part {part.path} cannot replace variables with its own answer")
            if rule.part not in question.part_dictionary:
                raise MarkingConfigurationError(
                    f"Variable replacement in {part.path} refers to unknown part {rule.part!r}"
                )
            if rule.variable not in question.scope:
                raise MarkingConfigurationError(
                    f"Variable replacement in {part.path} refers to unknown variable {rule.variable!r}"
                )

"""
Marking Package

The scoring core: credit ledger, feedback interpreter, marking-script
invocation, replacement scopes and score aggregation.
"""

from .aggregator import ScoreOutcome, StepScore, aggregate_score
from .interpreter import FeedbackInterpreter
from .ledger import CreditLedger
from .replacement import ReplacementScopeBuilder
from .scope import Scope
from .scripts import REQUIRED_NOTES, CallableMarkingScript, MarkingScript, NoteContext, ScriptResult
from .variables import VariableDefinition, make_variables, variable_dependants

__all__ = [
    "ScoreOutcome",
    "StepScore",
    "aggregate_score",
    "FeedbackInterpreter",
    "CreditLedger",
    "ReplacementScopeBuilder",
    "Scope",
    "REQUIRED_NOTES",
    "CallableMarkingScript",
    "MarkingScript",
    "NoteContext",
    "ScriptResult",
    "VariableDefinition",
    "make_variables",
    "variable_dependants",
]

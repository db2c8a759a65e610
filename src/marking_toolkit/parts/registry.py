"""
Module: parts.registry

Purpose:
    Map part type names to Part subclasses and create parts by type name.

Key Functions:
    - register_part_type(name): Class decorator adding a part type
    - create_part(type, path, question, ...): Instantiate a registered type

Used By:
    - parts.types
    - loading.loader
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, Optional, Tuple, Type

from marking_toolkit.core.models.settings import PartSettings
from marking_toolkit.errors import MarkingConfigurationError

from .hooks import CONSTRUCTOR, run_hook
from .part import Part

if TYPE_CHECKING:
    from .question import Question

logger = logging.getLogger(__name__)

PART_TYPES: Dict[str, Type[Part]] = {}

HookSpec = Tuple[str, str, Callable[..., Any]]


def register_part_type(name: str) -> Callable[[Type[Part]], Type[Part]]:
    """Register a Part subclass under ``name`` and set its ``type``."""

    def decorator(cls: Type[Part]) -> Type[Part]:
        if name in PART_TYPES and PART_TYPES[name] is not cls:
            logger.warning("Part type %r re-registered by %s", name, cls.__name__)
        cls.type = name
        PART_TYPES[name] = cls
        return cls

    return decorator


def create_part(
    type_name: str,
    path: str,
    question: Question,
    parent: Optional[Part] = None,
    settings: Optional[PartSettings] = None,
    hooks: Iterable[HookSpec] = (),
) -> Part:
    """
    Create a part of a registered type.

    Hooks are attached before the ``constructor`` hooks run.

    Args:
        type_name: Registered part type, like "answer"
        path: Question-unique part path
        question: Owning question
        parent: Owning part for steps
        settings: Part configuration
        hooks: ``(method name, order, callable)`` triples

    Returns:
        The new part

    Raises:
        MarkingConfigurationError: If the type is not registered
    """
    cls = PART_TYPES.get(type_name)
    if cls is None:
        raise MarkingConfigurationError(f"Unknown part type {type_name!r} for {path}")

    part = cls(path, question, parent, settings)
    for name, order, fn in hooks:
        part.add_hook(name, order, fn)
    for hook in part.hooks.get(CONSTRUCTOR):
        run_hook(part, hook)
    return part

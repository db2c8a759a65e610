"""
Module: parts.hooks

Purpose:
    Per-part lifecycle hooks. A question author can attach Python callables
    that run instead of, before or after a part's lifecycle methods. Hooks
    are dispatched through an explicit call chain built per call; the part's
    methods are never replaced.

Key Classes:
    - HookOrder: INSTEAD, BEFORE or AFTER
    - Hook: A named callable with an order
    - HookRegistry: Ordered hooks per method name

Key Functions:
    - hookable: Decorator routing a Part method through its hooks

Chain semantics:
    Hooks are applied in registration order, each wrapping the chain built
    so far:
    - INSTEAD: the hook replaces the chain
    - BEFORE: the hook runs, then the chain; the chain's result is returned
    - AFTER: the chain runs, then the hook; the hook's result is returned

Dependencies:
    - functools (std)

Used By:
    - parts.part.Part
    - parts.registry.create_part (the "constructor" hook)
"""

from __future__ import annotations

import functools
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Tuple

from marking_toolkit.errors import MarkingConfigurationError, MarkingError, PartScriptError

CONSTRUCTOR = "constructor"

HOOKABLE_METHODS = frozenset({
    "submit",
    "mark",
    "calculate_score",
    "get_correct_answer",
    "set_student_answer",
    "student_answer_as_value",
    "show_steps",
    "reveal_answer",
})


class HookOrder(str, Enum):
    """When a hook runs relative to the method it is attached to."""
    INSTEAD = "instead"
    BEFORE = "before"
    AFTER = "after"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Hook:
    """A callable attached to a lifecycle method. Called as ``fn(part, *args)``."""
    name: str
    order: HookOrder
    fn: Callable[..., Any]


class HookRegistry:
    """Hooks attached to one part, grouped by method name."""

    def __init__(self) -> None:
        self._hooks: Dict[str, List[Hook]] = {}

    def add(self, name: str, order: HookOrder | str, fn: Callable[..., Any]) -> Hook:
        """
        Attach a hook.

        Raises:
            MarkingConfigurationError: If ``name`` is not hookable or ``order`` unknown
        """
        if name != CONSTRUCTOR and name not in HOOKABLE_METHODS:
            raise MarkingConfigurationError(f"Cannot attach a script to {name!r}")
        try:
            order = HookOrder(order)
        except ValueError:
            raise MarkingConfigurationError(f"Unknown script order {order!r} for {name!r}")
        hook = Hook(name, order, fn)
        self._hooks.setdefault(name, []).append(hook)
        return hook

    def get(self, name: str) -> Tuple[Hook, ...]:
        return tuple(self._hooks.get(name, ()))

    def __contains__(self, name: object) -> bool:
        return bool(self._hooks.get(name))  # type: ignore[arg-type]

    def __len__(self) -> int:
        return sum(len(hooks) for hooks in self._hooks.values())


def run_hook(part: Any, hook: Hook, *args: Any, **kwargs: Any) -> Any:
    """Call a hook, wrapping unexpected failures in PartScriptError."""
    try:
        return hook.fn(part, *args, **kwargs)
    except MarkingError:
        raise
    except Exception as e:
        raise PartScriptError(part.path, hook.name, str(e)) from e


def _chain(part: Any, hook: Hook, inner: Callable[..., Any]) -> Callable[..., Any]:
    def instead(*args: Any, **kwargs: Any) -> Any:
        return run_hook(part, hook, *args, **kwargs)

    def before(*args: Any, **kwargs: Any) -> Any:
        run_hook(part, hook, *args, **kwargs)
        return inner(*args, **kwargs)

    def after(*args: Any, **kwargs: Any) -> Any:
        inner(*args, **kwargs)
        return run_hook(part, hook, *args, **kwargs)

    return {HookOrder.INSTEAD: instead, HookOrder.BEFORE: before, HookOrder.AFTER: after}[hook.order]


def hookable(method: Callable[..., Any]) -> Callable[..., Any]:
    """Route calls to ``method`` through the part's hooks for that name."""
    name = method.__name__
    if name not in HOOKABLE_METHODS:
        raise ValueError(f"{name!r} is not a hookable method")

    @functools.wraps(method)
    def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
        hooks = self.hooks.get(name)
        # Already dispatching this name on this part (a super() call, or a
        # hook calling the method it is attached to): run the plain method.
        if not hooks or name in self._hook_dispatch:
            return method(self, *args, **kwargs)
        call: Callable[..., Any] = functools.partial(method, self)
        for hook in hooks:
            call = _chain(self, hook, call)
        self._hook_dispatch.add(name)
        try:
            return call(*args, **kwargs)
        finally:
            self._hook_dispatch.discard(name)

    wrapper.__hookable__ = True  # type: ignore[attr-defined]
    return wrapper

"""
Module: marking.scope

Purpose:
    Layered evaluation scope. A derived scope overlays new variable values on
    its parent and can hide inherited variables, which is how replacement
    scopes force dependent variables to be recomputed.

Key Classes:
    - Scope: Case-insensitive, layered variable mapping

Dependencies:
    - typing (std)

Used By:
    - marking.variables
    - marking.replacement
    - parts.question.Question
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, Mapping, Optional, Set


def _key(name: str) -> str:
    return name.lower()


class Scope:
    """
    Variables visible to a marking script.

    Lookups fall through to the parent unless the name was deleted in this
    layer.

    Example:
        >>> base = Scope({"a": 1, "b": 2})
        >>> child = base.derive({"a": 5})
        >>> child.delete_variable("b")
        >>> child["a"], "b" in child, base["b"]
        (5, False, 2)
    """

    def __init__(self, variables: Optional[Mapping[str, Any]] = None, parent: Optional[Scope] = None):
        self.parent = parent
        self._variables: Dict[str, Any] = {_key(k): v for k, v in (variables or {}).items()}
        self._deleted: Set[str] = set()

    def derive(self, variables: Optional[Mapping[str, Any]] = None) -> Scope:
        """Create a child scope overlaying ``variables``."""
        return Scope(variables, parent=self)

    # ─────────────────────────────────────────────────────────────────────────
    # Mapping Interface
    # ─────────────────────────────────────────────────────────────────────────

    def __getitem__(self, name: str) -> Any:
        key = _key(name)
        if key in self._variables:
            return self._variables[key]
        if key in self._deleted or self.parent is None:
            raise KeyError(name)
        return self.parent[key]

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        try:
            self[name]
        except KeyError:
            return False
        return True

    def get(self, name: str, default: Any = None) -> Any:
        try:
            return self[name]
        except KeyError:
            return default

    def set_variable(self, name: str, value: Any) -> None:
        key = _key(name)
        self._variables[key] = value
        self._deleted.discard(key)

    def delete_variable(self, name: str) -> None:
        """Hide ``name`` in this layer, including values inherited from parents."""
        key = _key(name)
        self._variables.pop(key, None)
        self._deleted.add(key)

    def names(self) -> Set[str]:
        """All variable names visible from this scope."""
        inherited = self.parent.names() if self.parent is not None else set()
        return (inherited - self._deleted) | set(self._variables)

    def as_dict(self) -> Dict[str, Any]:
        return {name: self[name] for name in sorted(self.names())}

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.names()))

    def __len__(self) -> int:
        return len(self.names())

    def __repr__(self) -> str:
        return f"Scope({sorted(self.names())!r})"

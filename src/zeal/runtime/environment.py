"""
Lexical environments and call frames.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any, Optional

from zeal.utils.errors import SourceLocation, UnboundNameError


class Environment:
    """
    A scope mapping names to values, linked to its enclosing scope.

    Lookups walk outwards through ``parent``; definitions always land in
    the scope they are made on.
    """

    def __init__(self, parent: Optional[Environment] = None) -> None:
        self.parent = parent
        self.values: dict[str, Any] = {}

    def child(self) -> Environment:
        return Environment(self)

    def define(self, name: str, value: Any) -> None:
        """Bind ``name`` in this scope, shadowing any outer binding."""
        self.values[name] = value

    def find(self, name: str) -> Optional[Environment]:
        """Return the nearest scope that binds ``name``."""
        env: Optional[Environment] = self
        while env is not None:
            if name in env.values:
                return env
            env = env.parent
        return None

    def lookup(self, name: str, location: Optional[SourceLocation] = None) -> Any:
        owner = self.find(name)
        if owner is None:
            raise UnboundNameError(name, location, candidates=sorted(self.visible_names()))
        return owner.values[name]

    def assign_existing(self, name: str, value: Any,
                        location: Optional[SourceLocation] = None) -> None:
        """Update the nearest existing binding of ``name``."""
        owner = self.find(name)
        if owner is None:
            raise UnboundNameError(name, location, candidates=sorted(self.visible_names()))
        owner.values[name] = value

    def visible_names(self) -> set[str]:
        names: set[str] = set()
        for env in self.chain():
            names.update(env.values)
        return names

    def chain(self) -> Iterator[Environment]:
        env: Optional[Environment] = self
        while env is not None:
            yield env
            env = env.parent

    def __contains__(self, name: str) -> bool:
        return self.find(name) is not None

    def __repr__(self) -> str:
        depth = sum(1 for _ in self.chain()) - 1
        return f"Environment(depth={depth}, names={sorted(self.values)})"


@dataclass(slots=True)
class Frame:
    """One active closure call."""

    name: str
    environment: Environment
    location: Optional[SourceLocation] = None

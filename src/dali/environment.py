"""Lexical scope frames linked to their enclosing frame."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dali.values import Value


class BindingError(Exception):
    """A define/get/set that the environment chain cannot satisfy.

    Carries only the name; the interpreter attaches the source span.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(name)


class UndefinedVariable(BindingError):
    pass


class RedefinedVariable(BindingError):
    pass


class Environment:
    """A mutable name → value table with an optional parent frame.

    Closures keep a reference to the frame they were defined in, so a frame
    lives as long as any closure or active call can still reach it.
    """

    __slots__ = ("values", "parent")

    def __init__(self, parent: Environment | None = None) -> None:
        self.values: dict[str, Value] = {}
        self.parent = parent

    def __contains__(self, name: str) -> bool:
        return name in self.values

    def define(self, name: str, value: Value) -> None:
        """Bind name in this frame. Rebinding in the same frame is an error."""
        if name in self.values:
            raise RedefinedVariable(name)
        self.values[name] = value

    def get(self, name: str) -> Value:
        env: Environment | None = self
        while env is not None:
            if name in env.values:
                return env.values[name]
            env = env.parent
        raise UndefinedVariable(name)

    def set(self, name: str, value: Value) -> None:
        """Overwrite the innermost existing binding of name. Never creates one."""
        env: Environment | None = self
        while env is not None:
            if name in env.values:
                env.values[name] = value
                return
            env = env.parent
        raise UndefinedVariable(name)

    def ancestor(self, depth: int) -> Environment:
        env = self
        for _ in range(depth):
            if env.parent is None:
                raise RuntimeError(f"scope depth {depth} exceeds environment chain")
            env = env.parent
        return env

    def get_at(self, depth: int, name: str) -> Value:
        """Read name from exactly depth frames up the chain."""
        values = self.ancestor(depth).values
        if name not in values:
            raise UndefinedVariable(name)
        return values[name]

    def set_at(self, depth: int, name: str, value: Value) -> None:
        values = self.ancestor(depth).values
        if name not in values:
            raise UndefinedVariable(name)
        values[name] = value

    def child(self) -> Environment:
        return Environment(self)

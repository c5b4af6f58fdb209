"""Runtime value types.

Dali values map onto Python objects wherever a native type fits:

    Boolean   bool
    Number    float
    String    str
    List      list
    Map       dict[str, Value]

Colors and functions get their own classes so they never compare equal to, or
combine with, the plain types above.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Union

from dali.ast import Expression, Statement
from dali.source import SourceBuffer

if TYPE_CHECKING:
    from dali.environment import Environment
    from dali.interpreter import EvalContext


@dataclass(frozen=True, slots=True)
class Color:
    """24-bit RGB color packed as 0xRRGGBB."""

    packed: int

    @property
    def red(self) -> int:
        return (self.packed >> 16) & 0xFF

    @property
    def green(self) -> int:
        return (self.packed >> 8) & 0xFF

    @property
    def blue(self) -> int:
        return self.packed & 0xFF


@dataclass(eq=False, slots=True)
class Function:
    """A user function closed over the environment it was defined in.

    Declared functions run their body as statements and produce a value only
    through ``return``. Function literals (``implicit_result``) evaluate their
    body expressions and yield the last one.
    """

    name: str
    params: tuple[str, ...]
    body: tuple[Statement, ...] | tuple[Expression, ...] = field(repr=False)
    closure: Environment = field(repr=False)
    source: SourceBuffer = field(repr=False)
    implicit_result: bool = False

    @property
    def arity(self) -> int:
        return len(self.params)


NativeImpl = Callable[["EvalContext", list["Value"]], Union["Value", None]]


@dataclass(eq=False, slots=True)
class NativeFunction:
    """A function implemented in Python. ``arity`` None accepts any count."""

    name: str
    arity: int | None
    impl: NativeImpl = field(repr=False)


Value = Union[bool, float, str, Color, Function, NativeFunction, list, dict]

_KIND_NAMES: dict[type, str] = {
    bool: "Boolean",
    float: "Number",
    str: "String",
    Color: "Color",
    Function: "Function",
    NativeFunction: "Function",
    list: "List",
    dict: "Map",
}


def kind_name(value: Value) -> str:
    """Name of the runtime kind of value, as used in error messages."""
    return _KIND_NAMES.get(type(value), type(value).__name__)


def is_callable(value: Value) -> bool:
    return isinstance(value, (Function, NativeFunction))

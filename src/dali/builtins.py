"""Native function registry and the root environment that holds it."""

from __future__ import annotations

from typing import TYPE_CHECKING

from dali.environment import Environment
from dali.formatter import format_value
from dali.values import NativeFunction, Value

if TYPE_CHECKING:
    from dali.interpreter import EvalContext


def _print(ctx: EvalContext, args: list[Value]) -> None:
    ctx.out.write(" ".join(format_value(arg) for arg in args) + "\n")


def _exit(ctx: EvalContext, args: list[Value]) -> None:
    ctx.out.flush()
    raise SystemExit(0)


def _make_builtins() -> dict[str, NativeFunction]:
    defs: dict[str, NativeFunction] = {}

    def d(name: str, arity: int | None, impl) -> None:
        defs[name] = NativeFunction(name, arity, impl)

    # Output; labels are free-form, e.g. print(x: 1, y: 2)
    d("print", None, _print)

    # Process
    d("exit", 0, _exit)

    return defs


BUILTINS: dict[str, NativeFunction] = _make_builtins()


def make_globals() -> Environment:
    """Fresh root environment holding every native function.

    Programs run in a child of this frame, so user code may shadow a native
    name at the top level without a redefinition error.
    """
    root = Environment()
    for name, native in BUILTINS.items():
        root.define(name, native)
    return root

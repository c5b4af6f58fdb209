"""Command-line interface for Dali: run a script or start a REPL."""

from __future__ import annotations

import argparse
import sys
import time
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TextIO

from dali.errors import COMPILE_ERRORS, EvalError, ParseError
from dali.interpreter import DEFAULT_MAX_CALL_DEPTH, Interpreter


@dataclass(frozen=True, slots=True)
class CliOptions:
    """Parsed CLI options."""

    script: Path | None
    max_call_depth: int
    resolve: bool
    prompt: str
    continuation: str
    tokens: bool
    ast: bool
    watch: bool


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser (separate function for testability)."""
    p = argparse.ArgumentParser(
        prog="dali",
        description="Dali scripting language interpreter",
    )
    p.add_argument("script", nargs="?", help="Script to run (default: start a REPL)")
    p.add_argument(
        "--config",
        metavar="FILE",
        help="Config file (default: auto-discover dali.toml)",
    )
    p.add_argument(
        "--max-call-depth",
        type=int,
        default=None,
        metavar="N",
        help=f"Maximum nested function calls (default: {DEFAULT_MAX_CALL_DEPTH})",
    )
    p.add_argument(
        "--no-resolve",
        action="store_true",
        help="Skip the static resolution pass; look up every variable by name",
    )
    p.add_argument("--tokens", action="store_true", help="Dump tokens to stderr")
    p.add_argument("--ast", action="store_true", help="Dump AST to stderr")
    p.add_argument("--watch", action="store_true", help="Re-run the script when it changes")
    return p


def load_config(config_path: Path | None, base_dir: Path) -> dict[str, Any]:
    """Load a TOML config file, returning an empty dict on missing/absent file."""
    path = config_path if config_path is not None else base_dir / "dali.toml"

    if not path.is_file():
        return {}

    with open(path, "rb") as f:
        return tomllib.load(f)


def resolve_options(args: argparse.Namespace) -> CliOptions:
    """Merge config file and CLI args into CliOptions.

    Precedence: defaults < config file < CLI flags.
    """
    script = Path(args.script) if args.script else None
    base_dir = script.parent if script is not None else Path(".")
    if not base_dir.parts:
        base_dir = Path(".")

    config_path = Path(args.config) if args.config else None
    config = load_config(config_path, base_dir)

    cfg_interp = config.get("interpreter")
    if not isinstance(cfg_interp, dict):
        cfg_interp = {}
    cfg_repl = config.get("repl")
    if not isinstance(cfg_repl, dict):
        cfg_repl = {}

    # Call depth: config < CLI
    max_call_depth = DEFAULT_MAX_CALL_DEPTH
    cfg_depth = cfg_interp.get("max_call_depth")
    if cfg_depth is not None:
        if not isinstance(cfg_depth, int) or isinstance(cfg_depth, bool):
            raise argparse.ArgumentTypeError(
                f"interpreter.max_call_depth must be an integer, got {cfg_depth!r}"
            )
        max_call_depth = cfg_depth
    if args.max_call_depth is not None:
        max_call_depth = args.max_call_depth
    if max_call_depth < 1:
        raise argparse.ArgumentTypeError(
            f"max call depth must be at least 1, got {max_call_depth}"
        )

    # Resolver pass: config < CLI
    resolve = True
    cfg_resolve = cfg_interp.get("resolve")
    if isinstance(cfg_resolve, bool):
        resolve = cfg_resolve
    if args.no_resolve:
        resolve = False

    if args.watch and script is None:
        raise argparse.ArgumentTypeError("--watch requires a script")

    return CliOptions(
        script=script,
        max_call_depth=max_call_depth,
        resolve=resolve,
        prompt=str(cfg_repl.get("prompt", "> ")),
        continuation=str(cfg_repl.get("continuation", ". ")),
        tokens=args.tokens,
        ast=args.ast,
        watch=args.watch,
    )


def make_interpreter(options: CliOptions, out: TextIO | None = None) -> Interpreter:
    return Interpreter(out, max_call_depth=options.max_call_depth, resolve=options.resolve)


def run_source(interp: Interpreter, text: str, name: str, options: CliOptions) -> list:
    """Compile and run one unit, emitting any requested debug dumps first."""
    from dali.debug import dump_ast, dump_tokens
    from dali.lexer import Lexer
    from dali.source import SourceBuffer

    if options.tokens:
        source = SourceBuffer(text, name)
        dump_tokens(Lexer(source).tokenize(), source, file=sys.stderr)

    statements, source = interp.compile(text, name)

    if options.ast:
        dump_ast(statements, file=sys.stderr)

    return interp.execute(statements, source)


def run_file(options: CliOptions, out: TextIO | None = None) -> None:
    """Read and run the script in a fresh interpreter."""
    assert options.script is not None
    text = options.script.read_text(encoding="utf-8")
    run_source(make_interpreter(options, out), text, str(options.script), options)


def _is_incomplete(exc: ParseError) -> bool:
    return exc.message.startswith("unexpected end of input")


def repl(options: CliOptions, stdin: TextIO | None = None, stdout: TextIO | None = None) -> int:
    """Read-eval-print loop. Returns when input ends.

    A unit that stops at end of input (an open '{' or '(') keeps reading
    continuation lines; an empty continuation line submits it as is.
    """
    from dali.formatter import format_value

    stdin = stdin if stdin is not None else sys.stdin
    stdout = stdout if stdout is not None else sys.stdout
    interp = make_interpreter(options, stdout)

    buffer = ""
    while True:
        stdout.write(options.continuation if buffer else options.prompt)
        stdout.flush()
        line = stdin.readline()
        if not line:
            stdout.write("\n")
            return 0

        buffer += line
        if not buffer.strip():
            buffer = ""
            continue

        try:
            values = run_source(interp, buffer, "<repl>", options)
        except ParseError as exc:
            if _is_incomplete(exc) and line.strip():
                continue
            print(exc.format(), file=sys.stderr)
        except (*COMPILE_ERRORS, EvalError) as exc:
            print(exc.format(), file=sys.stderr)
        else:
            for value in values:
                stdout.write(format_value(value, quoted=True) + "\n")
        buffer = ""


def watch_loop(options: CliOptions) -> None:
    """Poll the script for changes, re-running it on each modification."""
    assert options.script is not None
    last_mtime = 0.0
    print(f"Watching {options.script} for changes...", file=sys.stderr)
    try:
        while True:
            try:
                mtime = options.script.stat().st_mtime
            except OSError:
                time.sleep(0.5)
                continue
            if mtime != last_mtime:
                last_mtime = mtime
                try:
                    run_file(options)
                    print(f"Ran {options.script}", file=sys.stderr)
                except (*COMPILE_ERRORS, EvalError) as exc:
                    print(exc.format(), file=sys.stderr)
            time.sleep(0.5)
    except KeyboardInterrupt:
        pass


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns exit code (0/1/2). Does not call sys.exit()."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        options = resolve_options(args)
    except (argparse.ArgumentTypeError, tomllib.TOMLDecodeError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    try:
        if options.watch:
            watch_loop(options)
            return 0
        if options.script is None:
            return repl(options)
        run_file(options)
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except COMPILE_ERRORS as exc:
        print(exc.format(), file=sys.stderr)
        return 1
    except EvalError as exc:
        print(exc.format(), file=sys.stderr)
        return 2
    except SystemExit as exc:
        # exit() from a script
        return exc.code if isinstance(exc.code, int) else 0

    return 0

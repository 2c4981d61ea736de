from __future__ import annotations

import argparse
import importlib
import inspect
import json
import logging
import sys
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from cokernel.result import Result
from cokernel.run import run
from cokernel.runtime import AsyncioRuntime


@dataclass
class RunContext:
    body_path: str
    args: list[str]
    use_asyncio: bool
    output_format: str


def _import_symbol(path: str) -> Any:
    if ":" in path:
        module_name, attr_path = path.split(":", 1)
        module = importlib.import_module(module_name)
        return _resolve_attr(module, attr_path)
    parts = path.split(".")
    if len(parts) < 2:
        raise ValueError(
            f"'{path}' is not a fully-qualified symbol. Use module.symbol or module:symbol format."
        )
    module = importlib.import_module(".".join(parts[:-1]))
    return getattr(module, parts[-1])


def _resolve_attr(obj: Any, attr_path: str) -> Any:
    current = obj
    for attr in attr_path.split("."):
        current = getattr(current, attr)
    return current


def _ensure_body(obj: Any, description: str) -> Any:
    if inspect.isgenerator(obj) or inspect.isgeneratorfunction(obj):
        return obj
    raise TypeError(f"{description} must be a generator or generator function, got {type(obj).__name__}")


def _execute(context: RunContext) -> Result[Any]:
    body = _ensure_body(_import_symbol(context.body_path), context.body_path)
    if inspect.isgenerator(body) and context.args:
        raise ValueError("--arg can only be used with a generator function")
    if context.use_asyncio:
        return AsyncioRuntime().run(body, *context.args)
    return run(body, *context.args)


def _render(result: Result[Any], output_format: str) -> str:
    if output_format == "json":
        if result.is_ok():
            payload = {"status": "ok", "value": result.ok()}
        else:
            error = result.err()
            payload = {"status": "error", "error": type(error).__name__, "message": str(error)}
        return json.dumps(payload, default=repr)
    if result.is_ok():
        return repr(result.ok())
    error = result.err()
    return f"{type(error).__name__}: {error}"


def _run_command(args: argparse.Namespace) -> int:
    context = RunContext(
        body_path=args.body,
        args=list(args.arg or []),
        use_asyncio=args.use_asyncio,
        output_format=args.format,
    )
    result = _execute(context)
    output = _render(result, context.output_format)
    if result.is_ok():
        print(output)
        return 0
    print(output, file=sys.stderr if context.output_format == "text" else sys.stdout)
    return 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cokernel", description="Run cooperative task bodies")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run a task body as the main task")
    run_parser.add_argument("body", help="Fully-qualified path to a generator function (module:attr)")
    run_parser.add_argument(
        "--arg",
        action="append",
        help="Positional string argument passed to the body (repeatable)",
    )
    run_parser.add_argument(
        "--asyncio",
        dest="use_asyncio",
        action="store_true",
        help="Drive the scheduler from an asyncio event loop (enables Await)",
    )
    run_parser.add_argument(
        "--format",
        choices=("text", "json"),
        default="text",
        help="Output format for the result",
    )
    run_parser.set_defaults(handler=_run_command)
    return parser


def main(argv: Iterable[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())

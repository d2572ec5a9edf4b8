from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Any, Optional, Sequence

import orjson

from .api import call_api, call_api_async
from .bootstrap import configure_logging
from .services.http import run_local_server


def _emit(payload: Any) -> None:
    sys.stdout.write(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode() + "\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Machine calendar command line interface.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    api_parser = subparsers.add_parser("api", help="Start the FastAPI server exposing the calendar functions.")
    api_parser.add_argument("--host", default="127.0.0.1")
    api_parser.add_argument("--port", type=int, default=8000)

    grid_parser = subparsers.add_parser("grid", help="Render the calendar grid for one or more machines as JSON.")
    grid_parser.add_argument("--machine", "-m", action="append", dest="machines", default=[])
    grid_parser.add_argument("--view", choices=("year", "month", "week"), default=None)
    grid_parser.add_argument("--date", dest="day", default=None, help="ISO anchor date (defaults to today).")

    subparsers.add_parser("tools", help="List the registered API functions.")

    call_parser = subparsers.add_parser("call", help="Invoke one API function with JSON arguments.")
    call_parser.add_argument("name")
    call_parser.add_argument("--args", dest="arguments", default="{}", help="JSON object of keyword arguments.")

    return parser


async def _render(machines: Sequence[str], view: Optional[str], day: Optional[str]) -> Any:
    if view or day:
        current = call_api("view_state")["view"]
        call_api("set_view", view=view or current, day=day)
    return await call_api_async("render_grid", machines=list(machines))


def main(argv: Optional[Sequence[str]] = None) -> None:
    configure_logging()
    logging.getLogger(__name__).info("Machine calendar CLI starting")
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "api":
        run_local_server(host=args.host, port=args.port)
    elif args.command == "grid":
        _emit(asyncio.run(_render(args.machines, args.view, args.day)))
    elif args.command == "tools":
        _emit(call_api("list_available_tools"))
    elif args.command == "call":
        arguments = orjson.loads(args.arguments)
        if not isinstance(arguments, dict):
            parser.error("--args must be a JSON object")
        _emit(asyncio.run(call_api_async(args.name, **arguments)))
    else:  # pragma: no cover - argparse enforces choices
        parser.print_help()


if __name__ == "__main__":
    main()

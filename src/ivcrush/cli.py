"""CLI entry point for ivcrush.

    ivcrush serve [--host H] [--port P] [--reload]
    ivcrush earnings [--date YYYY-MM-DD] [--timing BMO|AMC]
    ivcrush plays

``earnings`` and ``plays`` run the pipeline once and print JSON to stdout.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import date
from typing import Any

import orjson
import uvicorn

from ivcrush.config import get_settings
from ivcrush.core.calendar import market_today
from ivcrush.core.logging import setup_logging
from ivcrush.earnings.models import parse_timing
from ivcrush.earnings.orchestrator import EarningsOrchestrator
from ivcrush.providers.factory import create_providers
from ivcrush.strategy import recommend


def _print_json(payload: Any) -> None:
    sys.stdout.buffer.write(orjson.dumps(payload, option=orjson.OPT_INDENT_2) + b"\n")


async def _run_once(args: argparse.Namespace) -> Any:
    settings = get_settings()
    setup_logging(settings, stream=sys.stderr)
    orchestrator = EarningsOrchestrator.from_providers(create_providers(settings), settings)
    try:
        if args.command == "plays":
            plays = await orchestrator.resolve_todays_plays()
            return plays.model_dump(mode="json")

        day = args.date or market_today()
        result = await orchestrator.resolve_earnings(day, args.timing)
        payload = result.model_dump(mode="json")
        if args.strategies:
            payload["strategies"] = {
                s.ticker: recommend(s).model_dump(mode="json") for s in result.earnings
            }
        return payload
    finally:
        await orchestrator.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="ivcrush earnings IV-crush service")
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Run the HTTP API (default)")
    serve.add_argument("--reload", action="store_true", help="Enable auto-reload")
    serve.add_argument("--host", default="127.0.0.1", help="Bind host")
    serve.add_argument("--port", type=int, default=8000, help="Bind port")

    earnings = sub.add_parser("earnings", help="Print enriched earnings for one date")
    earnings.add_argument("--date", type=date.fromisoformat, default=None, help="YYYY-MM-DD")
    earnings.add_argument("--timing", default=None, help="BMO / AMC (default: both)")
    earnings.add_argument(
        "--strategies", action="store_true", help="Add a strategy recommendation per ticker"
    )

    sub.add_parser("plays", help="Print tonight's AMC and next session's BMO reporters")

    args = parser.parse_args()

    if args.command == "earnings":
        try:
            args.timing = parse_timing(args.timing)
        except ValueError as e:
            parser.error(str(e))
    if args.command in ("earnings", "plays"):
        _print_json(asyncio.run(_run_once(args)))
        return

    uvicorn.run(
        "ivcrush.main:app",
        host=getattr(args, "host", "127.0.0.1"),
        port=getattr(args, "port", 8000),
        reload=getattr(args, "reload", False),
    )

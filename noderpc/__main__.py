"""Command-line access to a node: one-off calls, chain-head watching, queries."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Optional, Sequence

from noderpc.config import ClientSettings, get_settings
from noderpc.errors import NodeRPCError
from noderpc.network.client import NodeClient


def parse_param(text: str) -> Any:
    """Interpret a CLI parameter as JSON, falling back to the literal string."""

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="noderpc", description=__doc__)
    parser.add_argument("--url", help="Node WebSocket endpoint (default from settings).")
    parser.add_argument("--query-url", help="GraphQL query endpoint.")
    parser.add_argument("--timeout", type=float, help="Per-call timeout in seconds.")
    commands = parser.add_subparsers(dest="command", required=True)

    call = commands.add_parser("call", help="Issue one JSON-RPC call and print its result.")
    call.add_argument("method")
    call.add_argument("params", nargs="*", type=parse_param)

    heads = commands.add_parser("heads", help="Print new chain-head headers as they arrive.")
    heads.add_argument("--count", type=int, default=0, help="Stop after this many headers (0 = forever).")

    query = commands.add_parser("query", help="Run a GraphQL query against the query endpoint.")
    query.add_argument("query")
    return parser


async def run(args: argparse.Namespace, settings: ClientSettings) -> int:
    async with await NodeClient.connect(args.url, query_url=args.query_url, settings=settings) as client:
        if args.command == "call":
            result = await client.call(args.method, *args.params, timeout=args.timeout)
            print(json.dumps(result.value, indent=2))
        elif args.command == "heads":
            subscription = await client.subscribe_chain_head()
            seen = 0
            async for header in subscription:
                print(json.dumps(header.model_dump(by_alias=True, exclude_none=True)))
                seen += 1
                if args.count and seen >= args.count:
                    break
        elif args.command == "query":
            data = await client.execute_query(args.query)
            print(json.dumps(data, indent=2))
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    try:
        return asyncio.run(run(args, settings))
    except NodeRPCError as exc:
        print(f"noderpc: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())

"""Command-line entry point: list models, estimate costs, run one call."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
import sys

from docweaver.call import call_llm
from docweaver.costs import estimate_cost
from docweaver.errors import ConfigurationError
from docweaver.models import DEFAULT_REGISTRY
from docweaver.options import CallOptions
from docweaver.providers.mock import MockProvider
from docweaver.providers.models import Message
from docweaver.result import CallSuccess

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_RATE_LIMITED = 2


def _cmd_models(_args: argparse.Namespace) -> int:
    for name, info in DEFAULT_REGISTRY.items():
        print(
            f"{name:<28} {info.provider:<10} context={info.total_token_limit:,} "
            f"output={info.output_token_limit:,} "
            f"${info.input_tokens_per_m}/M in ${info.output_tokens_per_m}/M out"
        )
    return EXIT_OK


def _cmd_estimate(args: argparse.Namespace) -> int:
    text = Path(args.file).read_text(encoding="utf-8")
    cost = estimate_cost([Message(role="user", content=text)], args.output_tokens, args.model)
    print(f"Estimated cost for {args.model}: ${cost:.4f}")
    return EXIT_OK


async def _cmd_call_async(args: argparse.Namespace) -> int:
    text = Path(args.file).read_text(encoding="utf-8")
    options = CallOptions(
        model=args.model,
        max_output_tokens=args.max_output_tokens,
        stream_to_console=True,
        system_prompt=args.system,
        json_type=args.json_type,
        save_name=args.save_name,
        save_to_filepath=args.save_to,
        continue_on_partial_json=args.continue_on_partial_json,
    )
    provider = MockProvider() if args.mock else None
    result = await call_llm(
        [Message(role="user", content=text)], options, provider=provider
    )

    if isinstance(result, CallSuccess):
        if options.json_type:
            print(json.dumps(result.message, indent=2, ensure_ascii=False))
        print(
            f"\nTokens: {result.input_tokens:,} in / {result.output_tokens:,} out",
            file=sys.stderr,
        )
        return EXIT_OK

    print(f"Call failed: {result.error}", file=sys.stderr)
    if result.rate_limited:
        print("Rate limited. Wait a bit and run the call again.", file=sys.stderr)
        return EXIT_RATE_LIMITED
    return EXIT_FAILURE


def _cmd_call(args: argparse.Namespace) -> int:
    return asyncio.run(_cmd_call_async(args))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docweaver", description="Streaming LLM calls for documentation generation"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    models = sub.add_parser("models", help="List registered models")
    models.set_defaults(func=_cmd_models)

    estimate = sub.add_parser("estimate", help="Estimate the cost of sending a file")
    estimate.add_argument("--model", required=True)
    estimate.add_argument("--output-tokens", type=int, default=4096)
    estimate.add_argument("file", type=Path)
    estimate.set_defaults(func=_cmd_estimate)

    call = sub.add_parser("call", help="Send a file as one user message")
    call.add_argument("--model", required=True)
    call.add_argument(
        "--json-type", choices=["parse", "start_object", "start_array"], default=None
    )
    call.add_argument("--system", default=None, help="System prompt")
    call.add_argument("--max-output-tokens", type=int, default=None)
    call.add_argument("--save-name", default=None, help="Backup name for messages")
    call.add_argument("--save-to", type=Path, default=None, help="Live mirror file")
    call.add_argument(
        "--continue",
        dest="continue_on_partial_json",
        action="store_true",
        help="Continue truncated JSON once",
    )
    call.add_argument("--mock", action="store_true", help="Use the offline mock provider")
    call.add_argument("file", type=Path)
    call.set_defaults(func=_cmd_call)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return int(args.func(args))
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        if e.hint:
            print(f"Hint: {e.hint}", file=sys.stderr)
        return EXIT_FAILURE
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())

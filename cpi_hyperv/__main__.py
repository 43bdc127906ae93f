"""
Command line: list / describe / run provider actions, JSON on stdout.

    cpi-hyperv list
    cpi-hyperv describe create_worker
    cpi-hyperv run create_worker --params '{"worker_name": "vm1"}'
"""
import argparse
import json
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError

from cpi_hyperv.actions.registry import build_registry
from cpi_hyperv.provider import HyperVProvider
from cpi_hyperv.settings import LOG_LEVELS, ProviderSettings


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cpi-hyperv", description="Hyper-V provider actions")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="logging level (default from CPI_HYPERV_LOG_LEVEL)",
    )
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("list", help="list action names")
    describe = sub.add_parser("describe", help="show an action definition")
    describe.add_argument("action")
    run = sub.add_parser("run", help="execute an action")
    run.add_argument("action")
    run.add_argument("--params", help="JSON object of parameters")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = _parser().parse_args(argv)
    try:
        settings = ProviderSettings()
    except ValidationError as e:
        print(f"invalid CPI_HYPERV_* settings: {e}", file=sys.stderr)
        return 2
    logging.basicConfig(
        level=args.log_level or settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )

    if args.command == "list":
        for name in build_registry(settings).names():
            print(name)
        return 0

    if args.command == "describe":
        definition = build_registry(settings).describe(args.action)
        if definition is None:
            print(f"Action '{args.action}' not found", file=sys.stderr)
            return 1
        print(json.dumps(definition.to_dict(), indent=2))
        return 0

    try:
        params = json.loads(args.params) if args.params else {}
    except json.JSONDecodeError as e:
        print(f"--params is not valid JSON: {e}", file=sys.stderr)
        return 2
    if not isinstance(params, dict):
        print("--params must be a JSON object", file=sys.stderr)
        return 2

    # one-shot process: no background warm-up
    provider = HyperVProvider(settings.model_copy(update={"warmup": False}))
    out = provider.execute_action(args.action, params)
    print(json.dumps(out, indent=2))
    return 0 if out.get("ok") else 1


if __name__ == "__main__":
    sys.exit(main())

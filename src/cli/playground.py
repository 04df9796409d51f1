from __future__ import annotations

import argparse
import asyncio
import json
import sys

from src.config.load_config import ConfigError, load_app_config
from src.playground.types import HttpMethod, LifecycleSnapshot, LifecycleStatus, RequestIntent
from src.runtime.controller import InvalidTimeoutError, LifecycleController
from src.utils.log import configure_logging


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Send one request through the mock request playground.")
    parser.add_argument("--method", default="GET", choices=[m.value for m in HttpMethod], type=str.upper)
    parser.add_argument("--url", required=True, help="Target, e.g. http://x/success, http://x/not-found.")
    parser.add_argument("--body", default="", help="Request body (POST/PUT only).")
    parser.add_argument("--timeout", type=int, default=None, help="Timeout in seconds (default from config).")
    parser.add_argument(
        "--cancel-after",
        type=float,
        default=None,
        help="Cancel the request after this many seconds, as if the user pressed Escape.",
    )
    parser.add_argument("--log-level", default="", help="Override PLAYGROUND_LOG_LEVEL.")
    return parser.parse_args(argv)


def _print_snapshot(snap: LifecycleSnapshot) -> None:
    print(json.dumps(snap.to_dict(), ensure_ascii=False), flush=True)


async def _run(args: argparse.Namespace) -> int:
    controller = LifecycleController(load_app_config())
    controller.subscribe(_print_snapshot)
    _print_snapshot(controller.snapshot())

    intent = RequestIntent(method=HttpMethod.parse(args.method), target=args.url, body=args.body or None)
    task = controller.submit(intent, args.timeout)

    if args.cancel_after is not None:
        try:
            await asyncio.wait_for(asyncio.shield(task), timeout=max(float(args.cancel_after), 0.0))
        except asyncio.TimeoutError:
            if controller.cancel():
                print("Request cancelled: The request was cancelled.", file=sys.stderr)
    await controller.wait_settled()

    return 1 if controller.status is LifecycleStatus.ERROR else 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv if argv is not None else sys.argv[1:])
    configure_logging(args.log_level or None)
    try:
        return asyncio.run(_run(args))
    except (ConfigError, InvalidTimeoutError) as e:
        print(str(e), file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())

"""Send one payload to Obsrv.us from the command line.

Usage:
    obsrvus --app-key <key> --system-key <key> '{"event": "deploy"}'

    # Keys from the environment (or a .env file), payload from stdin:
    echo '{"event": "deploy"}' | obsrvus

    # Queue it for the background worker and wait up to 10s for the drain:
    obsrvus --background --wait 10 '{"event": "deploy"}'

Payloads that aren't valid JSON are sent as a JSON string.
"""

import argparse
import json
import os
import sys

from dotenv import load_dotenv
from loguru import logger

from obsrvus import transport
from obsrvus.client import ArgumentError, get_dispatcher, log


def parse_payload(text: str):
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text.rstrip("\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="obsrvus", description="Send a payload to Obsrv.us")
    parser.add_argument("payload", nargs="?", default="-",
                        help="JSON payload, or '-' to read stdin (default)")
    parser.add_argument("--app-key", default=os.environ.get("OBSRVUS_APPLICATION_KEY"),
                        help="Application key (default: $OBSRVUS_APPLICATION_KEY)")
    parser.add_argument("--system-key", default=os.environ.get("OBSRVUS_SYSTEM_KEY"),
                        help="System key (default: $OBSRVUS_SYSTEM_KEY)")
    parser.add_argument("--url", help="Override the log endpoint")
    parser.add_argument("--background", action="store_true",
                        help="Queue the payload for the background worker")
    parser.add_argument("--wait", type=float, default=30.0,
                        help="Seconds to wait for the background queue to drain (default: 30)")
    parser.add_argument("--raise", dest="raise_on_failure", action="store_true",
                        help="Fail loudly with the underlying error if delivery fails")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show client logs")
    return parser


def main(argv=None) -> int:
    load_dotenv()
    # Defaults are evaluated at parse time, after .env is loaded
    args = build_parser().parse_args(argv)

    if args.verbose:
        logger.enable("obsrvus")
    if args.url:
        transport.LOG_URL = args.url

    text = sys.stdin.read() if args.payload == "-" else args.payload
    payload = parse_payload(text)
    if payload is None:
        print("Payload is null, nothing to send", file=sys.stderr)
        return 0

    try:
        result = log(args.app_key, args.system_key, payload,
                     use_background=args.background,
                     raise_on_failure=args.raise_on_failure)
    except ArgumentError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    except Exception as exc:
        print(f"Delivery failed: {type(exc).__name__}: {exc}", file=sys.stderr)
        return 1

    if args.background:
        dispatcher = get_dispatcher()
        if not dispatcher.join(timeout=args.wait) or dispatcher.queue.pending_count():
            print(f"Queue not drained after {args.wait}s", file=sys.stderr)
            return 1
        return 0

    if not result:
        print("Delivery failed", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

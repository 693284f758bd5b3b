"""Command-line interface for eyebridge.

Provides the main entry point for serving the tool API, calling single
operations, running poses and the hardware self-test.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="eyebridge",
        description="Command bridge for animatronic eyes",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/eyebridge.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "-t", "--transport",
        choices=["serial", "http"],
        default=None,
        help="Override the configured transport",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("serve", help="Start the tool API server")
    subparsers.add_parser("ports", help="List available serial ports")

    call_parser = subparsers.add_parser("call", help="Call a single operation")
    call_parser.add_argument("operation", help="Operation name, e.g. moveEyes")
    call_parser.add_argument(
        "arguments", nargs="?", default="{}",
        help='Arguments as a JSON object, e.g. \'{"horizontal": 90, "vertical": 90}\'',
    )

    pose_parser = subparsers.add_parser("pose", help="Move the eyes into a conversation pose")
    pose_parser.add_argument(
        "pose", choices=["idle", "listening", "thinking", "processing", "speaking"],
    )

    subparsers.add_parser("selftest", help="Run the hardware self-test sequence")

    return parser.parse_args(argv)


def _available_ports() -> list[str]:
    """Describe the serial ports pyserial can see."""
    from serial.tools import list_ports

    return [
        f"{port.device} ({port.manufacturer or 'unknown manufacturer'})"
        for port in list_ports.comports()
    ]


async def _call(settings, operation: str, raw_arguments: str) -> int:
    """Open the transport, run one operation and print its envelope."""
    from eyebridge.dispatcher import Dispatcher
    from eyebridge.transport import build_transport

    try:
        arguments = json.loads(raw_arguments)
    except json.JSONDecodeError as e:
        print(f"Arguments are not valid JSON: {e}", file=sys.stderr)
        return 2

    async with build_transport(settings) as transport:
        envelope = await Dispatcher(transport).call(operation, arguments)
    print(json.dumps(envelope.to_dict(), indent=2))
    return 1 if envelope.is_error else 0


async def _pose(settings, pose: str) -> int:
    from eyebridge.choreography import apply_pose
    from eyebridge.dispatcher import Dispatcher
    from eyebridge.transport import build_transport

    async with build_transport(settings) as transport:
        envelopes = await apply_pose(Dispatcher(transport), pose)
    for envelope in envelopes:
        print(envelope.text)
    return 1 if any(e.is_error for e in envelopes) else 0


async def _selftest(settings) -> int:
    from eyebridge.choreography import run_self_test
    from eyebridge.dispatcher import Dispatcher
    from eyebridge.transport import build_transport

    async with build_transport(settings) as transport:
        envelopes = await run_self_test(Dispatcher(transport))
    failed = [e for e in envelopes if e.is_error]
    print(f"Self-test: {len(envelopes) - len(failed)}/{len(envelopes)} steps succeeded")
    for envelope in failed:
        print(f"  {envelope.text}")
    return 1 if failed else 0


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the eyebridge CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return

    from eyebridge.config.settings import load_settings
    from eyebridge.utils.logging import setup_logging

    settings = load_settings(args.config)

    if args.verbose:
        settings.logging.level = "DEBUG"
    if args.transport:
        settings.transport = args.transport

    setup_logging(settings.logging)

    if args.command == "serve":
        logger.info("Starting eye bridge server (%s transport)", settings.transport)
        from eyebridge.server import create_app
        from eyebridge.transport import build_transport
        import uvicorn

        if settings.transport == "serial":
            for port in _available_ports():
                logger.info("Found serial port: %s", port)
        app = create_app(build_transport(settings))
        uvicorn.run(
            app,
            host=settings.server.host,
            port=settings.server.port,
        )

    elif args.command == "ports":
        ports = _available_ports()
        print("Available serial ports:" if ports else "No serial ports found")
        for port in ports:
            print(f"- {port}")

    elif args.command == "call":
        sys.exit(asyncio.run(_call(settings, args.operation, args.arguments)))

    elif args.command == "pose":
        sys.exit(asyncio.run(_pose(settings, args.pose)))

    elif args.command == "selftest":
        logger.info("Running self-test")
        sys.exit(asyncio.run(_selftest(settings)))


if __name__ == "__main__":
    main()

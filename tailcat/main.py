#!/usr/bin/env python3
"""tailcat — Entry Point."""

import argparse
import asyncio
import logging
import signal
import sys

from tailcat.config import TailConfig, load_yaml_config
from tailcat.errors import TailError
from tailcat.session import TailSession

logger = logging.getLogger("tailcat")


def build_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Follow a file and print each new line")
    parser.add_argument("file", help="Path of the file to follow (may not exist yet)")
    parser.add_argument(
        "--cursor", type=int, default=None,
        help="Byte offset to resume from (default: end of file)",
    )
    parser.add_argument(
        "--config", default=None,
        help="Path to YAML config file",
    )
    parser.add_argument(
        "--log-level", default=None,
        help="Logging level (default: TAILCAT_LOG_LEVEL or INFO)",
    )
    return parser


async def run(args: argparse.Namespace, config: TailConfig) -> int:
    session = TailSession(args.file, config)
    stop = asyncio.Event()

    def _print_line(line: str):
        sys.stdout.write(line + "\n")
        sys.stdout.flush()

    def _on_error(error: BaseException):
        logger.error("Stopping after read failure: %s", error)
        stop.set()

    session.on_line(_print_line)
    session.on_error(_on_error)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, stop.set)

    watch_task = asyncio.create_task(session.watch(cursor=args.cursor))
    stop_task = asyncio.create_task(stop.wait())
    await asyncio.wait([watch_task, stop_task], return_when=asyncio.FIRST_COMPLETED)

    if watch_task.done():
        # Raises NotAFile / WatchFailure to the caller
        watch_task.result()
        await stop_task
    else:
        logger.info("Shutdown signal received before the file appeared")
        watch_task.cancel()
        try:
            await watch_task
        except asyncio.CancelledError:
            pass

    await session.unwatch()
    # A pass already in flight still advances the cursor after unwatch
    await session.wait_idle()
    print(f"cursor={session.cursor or 0}", file=sys.stderr)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_cli_parser()
    args = parser.parse_args(argv)

    try:
        config = TailConfig.from_sources(load_yaml_config(args.config))
    except TailError as e:
        parser.error(str(e))

    logging.basicConfig(
        level=(args.log_level or config.log_level).upper(),
        format="%(asctime)s [TAILCAT] %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    try:
        return asyncio.run(run(args, config))
    except TailError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())

"""Command that starts the journal broker."""

from __future__ import annotations

import argparse
import asyncio
import logging
import shutil
import sys
import tempfile
from pathlib import Path

from djournal.commitlog import Log
from djournal.compaction import CompactionOptions
from djournal.errors import JournalError
from djournal.server import Server

logger = logging.getLogger(__name__)

DEFAULT_ADDRESS = "127.0.0.1:8080"
MAX_SEGMENT_SIZE = 10 * 1024 * 1024
MAX_SEGMENT_DURATION = 60 * 60 * 24


def _default_log_dir() -> Path:
    return Path(tempfile.gettempdir()) / "distributed_journal_broker_main"


def prepare_log(log_dir) -> Log:
    """Wipe ``log_dir``, recreate it and open a fresh log there."""
    path = Path(log_dir)
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)
    return Log(path, MAX_SEGMENT_SIZE, MAX_SEGMENT_DURATION, CompactionOptions())


async def _serve(address: str, log: Log) -> None:
    server = Server(address, log)
    await server.bind()
    logger.info("Starting server on %s...", address)
    try:
        await server.run()
    finally:
        server.close()


def main(argv=None) -> int:
    """Run the broker; return the process exit status."""
    parser = argparse.ArgumentParser(
        prog="djournal", description="Run the journal broker."
    )
    parser.add_argument("--address", default=DEFAULT_ADDRESS, help="host:port to listen on")
    parser.add_argument(
        "--log-dir",
        type=Path,
        default=_default_log_dir(),
        help="directory for segment files (wiped at start)",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    logger.info("Using log directory: %s", args.log_dir)

    try:
        log = prepare_log(args.log_dir)
    except (OSError, JournalError) as exc:
        print(f"Failed to create Log: {exc}", file=sys.stderr)
        return 1

    with log:
        try:
            asyncio.run(_serve(args.address, log))
        except KeyboardInterrupt:
            return 0
        except (OSError, ValueError) as exc:
            print(f"Server run failed: {exc}", file=sys.stderr)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
from __future__ import annotations

import argparse
import logging
import shlex
import sys
from typing import Sequence

from .config import DEFAULT_INTERVAL, DEFAULT_SQUEUE_CMD, WatcherConfig
from .models import Job
from .squeue import SqueueError
from .time_utils import parse_interval
from .watcher import ChannelClosed, JobChannel, JobWatcher

LOGGER = logging.getLogger(__name__)


class CliError(RuntimeError):
    """Raised when CLI validation fails."""


def parse_arguments(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Poll squeue and report parsed job snapshots.",
        epilog="Arguments after '--' are passed to squeue unchanged.",
    )
    parser.add_argument(
        "--interval",
        default=str(DEFAULT_INTERVAL),
        help="Polling interval in seconds or as [D-]HH:MM:SS (default: %(default)s).",
    )
    parser.add_argument(
        "--squeue",
        default=DEFAULT_SQUEUE_CMD,
        help="squeue executable to run (default: %(default)s).",
    )
    parser.add_argument("--dry-run", action="store_true", help="Print the squeue command and exit.")
    parser.add_argument("--once", action="store_true", help="Poll once, print the jobs and exit.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")

    tokens = list(sys.argv[1:] if argv is None else argv)
    squeue_args: list[str] = []
    if "--" in tokens:
        split = tokens.index("--")
        tokens, squeue_args = tokens[:split], tokens[split + 1 :]

    args = parser.parse_args(tokens)
    args.squeue_args = squeue_args
    return args


def _build_config(args: argparse.Namespace) -> WatcherConfig:
    try:
        interval = parse_interval(args.interval)
    except ValueError as exc:
        raise CliError(f"Invalid --interval value '{args.interval}': {exc}") from exc
    return WatcherConfig(
        interval=interval,
        squeue_args=args.squeue_args,
        squeue_cmd=args.squeue,
    )


def format_job(job: Job) -> str:
    return "\t".join([job.id(), job.state, job.user, job.name])


def _watch(watcher: JobWatcher, channel: JobChannel) -> int:
    watcher.start()
    try:
        while True:
            update = channel.receive()
            LOGGER.info(
                "%s: %d jobs", update.polled_at.isoformat(timespec="seconds"), len(update.jobs)
            )
    except ChannelClosed as exc:
        print(f"Error: {exc.__cause__ or exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130


def main(argv: Sequence[str] | None = None) -> int:
    try:
        args = parse_arguments(argv)
        config = _build_config(args)
    except CliError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    channel = JobChannel()
    watcher = JobWatcher(channel, config)

    if args.dry_run:
        print(shlex.join(watcher.command))
        return 0

    if args.once:
        try:
            jobs = watcher.poll()
        except SqueueError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
        for job in jobs:
            print(format_job(job))
        return 0

    return _watch(watcher, channel)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

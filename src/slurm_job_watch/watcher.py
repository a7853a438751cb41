"""Background worker that polls squeue and publishes job snapshots.

The watcher owns one daemon thread.  Each poll cycle runs squeue, parses its
output and hands the resulting jobs to a :class:`JobChannel` as a single
:class:`JobsUpdate`.  Nothing is retried: any error ends the worker, closes
the channel and is re-raised from the consumer's next ``receive()``.
"""

from __future__ import annotations

import enum
import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Sequence

from .config import WatcherConfig
from .models import Job
from .squeue import build_squeue_command, parse_squeue_output, run_squeue

LOGGER = logging.getLogger(__name__)

THREAD_NAME = "slurm-job-watch"


class DeliveryError(RuntimeError):
    """Raised when a snapshot cannot be handed to the consumer."""


class ChannelClosed(RuntimeError):
    """Raised on the consumer side once the producer has gone away."""


@dataclass(frozen=True, slots=True)
class JobsUpdate:
    jobs: tuple[Job, ...]
    polled_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


_CLOSED = object()


class JobChannel:
    """One-way hand-off of :class:`JobsUpdate` messages from a single producer.

    ``maxsize`` bounds the number of undelivered snapshots; zero means
    unbounded.  Sending to a full or closed channel raises
    :class:`DeliveryError` instead of blocking or dropping the snapshot.
    """

    def __init__(self, maxsize: int = 0):
        if maxsize < 0:
            raise ValueError("maxsize must not be negative")
        self._maxsize = maxsize
        self._queue: queue.Queue = queue.Queue()
        self._closed = False
        self._error: BaseException | None = None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def error(self) -> BaseException | None:
        return self._error

    def send(self, message: JobsUpdate) -> None:
        if self._closed:
            raise DeliveryError("job channel is closed")
        if self._maxsize and self._queue.qsize() >= self._maxsize:
            raise DeliveryError(f"job channel is full ({self._maxsize} pending snapshots)")
        self._queue.put_nowait(message)

    def receive(self, timeout: float | None = None) -> JobsUpdate:
        """Return the next snapshot, blocking up to ``timeout`` seconds.

        Raises :class:`queue.Empty` on timeout and :class:`ChannelClosed`
        once every snapshot sent before ``close()`` has been received.
        """

        message = self._queue.get(timeout=timeout)
        if message is _CLOSED:
            # Leave the marker in place for any later receive() call.
            self._queue.put_nowait(_CLOSED)
            raise ChannelClosed("job watcher is no longer running") from self._error
        return message

    def close(self, error: BaseException | None = None) -> None:
        if self._closed:
            return
        self._error = error
        self._closed = True
        self._queue.put_nowait(_CLOSED)


class WatcherState(enum.Enum):
    IDLE = "idle"
    POLLING = "polling"


class JobWatcher:
    def __init__(
        self,
        channel: JobChannel,
        config: WatcherConfig | None = None,
        *,
        runner: Callable[[Sequence[str]], str] = run_squeue,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._channel = channel
        self._config = config if config is not None else WatcherConfig()
        self._runner = runner
        self._sleep = sleep
        self._command = build_squeue_command(
            self._config.squeue_args,
            squeue_cmd=self._config.squeue_cmd,
        )
        self.state = WatcherState.IDLE
        self.error: BaseException | None = None

    @property
    def command(self) -> list[str]:
        return list(self._command)

    @property
    def failed(self) -> bool:
        return self.error is not None

    def poll(self) -> list[Job]:
        """Run squeue once and return the parsed jobs in squeue's order."""

        self.state = WatcherState.POLLING
        try:
            output = self._runner(self._command)
            return parse_squeue_output(output)
        finally:
            self.state = WatcherState.IDLE

    def run(self) -> None:
        LOGGER.info("Polling %s every %ss", self._config.squeue_cmd, self._config.interval)
        try:
            while True:
                jobs = self.poll()
                LOGGER.info("Publishing %d jobs", len(jobs))
                self._channel.send(JobsUpdate(tuple(jobs)))
                self._sleep(self._config.interval)
        except Exception as exc:
            self.error = exc
            LOGGER.exception("Job watcher stopped: %s", exc)
            self._channel.close(exc)
            raise

    def start(self) -> threading.Thread:
        thread = threading.Thread(target=self.run, name=THREAD_NAME, daemon=True)
        thread.start()
        return thread

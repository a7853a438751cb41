"""Polling parameters for the job watcher."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

DEFAULT_INTERVAL = 2.0
DEFAULT_SQUEUE_CMD = "squeue"


@dataclass
class WatcherConfig:
    interval: float = DEFAULT_INTERVAL
    squeue_args: list[str] = field(default_factory=list)
    squeue_cmd: str = DEFAULT_SQUEUE_CMD

    def __post_init__(self):
        if not math.isfinite(self.interval) or self.interval <= 0:
            raise ValueError(f"interval must be a finite number greater than zero, got {self.interval}")
        self.squeue_args = list(self.squeue_args)

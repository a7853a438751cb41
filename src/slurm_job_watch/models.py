from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .time_utils import parse_duration_to_seconds


@dataclass(frozen=True, slots=True)
class Job:
    """Snapshot of one ``squeue`` entry taken at poll time."""

    job_id: str
    array_id: str
    array_step: str | None
    name: str
    state: str
    state_compact: str
    reason: str | None
    user: str
    time: str
    tres: str
    partition: str
    nodelist: str
    command: str
    stdout: Path | None
    stderr: Path | None

    def id(self) -> str:
        """Composite identity: ``<array_id>_<array_step>`` for array tasks."""

        if self.array_step is not None:
            return f"{self.array_id}_{self.array_step}"
        return self.job_id

    @property
    def is_array_task(self) -> bool:
        return self.array_step is not None

    @property
    def elapsed_seconds(self) -> float | None:
        try:
            return parse_duration_to_seconds(self.time)
        except ValueError:
            return None

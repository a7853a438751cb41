from __future__ import annotations

import logging
import subprocess
from typing import List, Mapping, Sequence

from .filename_pattern import NO_ARRAY_TASK, PatternContext, resolve_output_path
from .models import Job

LOGGER = logging.getLogger(__name__)


SQUEUE_FIELDS: tuple[str, ...] = (
    "jobid",
    "name",
    "state",
    "username",
    "timeused",
    "tres-alloc",
    "partition",
    "nodelist",
    "stdout",
    "stderr",
    "command",
    "statecompact",
    "reason",
    "ArrayJobID",  # %A
    "ArrayTaskID",  # %a
    "NodeList",  # %N
    "WorkDir",  # default output directory
    "tres-per-node",
)
OUTPUT_SEPARATOR = "###slurm-job-watch###"
NO_REASON = "None"
NO_DEVICE_TRES = "N/A"


class SqueueError(RuntimeError):
    """Raised when squeue cannot be launched or its output cannot be read."""


class SchemaDriftError(RuntimeError):
    """Raised when a parsed line lacks a field the parser relies on.

    This means the field list and the ``--Format`` string are out of sync,
    which is a programming error rather than noisy squeue output.
    """


def build_output_format(
    fields: Sequence[str] = SQUEUE_FIELDS,
    separator: str = OUTPUT_SEPARATOR,
) -> str:
    return ",".join(f"{field}:{separator}" for field in fields)


def build_squeue_command(
    extra_args: Sequence[str] = (),
    *,
    squeue_cmd: str = "squeue",
    fields: Sequence[str] = SQUEUE_FIELDS,
    separator: str = OUTPUT_SEPARATOR,
) -> List[str]:
    return [
        squeue_cmd,
        *extra_args,
        "--array",
        "--noheader",
        "--Format",
        build_output_format(fields, separator),
    ]


def run_squeue(command: Sequence[str]) -> str:
    LOGGER.debug("Running %s", command)
    try:
        result = subprocess.run(
            list(command),
            capture_output=True,
        )
    except FileNotFoundError as exc:
        raise SqueueError(f"{command[0]} command not found") from exc
    except OSError as exc:
        raise SqueueError(f"failed to execute {command[0]}: {exc}") from exc

    if result.returncode != 0:
        LOGGER.warning(
            "%s returned non-zero exit code %s: %s",
            command[0],
            result.returncode,
            result.stderr.decode(errors="replace").strip(),
        )

    # Fields may contain a lone "\r", so stdout stays bytes until here.
    try:
        return result.stdout.decode()
    except UnicodeDecodeError as exc:
        raise SqueueError(f"unreadable {command[0]} output: {exc}") from exc


def _require(values: Mapping[str, str], field: str) -> str:
    try:
        return values[field]
    except KeyError:
        raise SchemaDriftError(
            f"field '{field}' is missing from the squeue output schema"
        ) from None


def pattern_context(values: Mapping[str, str]) -> PatternContext:
    return PatternContext(
        array_job_id=_require(values, "ArrayJobID"),
        array_task_id=_require(values, "ArrayTaskID"),
        job_id=_require(values, "jobid"),
        nodelist=_require(values, "NodeList"),
        username=_require(values, "username"),
        name=_require(values, "name"),
        working_dir=_require(values, "WorkDir"),
    )


def parse_squeue_line(
    line: str,
    fields: Sequence[str] = SQUEUE_FIELDS,
    separator: str = OUTPUT_SEPARATOR,
) -> Job | None:
    parts = line.split(separator)
    # Every record ends with the separator, leaving one empty trailing part.
    if len(parts) != len(fields) + 1:
        LOGGER.debug("Skipping malformed squeue line: %s", line)
        return None

    values = dict(zip(fields, parts))

    array_task_id = _require(values, "ArrayTaskID")
    array_step = None if array_task_id == NO_ARRAY_TASK else array_task_id

    reason = values.get("reason")
    if reason == NO_REASON:
        reason = None

    cpu_tres = _require(values, "tres-alloc")
    device_tres = _require(values, "tres-per-node")
    tres = cpu_tres if device_tres == NO_DEVICE_TRES else f"{cpu_tres},{device_tres}"

    context = pattern_context(values)

    return Job(
        job_id=_require(values, "jobid"),
        array_id=_require(values, "ArrayJobID"),
        array_step=array_step,
        name=_require(values, "name"),
        state=_require(values, "state"),
        state_compact=_require(values, "statecompact"),
        reason=reason,
        user=_require(values, "username"),
        time=_require(values, "timeused"),
        tres=tres,
        partition=_require(values, "partition"),
        nodelist=_require(values, "NodeList"),
        command=_require(values, "command"),
        stdout=resolve_output_path(_require(values, "stdout"), context),
        stderr=resolve_output_path(_require(values, "stderr"), context),
    )


def parse_squeue_output(
    output: str,
    fields: Sequence[str] = SQUEUE_FIELDS,
    separator: str = OUTPUT_SEPARATOR,
) -> List[Job]:
    jobs: List[Job] = []
    # Only "\n" ends a record.
    for raw_line in output.split("\n"):
        line = raw_line.strip()
        if not line:
            continue
        job = parse_squeue_line(line, fields, separator)
        if job is not None:
            jobs.append(job)
    return jobs

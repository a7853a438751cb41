from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

# See https://slurm.schedmd.com/sbatch.html#SECTION_%3CB%3Efilename-pattern%3C/B%3E
_PLACEHOLDER_PATTERN = re.compile(r"%([%AaJjNnstux])")

SLURM_NO_VAL = "4294967294"
NO_ARRAY_TASK = "N/A"
NO_DESTINATION = "(null)"
DEFAULT_JOB_TEMPLATE = "slurm-%J.out"
DEFAULT_ARRAY_TEMPLATE = "slurm-%A_%a.out"

# squeue only reports the batch step, so node-local task ids are always 0.
FIRST_TASK_ID = "0"
BATCH_STEP_NAME = "batch"


@dataclass(frozen=True, slots=True)
class PatternContext:
    """Per-job values substituted into ``--output``/``--error`` templates."""

    array_job_id: str
    array_task_id: str
    job_id: str
    nodelist: str
    username: str
    name: str
    working_dir: str


def _first_node(nodelist: str) -> str:
    return nodelist.split(",", 1)[0]


def _replacement(escape: str, context: PatternContext, array_task_id: str) -> str:
    if escape == "%":
        return "%"
    if escape == "A":
        return context.array_job_id
    if escape == "a":
        return array_task_id
    if escape in ("J", "j"):
        return context.job_id
    if escape == "N":
        return _first_node(context.nodelist)
    if escape in ("n", "t"):
        return FIRST_TASK_ID
    if escape == "s":
        return BATCH_STEP_NAME
    if escape == "u":
        return context.username
    if escape == "x":
        return context.name
    raise ValueError(f"Unsupported filename placeholder '%{escape}'")


def expand_placeholders(template: str, context: PatternContext) -> str:
    """Replace every supported ``%`` escape in ``template``.

    Escapes that Slurm does not define here (``%q`` for example) are left as
    they are.
    """

    array_task_id = context.array_task_id
    if array_task_id == NO_ARRAY_TASK:
        array_task_id = SLURM_NO_VAL

    return _PLACEHOLDER_PATTERN.sub(
        lambda match: _replacement(match.group(1), context, array_task_id),
        template,
    )


def resolve_output_path(template: str, context: PatternContext) -> Path | None:
    """Resolve a job's stdout/stderr template into a concrete path.

    An empty template falls back to Slurm's default naming, ``slurm-%J.out``
    for plain jobs and ``slurm-%A_%a.out`` for array tasks.  The literal
    ``(null)`` means the stream has no destination and yields ``None``.
    Relative results are placed under the job's working directory.
    """

    if not template:
        if context.array_task_id in (NO_ARRAY_TASK, SLURM_NO_VAL):
            template = DEFAULT_JOB_TEMPLATE
        else:
            template = DEFAULT_ARRAY_TEMPLATE

    if template == NO_DESTINATION:
        return None

    return Path(context.working_dir) / expand_placeholders(template, context)

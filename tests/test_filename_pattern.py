from pathlib import Path

import pytest

from slurm_job_watch.filename_pattern import (
    SLURM_NO_VAL,
    PatternContext,
    expand_placeholders,
    resolve_output_path,
)


def make_context(**overrides) -> PatternContext:
    values = {
        "array_job_id": "55",
        "array_task_id": "N/A",
        "job_id": "55",
        "nodelist": "node07,node08",
        "username": "bob",
        "name": "foo",
        "working_dir": "/work/bob",
    }
    values.update(overrides)
    return PatternContext(**values)


def test_resolve_output_path_relative_template():
    path = resolve_output_path("%x-%j.out", make_context())

    assert path == Path("/work/bob/foo-55.out")


def test_resolve_output_path_absolute_template_ignores_working_dir():
    path = resolve_output_path("/logs/%u/%x.log", make_context())

    assert path == Path("/logs/bob/foo.log")


def test_resolve_output_path_empty_template_plain_job():
    path = resolve_output_path("", make_context(job_id="77", array_job_id="77"))

    assert path == Path("/work/bob/slurm-77.out")


def test_resolve_output_path_empty_template_array_job():
    path = resolve_output_path(
        "", make_context(job_id="12", array_job_id="10", array_task_id="2")
    )

    assert path == Path("/work/bob/slurm-10_2.out")


@pytest.mark.parametrize("array_task_id", ["N/A", "4"])
def test_resolve_output_path_null_has_no_destination(array_task_id):
    assert resolve_output_path("(null)", make_context(array_task_id=array_task_id)) is None


def test_resolve_output_path_without_placeholders_is_idempotent():
    context = make_context()

    first = resolve_output_path("logs/plain.txt", context)
    second = resolve_output_path(str(first), context)

    assert first == Path("/work/bob/logs/plain.txt")
    assert second == first


@pytest.mark.parametrize(
    "template, expected",
    [
        ("%%", "%"),
        ("100%%-%j", "100%-12"),
        ("%A", "10"),
        ("%a", "3"),
        ("%J.%j", "12.12"),
        ("%N", "node07"),
        ("%n-%t", "0-0"),
        ("%s", "batch"),
        ("%u", "bob"),
        ("%x", "foo"),
        ("%q%j", "%q12"),
        ("%%j", "%j"),
    ],
)
def test_expand_placeholders(template, expected):
    context = make_context(job_id="12", array_job_id="10", array_task_id="3")

    assert expand_placeholders(template, context) == expected


def test_expand_placeholders_uses_no_val_for_plain_jobs():
    assert expand_placeholders("%a", make_context()) == SLURM_NO_VAL


def test_expand_placeholders_single_node():
    assert expand_placeholders("%N.log", make_context(nodelist="node01")) == "node01.log"


def test_expand_placeholders_handles_growing_and_shrinking_replacements():
    context = make_context(name="a-much-longer-job-name", username="u")

    expanded = expand_placeholders("%u/%x/%%/%u_%j", context)

    assert expanded == "u/a-much-longer-job-name/%/u_55"


def test_resolve_output_path_default_template_leaves_working_dir_unexpanded():
    context = make_context(job_id="77", array_job_id="77", working_dir="/work/100%j")

    assert resolve_output_path("", context) == Path("/work/100%j/slurm-77.out")


def test_resolve_output_path_explicit_template_leaves_working_dir_unexpanded():
    context = make_context(working_dir="/work/%u")

    assert resolve_output_path("%u.log", context) == Path("/work/%u/bob.log")

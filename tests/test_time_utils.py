import pytest

from slurm_job_watch.time_utils import parse_duration_to_seconds, parse_interval


@pytest.mark.parametrize(
    "value, expected",
    [
        ("0:05", 5),
        ("12:34", (12 * 60) + 34),
        ("00:00:30", 30),
        ("01:02:03", (1 * 3600) + (2 * 60) + 3),
        ("2-03:00:00", (2 * 24 + 3) * 3600),
    ],
)
def test_parse_duration_to_seconds_valid(value, expected):
    assert parse_duration_to_seconds(value) == expected


@pytest.mark.parametrize("value", ["", "1:60:00", "0:75", "2-03", "INVALID", "not-a-duration"])
def test_parse_duration_to_seconds_invalid(value):
    with pytest.raises(ValueError):
        parse_duration_to_seconds(value)


@pytest.mark.parametrize("value, expected", [("2", 2.0), ("0.5", 0.5), ("00:01:00", 60.0)])
def test_parse_interval_accepts_seconds_and_durations(value, expected):
    assert parse_interval(value) == expected


@pytest.mark.parametrize("value", ["0", "-1", "nan", "soon"])
def test_parse_interval_rejects_invalid_values(value):
    with pytest.raises(ValueError):
        parse_interval(value)


@pytest.mark.parametrize("value", ["inf", "-inf", "Infinity"])
def test_parse_interval_rejects_non_finite_values(value):
    with pytest.raises(ValueError, match="finite"):
        parse_interval(value)

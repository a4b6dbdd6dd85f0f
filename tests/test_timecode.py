import pytest

from warp_transcribe.backend.common.timecode import format_time, parse_seconds


def test_format_time_pads_each_field():
    assert format_time(0) == "00:00:00"
    assert format_time(21) == "00:00:21"
    assert format_time(3723) == "01:02:03"


def test_format_time_clamps_negative_input():
    assert format_time(-5) == "00:00:00"


def test_format_time_keeps_hours_past_a_day():
    assert format_time(100 * 3600) == "100:00:00"


@pytest.mark.parametrize(
    "text,expected",
    [("42", 42), ("05:30", 330), ("1:02:03", 3723), (" 00:00:21 ", 21)],
)
def test_parse_seconds_accepts_short_forms(text, expected):
    assert parse_seconds(text) == expected


def test_parse_seconds_reads_what_format_time_writes():
    assert parse_seconds(format_time(4567)) == 4567


@pytest.mark.parametrize("text", ["", "abc", "1:2:3:4", "-5"])
def test_parse_seconds_rejects_garbage(text):
    with pytest.raises(ValueError):
        parse_seconds(text)

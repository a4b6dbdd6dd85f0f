import io
import json
import logging

import pytest

from warp_transcribe.backend.common.logging import JsonFormatter, get_logger, init_logging


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if isinstance(handler.formatter, JsonFormatter):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def test_formatter_emits_extras_as_json_fields():
    record = logging.LogRecord("warp_transcribe.player", logging.INFO, __file__, 1, "command_sent", (), None)
    record.command = "seek"
    record.line = "jump 380"

    payload = json.loads(JsonFormatter().format(record))

    assert payload["msg"] == "command_sent"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "warp_transcribe.player"
    assert payload["command"] == "seek"
    assert payload["line"] == "jump 380"
    assert "lineno" not in payload


def test_formatter_stringifies_unknown_values():
    record = logging.LogRecord("x", logging.WARNING, __file__, 1, "evt", (), None)
    record.path = object()

    assert json.loads(JsonFormatter().format(record))["path"].startswith("<object")


def test_init_logging_writes_stream_and_file(tmp_path, restore_root_logging):
    stream = io.StringIO()
    log_file = tmp_path / "logs" / "tx.log"

    init_logging("debug", stream=stream, log_file=log_file)
    get_logger("warp_transcribe.test").info("player_launch", extra={"pid": 42})

    line = json.loads(stream.getvalue().splitlines()[-1])
    assert line["pid"] == 42
    assert "player_launch" in log_file.read_text(encoding="utf-8")


def test_init_logging_replaces_previous_handlers(restore_root_logging):
    init_logging("INFO", stream=io.StringIO())
    init_logging("WARNING", stream=io.StringIO())

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert root.level == logging.WARNING

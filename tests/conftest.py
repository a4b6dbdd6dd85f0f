"""Shared fakes: a scripted player process and an isolated settings file."""

from __future__ import annotations

import pytest

from warp_transcribe.backend.player.exceptions import WriteFailed
from warp_transcribe.config.settings import core as settings_core


class FakeProcess:
    """Stands in for PlayerProcess; records writes and can answer them."""

    def __init__(self, argv, *, on_line, on_exit, runner=None):
        self.argv = list(argv)
        self.on_line = on_line
        self.on_exit = on_exit
        self.runner = runner
        self.written = []
        self.replies = {}
        self.alive = False
        self.closed = False
        self.terminated = False
        self.fail_writes = False
        self.returncode = None

    def start(self):
        self.alive = True

    def is_alive(self):
        return self.alive

    def write(self, line):
        if self.fail_writes:
            self.alive = False
            self.returncode = 1
            raise WriteFailed("Cannot write to fake: broken pipe")
        self.written.append(line)
        reply = self.replies.get(line)
        if reply is not None:
            self.on_line(self, reply)

    def close(self, *, terminate=False):
        self.closed = True
        self.terminated = self.terminated or terminate

    def emit(self, line):
        self.on_line(self, line)

    def finish(self, returncode=0):
        self.alive = False
        self.returncode = returncode
        self.on_exit(self, returncode)


class FakeProcessFactory:
    def __init__(self):
        self.created = []

    def __call__(self, argv, **kwargs):
        process = FakeProcess(argv, **kwargs)
        self.created.append(process)
        return process

    @property
    def last(self):
        return self.created[-1]


class Recorder:
    """Collects host hook calls."""

    def __init__(self):
        self.messages = []
        self.displays = []
        self.cursors = []

    def message(self, text):
        self.messages.append(text)

    def display(self, snapshot):
        self.displays.append(snapshot)

    def restore_cursor(self, cursor):
        self.cursors.append(cursor)


@pytest.fixture
def process_factory():
    return FakeProcessFactory()


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def sound_file(tmp_path):
    def _make(name="talk.mp3"):
        path = tmp_path / name
        path.write_bytes(b"\x00" * 16)
        return str(path)

    return _make


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    settings_path = tmp_path / "config" / "settings.json"
    monkeypatch.setenv("WARP_TX_SETTINGS", str(settings_path))
    for name in (
        "WARP_TX_LOG_LEVEL",
        "WARP_TX_LOG_FILE",
        "WARP_TX_QUERY_TIMEOUT",
        "WARP_TX_REFRESH_INTERVAL",
        "WARP_TX_REWIND_STEP",
        "WARP_TX_END_MARGIN",
        "WARP_TX_MPG123_PROGRAM",
        "WARP_TX_OGG123_PROGRAM",
        "WARP_TX_MPLAYER_PROGRAM",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(settings_core, "_SETTINGS_SINGLETON", None)
    return settings_path

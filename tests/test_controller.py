import pytest

from warp_transcribe.backend.common.errors import MissingMetadataField
from warp_transcribe.backend.persistence.document import TranscriptDocument
from warp_transcribe.backend.player.controller import PlaybackController
from warp_transcribe.backend.player.session import PlayerSession, SessionHooks
from warp_transcribe.backend.player.state import PlayerStatus


def _controller(sound, factory, recorder, *, document=None, cursor=None, **kwargs):
    hooks = SessionHooks(
        message=recorder.message,
        display=recorder.display,
        restore_cursor=recorder.restore_cursor,
    )
    session = PlayerSession(sound, hooks=hooks, process_factory=factory, **kwargs)
    return PlaybackController(session, document=document, cursor=cursor)


def test_toggle_cycles_through_the_states(sound_file, process_factory, recorder):
    controller = _controller(sound_file(), process_factory, recorder)

    assert controller.toggle_play() is PlayerStatus.PLAYING
    process = process_factory.last
    process.emit("@F 380 1000 10.00 26.32")

    assert controller.toggle_play() is PlayerStatus.IDLE
    assert controller.toggle_play() is PlayerStatus.PLAYING
    assert recorder.messages == ["starting", "stopped at 00:00:10", "resuming"]


def test_stop_rewinds_before_pausing(sound_file, process_factory, recorder):
    controller = _controller(sound_file(), process_factory, recorder)
    controller.toggle_play()
    process = process_factory.last
    process.written.clear()

    controller.toggle_play()

    assert process.written == ["jump -76\n", "pause\n"]


def test_stop_without_auto_rewind_only_pauses(sound_file, process_factory, recorder):
    controller = _controller(sound_file("a.wav"), process_factory, recorder)
    controller.toggle_play()
    process = process_factory.last
    process.written.clear()

    controller.toggle_play()

    assert process.written == ["pause\n"]


def test_seeking_in_null_does_nothing(sound_file, process_factory, recorder):
    controller = _controller(sound_file(), process_factory, recorder)

    assert controller.seek(30) is False
    assert controller.skip(5) is False
    assert process_factory.created == []


def test_seek_while_idle_is_sent(sound_file, process_factory, recorder):
    controller = _controller(sound_file("a.ogg"), process_factory, recorder)
    controller.toggle_play()
    controller.toggle_play()
    process = process_factory.last

    assert controller.status is PlayerStatus.IDLE
    assert controller.seek(-4) is True
    assert process.written[-1] == "r0\n"


def test_rewind_uses_the_default_step(sound_file, process_factory, recorder):
    controller = _controller(sound_file(), process_factory, recorder)
    controller.toggle_play()

    controller.rewind()
    controller.rewind(10)

    assert process_factory.last.written[-2:] == ["jump -114\n", "jump -380\n"]


def test_seek_end_stays_clear_of_the_end(sound_file, process_factory, recorder):
    controller = _controller(sound_file("a.mkv"), process_factory, recorder)
    controller.toggle_play()
    process = process_factory.last
    process.replies["pausing_keep_force get_time_length\n"] = "ANS_LENGTH=100.0"

    assert controller.seek_end() is True
    assert process.written[-1] == "seek 97\n"


def test_seek_end_with_unknown_length(sound_file, process_factory, recorder):
    controller = _controller(sound_file(), process_factory, recorder)
    controller.toggle_play()

    assert controller.seek_end() is False
    assert recorder.messages[-1] == "length unknown"


def test_query_timeout_falls_back_to_the_cached_value(sound_file, process_factory, recorder):
    controller = _controller(sound_file("a.mkv"), process_factory, recorder, query_timeout=0.05)
    controller.toggle_play()
    process_factory.last.emit("A:  12.5 V: 12.5")

    assert controller.query_position() == 12


def test_queries_in_null_read_the_saved_position(sound_file, process_factory, recorder):
    controller = _controller(sound_file(), process_factory, recorder, saved_position=75)

    assert controller.query_position() == 75
    assert controller.timestamp() == "00:01:15"


def test_quit_saves_markers_then_stops_the_player(tmp_path, sound_file, process_factory, recorder):
    document = TranscriptDocument.create(tmp_path / "talk.txt", sound_file())
    controller = _controller(document.sound_file, process_factory, recorder, document=document, cursor=lambda: 12)
    controller.toggle_play()
    process = process_factory.last
    process.emit("@F 1520 1000 40.00 26.32")

    controller.quit()

    assert process.written[-1] == "quit\n"
    assert process.closed
    assert controller.status is PlayerStatus.NULL
    markers = TranscriptDocument.load(tmp_path / "talk.txt").markers()
    assert (markers.position, markers.cursor) == (40, 12)


def test_quit_tears_down_even_when_saving_fails(tmp_path, sound_file, process_factory, recorder):
    document = TranscriptDocument(path=tmp_path / "bare.txt", header={"Sound-File": sound_file()})
    controller = _controller(document.sound_file, process_factory, recorder, document=document)
    controller.toggle_play()
    process = process_factory.last

    with pytest.raises(MissingMetadataField) as excinfo:
        controller.quit()

    assert excinfo.value.field == "Playback-Position"
    assert process.written[-1] == "quit\n"
    assert controller.status is PlayerStatus.NULL
    assert not (tmp_path / "bare.txt").exists()


def test_quit_in_null_only_saves(tmp_path, sound_file, process_factory, recorder):
    document = TranscriptDocument.create(tmp_path / "talk.txt", sound_file())
    controller = _controller(document.sound_file, process_factory, recorder, document=document, saved_position=33)

    controller.quit()

    assert process_factory.created == []
    assert TranscriptDocument.load(tmp_path / "talk.txt").markers().position == 33


def test_close_releases_the_session(sound_file, process_factory, recorder):
    controller = _controller(sound_file(), process_factory, recorder)
    controller.toggle_play()
    process = process_factory.last

    controller.close()

    assert process.written[-1] == "quit\n"
    assert process.closed
    assert controller.session.process is None

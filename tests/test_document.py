import pytest

from warp_transcribe.backend.common.errors import MissingMetadataField, PersistenceError
from warp_transcribe.backend.persistence.document import (
    CURSOR,
    PLAYBACK_POSITION,
    SOUND_FILE,
    TranscriptDocument,
)


def test_create_writes_a_header_block(tmp_path):
    path = tmp_path / "interview.txt"

    TranscriptDocument.create(path, "/rec/interview.mp3", body="Q: hello\n")

    assert path.read_text(encoding="utf-8") == (
        "# Sound-File: /rec/interview.mp3\n"
        "# Playback-Position: 0\n"
        "# Cursor: 0\n"
        "\n"
        "Q: hello\n"
    )


def test_create_refuses_to_overwrite(tmp_path):
    path = tmp_path / "interview.txt"
    path.write_text("keep me", encoding="utf-8")

    with pytest.raises(PersistenceError):
        TranscriptDocument.create(path, "a.mp3")
    assert path.read_text(encoding="utf-8") == "keep me"


def test_load_splits_header_and_body(tmp_path):
    path = tmp_path / "t.txt"
    path.write_text("# Sound-File: a.ogg\n# Playback-Position: 95\n# Cursor: 4\n\n# not a header\nbody\n", encoding="utf-8")

    document = TranscriptDocument.load(path)

    assert document.header == {SOUND_FILE: "a.ogg", PLAYBACK_POSITION: "95", CURSOR: "4"}
    assert document.body == "# not a header\nbody\n"
    markers = document.markers()
    assert (markers.position, markers.cursor) == (95, 4)


def test_relative_sound_file_resolves_next_to_the_transcript(tmp_path):
    path = tmp_path / "t.txt"
    path.write_text("# Sound-File: audio/a.ogg\n\n", encoding="utf-8")

    assert TranscriptDocument.load(path).sound_file == str(tmp_path / "audio" / "a.ogg")


def test_missing_or_bad_markers_default_to_zero(tmp_path):
    path = tmp_path / "t.txt"
    path.write_text("# Sound-File: a.ogg\n# Cursor: many\n\ntext", encoding="utf-8")

    markers = TranscriptDocument.load(path).markers()

    assert (markers.position, markers.cursor) == (0, 0)


def test_load_of_a_missing_file(tmp_path):
    with pytest.raises(PersistenceError):
        TranscriptDocument.load(tmp_path / "nope.txt")


def test_save_markers_round_trips(tmp_path):
    path = tmp_path / "t.txt"
    document = TranscriptDocument.create(path, "a.mp3", body="abc")

    document.save_markers(125, 2)

    reloaded = TranscriptDocument.load(path)
    assert reloaded.header[PLAYBACK_POSITION] == "125"
    assert reloaded.header[CURSOR] == "2"
    assert reloaded.body == "abc"


def test_save_markers_needs_both_fields(tmp_path):
    path = tmp_path / "t.txt"
    path.write_text("# Sound-File: a.mp3\n# Playback-Position: 3\n\nbody", encoding="utf-8")
    document = TranscriptDocument.load(path)

    with pytest.raises(MissingMetadataField) as excinfo:
        document.save_markers(10, 0)

    assert excinfo.value.field == CURSOR
    assert "Playback-Position: 3" in path.read_text(encoding="utf-8")


def test_insert_clamps_and_returns_the_new_cursor(tmp_path):
    document = TranscriptDocument(path=tmp_path / "t.txt", body="hello world")

    cursor = document.insert(5, ",")
    assert document.body == "hello, world"
    assert cursor == 6

    assert document.insert(999, "!") == len(document.body)
    assert document.body.endswith("world!")


def test_saving_a_headerless_transcript_keeps_its_body(tmp_path):
    path = tmp_path / "plain.txt"
    path.write_text("First line.\nSecond line.\n", encoding="utf-8")

    for _ in range(3):
        TranscriptDocument.load(path).save()

    assert path.read_text(encoding="utf-8") == "First line.\nSecond line.\n"
    assert TranscriptDocument.load(path).header == {}

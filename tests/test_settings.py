import json

import pytest

from warp_transcribe.backend.common.errors import ConfigError
from warp_transcribe.config.settings import (
    add_protocol_mapping,
    get_settings,
    load_user_settings,
    update_player,
)
from warp_transcribe.config.settings.paths import expand_env


def _write(path, payload):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload), encoding="utf-8")


def test_defaults_without_a_settings_file(isolated_settings):
    settings = get_settings(reload=True)

    assert settings.log_level == "WARNING"
    assert settings.query_timeout == 1.0
    assert settings.refresh_interval == 0.1
    assert settings.rewind_step == 3
    assert settings.players == {}
    assert settings.protocol_map == []
    assert str(settings.user_settings_path) == str(isolated_settings)


def test_settings_file_and_environment(isolated_settings, monkeypatch):
    _write(
        isolated_settings,
        {
            "log_level": "debug",
            "query_timeout": 2.5,
            "rewind_step": 4,
            "players": {"ogg123": {"program": "/opt/bin/ogg123"}},
            "protocol_map": [{"pattern": "\\.m4b$", "protocol": "MPlayer"}],
        },
    )
    monkeypatch.setenv("WARP_TX_REWIND_STEP", "7")

    settings = get_settings(reload=True)

    assert settings.log_level == "DEBUG"
    assert settings.query_timeout == 2.5
    assert settings.rewind_step == 7
    assert settings.players["ogg123"].program == "/opt/bin/ogg123"
    assert settings.protocol_map[0].protocol == "mplayer"


def test_invalid_numbers_fall_back_to_defaults(isolated_settings):
    _write(isolated_settings, {"query_timeout": "soon", "end_margin": -4})

    settings = get_settings(reload=True)

    assert settings.query_timeout == 1.0
    assert settings.end_margin == 0


def test_unknown_player_is_a_config_error(isolated_settings):
    _write(isolated_settings, {"players": {"vlc": {"program": "cvlc"}}})

    with pytest.raises(ConfigError):
        get_settings(reload=True)


def test_unknown_player_field_is_a_config_error(isolated_settings):
    _write(isolated_settings, {"players": {"mpg123": {"volume": 3}}})

    with pytest.raises(ConfigError):
        get_settings(reload=True)


def test_bad_pattern_is_a_config_error(isolated_settings):
    _write(isolated_settings, {"protocol_map": [{"pattern": "(", "protocol": "mpg123"}]})

    with pytest.raises(ConfigError):
        get_settings(reload=True)


def test_program_environment_override(monkeypatch):
    monkeypatch.setenv("WARP_TX_MPG123_PROGRAM", "mpg321")

    assert get_settings(reload=True).players["mpg123"].program == "mpg321"


def test_unreadable_settings_file_is_ignored(isolated_settings):
    isolated_settings.parent.mkdir(parents=True, exist_ok=True)
    isolated_settings.write_text("{not json", encoding="utf-8")

    assert load_user_settings() == {}


def test_update_player_persists_and_reloads(isolated_settings):
    settings = update_player("mpg123", program="mpg321", auto_rewind=-3)

    assert settings.players["mpg123"].auto_rewind == -3
    stored = json.loads(isolated_settings.read_text(encoding="utf-8"))
    assert stored["players"]["mpg123"] == {"auto_rewind": -3, "program": "mpg321"}
    assert "updated_at" in stored


def test_update_player_rejects_unknown_names(isolated_settings):
    with pytest.raises(ConfigError):
        update_player("winamp", program="winamp.exe")
    assert not isolated_settings.exists()


def test_newest_mapping_comes_first():
    add_protocol_mapping(r"\.wav$", "mpg123")
    settings = add_protocol_mapping(r"\.wav$", "ogg123")

    assert [m.protocol for m in settings.protocol_map] == ["ogg123", "mpg123"]


def test_expand_env_walks_nested_values(monkeypatch):
    monkeypatch.setenv("TX_HOME", "/home/tx")

    assert expand_env({"a": ["${TX_HOME}/x", 3]}) == {"a": ["/home/tx/x", 3]}

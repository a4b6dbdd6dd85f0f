"""Administrative CLI for inspecting and configuring warp-transcribe."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict, Optional

from warp_transcribe.backend.common.errors import ConfigError
from warp_transcribe.backend.player import NoMatchingProtocol, build_registry
from warp_transcribe.config import settings
from warp_transcribe.config.settings import paths as path_settings
from warp_transcribe.warptx_startup import quick_self_check

from ._utils import (
    build_subparser,
    exit_with_error,
    print_json,
    require_subcommand,
    to_serializable,
)


def _load_raw_config_paths() -> Dict[str, Any]:
    config_file = path_settings.config_paths_file()
    if not config_file.exists():
        return {}
    try:
        with config_file.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except json.JSONDecodeError as exc:
        exit_with_error(f"Failed to parse {config_file.name}: {exc}")


def _load_settings(reload: bool = False) -> settings.Settings:
    try:
        return settings.get_settings(reload=reload)
    except ConfigError as exc:
        exit_with_error(str(exc))


def _handle_settings_show(args: argparse.Namespace) -> None:
    print_json(to_serializable(_load_settings(reload=args.reload)))


def _handle_settings_set_player(args: argparse.Namespace) -> None:
    try:
        updated = settings.update_player(
            args.name,
            program=args.program,
            launch_options=args.option,
            auto_rewind=args.auto_rewind,
        )
    except ConfigError as exc:
        exit_with_error(str(exc))
        return
    print_json(to_serializable(updated.players))


def _handle_settings_map(args: argparse.Namespace) -> None:
    try:
        updated = settings.add_protocol_mapping(args.pattern, args.protocol)
    except ConfigError as exc:
        exit_with_error(str(exc))
        return
    print_json(to_serializable(updated.protocol_map))


def _handle_paths_show(args: argparse.Namespace) -> None:
    if args.raw:
        payload = _load_raw_config_paths()
    else:
        payload = {
            **path_settings.PATHS,
            "config_paths": path_settings.config_paths_file(),
            "user_settings": path_settings.get_user_settings_path(),
        }
    print_json(to_serializable(payload))


def _handle_protocols_list(_: argparse.Namespace) -> None:
    registry = build_registry(_load_settings())
    print_json(
        to_serializable(
            {
                "mappings": [
                    {"pattern": entry.pattern.pattern, "protocol": entry.protocol.name} for entry in registry
                ],
                "protocols": {name: protocol.describe() for name, protocol in registry.protocols().items()},
            }
        )
    )


def _handle_protocols_resolve(args: argparse.Namespace) -> None:
    registry = build_registry(_load_settings())
    try:
        protocol = registry.resolve(Path(args.file).name)
    except NoMatchingProtocol as exc:
        exit_with_error(str(exc))
        return
    print_json(to_serializable({"file": args.file, "protocol": protocol.describe(), "argv": protocol.argv(args.file)}))


def _handle_doctor(_: argparse.Namespace) -> None:
    report = quick_self_check(_load_settings())
    print_json(to_serializable(report))
    if report["status"] == "fail":
        raise SystemExit(1)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="warp-transcribe-admin",
        description="Administer warp-transcribe settings and player protocols.",
    )
    subparsers = parser.add_subparsers(dest="command")
    require_subcommand(subparsers)

    # Settings -----------------------------------------------------------
    settings_parser = build_subparser(subparsers, "settings", help="Inspect and update runtime settings.")
    settings_sub = settings_parser.add_subparsers(dest="settings_command")
    require_subcommand(settings_sub)

    show_settings = build_subparser(settings_sub, "show", help="Display the effective runtime settings.")
    show_settings.add_argument("--reload", action="store_true", help="Reload configuration files before displaying the settings.")
    show_settings.set_defaults(func=_handle_settings_show)

    set_player = build_subparser(settings_sub, "set-player", help="Override the program or options of a player protocol.")
    set_player.add_argument("name", help="Protocol name (mpg123, ogg123, mplayer).")
    set_player.add_argument("--program", help="Executable to launch instead of the default.")
    set_player.add_argument("--option", action="append", help="Launch option; repeat for several. Replaces the defaults.")
    set_player.add_argument("--auto-rewind", type=int, help="Seconds to skip when playback stops (negative rewinds).")
    set_player.set_defaults(func=_handle_settings_set_player)

    map_parser = build_subparser(settings_sub, "map", help="Route sound files matching a pattern to a protocol.")
    map_parser.add_argument("pattern", help="Regular expression searched in the sound file name.")
    map_parser.add_argument("protocol", help="Protocol name to use for matching files.")
    map_parser.set_defaults(func=_handle_settings_map)

    # Paths --------------------------------------------------------------
    paths_parser = build_subparser(subparsers, "paths", help="Show configuration file locations.")
    paths_sub = paths_parser.add_subparsers(dest="paths_command")
    require_subcommand(paths_sub)

    config_show = build_subparser(paths_sub, "show", help="Display configuration file locations.")
    config_show.add_argument("--raw", action="store_true", help="Show the raw config_paths.json payload instead of resolved paths.")
    config_show.set_defaults(func=_handle_paths_show)

    # Protocols ----------------------------------------------------------
    protocols_parser = build_subparser(subparsers, "protocols", help="Inspect the player protocol registry.")
    protocols_sub = protocols_parser.add_subparsers(dest="protocols_command")
    require_subcommand(protocols_sub)

    protocols_list = build_subparser(protocols_sub, "list", help="List registry mappings in match order.")
    protocols_list.set_defaults(func=_handle_protocols_list)

    protocols_resolve = build_subparser(protocols_sub, "resolve", help="Show which protocol would play a file.")
    protocols_resolve.add_argument("file", help="Sound file name or path.")
    protocols_resolve.set_defaults(func=_handle_protocols_resolve)

    # Doctor -------------------------------------------------------------
    doctor = build_subparser(subparsers, "doctor", help="Check that the configured player programs are installed.")
    doctor.set_defaults(func=_handle_doctor)

    return parser


def main(argv: Optional[Any] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    handler = getattr(args, "func", None)
    if handler is None:
        parser.print_help()
        return
    handler(args)


if __name__ == "__main__":  # pragma: no cover
    main()

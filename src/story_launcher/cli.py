# src/story_launcher/cli.py

import argparse
import importlib.metadata
import json
import os
import sys
from typing import Any, Dict, List, Optional

from story_launcher import log_utils, settings as settings_module
from story_launcher.constants import DISABLE_FILE_LOGGING_ENV_VAR
from story_launcher.install.interfaces import ActionResult
from story_launcher.install.manager import InstallManager
from story_launcher.tools import TOOL_REGISTRY, known_tool_ids

ACTION_COMMANDS = ("install", "update", "launch")
TOOL_ID_HELP = "Tool identifier ({})".format(", ".join(known_tool_ids()))


def _emit(payload: Dict[str, Any], as_json: bool, text: str) -> None:
    if as_json:
        print(json.dumps(payload, indent=2))
    else:
        print(text)


def _emit_action(result: ActionResult, as_json: bool) -> int:
    if as_json:
        print(json.dumps(result.to_dict(), indent=2))
    elif result.success:
        log_utils.logger.info(result.message)
    else:
        log_utils.logger.error(result.message)
    return 0 if result.success else 1


def _configure_logging(settings: settings_module.Settings, verbose: bool) -> None:
    level = "DEBUG" if verbose else settings.log_level
    if level != "INFO" or verbose:
        log_utils.set_log_level(level)
    if not os.environ.get(DISABLE_FILE_LOGGING_ENV_VAR):
        try:
            log_utils.add_file_logging(settings_module.get_log_dir(), level)
        except OSError as e:
            log_utils.logger.warning(f"File logging disabled: {e}")


def get_version() -> str:
    try:
        return importlib.metadata.version("story-launcher")
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="story-launcher",
        description="Story Launcher - install and update Story desktop tools",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON (for the GUI shell)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )
    subparsers = parser.add_subparsers(dest="command")

    status_parser = subparsers.add_parser(
        "status", help="Show installed and latest version of a tool"
    )
    status_parser.add_argument("tool_id", help=TOOL_ID_HELP)

    for command, help_text in (
        ("install", "Install the latest release of a tool"),
        ("update", "Reinstall a tool from its latest release"),
        ("launch", "Open an installed tool"),
    ):
        action_parser = subparsers.add_parser(command, help=help_text)
        action_parser.add_argument("tool_id", help=TOOL_ID_HELP)

    subparsers.add_parser("list", help="List installed tools")

    check_parser = subparsers.add_parser(
        "check", help="Check every tool for updates"
    )
    check_parser.add_argument(
        "--auto-update",
        action="store_true",
        default=None,
        help="Apply available updates (defaults to AUTO_UPDATE_ON_LAUNCH)",
    )

    subparsers.add_parser("tools", help="List the tools that can be installed")

    settings_parser = subparsers.add_parser(
        "settings", help="Show the effective settings and paths"
    )
    settings_parser.add_argument(
        "--init",
        action="store_true",
        help="Write a settings file with the current values if none exists",
    )

    subparsers.add_parser("version", help="Display Story Launcher version")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Entry point for the Story Launcher command-line interface.

    Each subcommand maps to one command of the GUI shell: status, install,
    update, launch and list, plus check (all tools, optional auto-update),
    tools, settings and version. Returns the process exit status: 0 on
    success, 1 when an action failed.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "version":
        version = get_version()
        _emit({"version": version}, args.json, f"Story Launcher v{version}")
        return 0

    if args.command == "tools":
        tools = [
            {
                "id": tool.tool_id.value,
                "name": tool.display_name,
                "repository": tool.source_repository,
            }
            for tool in TOOL_REGISTRY.values()
        ]
        lines = [f"{t['id']}: {t['name']} ({t['repository']})" for t in tools]
        _emit({"tools": tools}, args.json, "\n".join(lines))
        return 0

    settings = settings_module.load_settings()
    _configure_logging(settings, args.verbose)

    if args.command == "settings":
        settings_file = settings_module.get_settings_file()
        if args.init and not settings_file.exists():
            try:
                settings_module.save_settings(settings, settings_file)
            except OSError as e:
                log_utils.logger.error(f"Could not write {settings_file}: {e}")
                return 1
            log_utils.logger.info(f"Wrote default settings to {settings_file}")
        paths = settings.paths
        payload = {
            "settings_file": str(settings_file),
            "tools_dir": str(paths.tools_dir),
            "apps_dir": str(paths.apps_dir),
            "config_path": str(paths.config_path),
            "auto_update_on_launch": settings.auto_update_on_launch,
            "github_token_configured": settings.effective_github_token() is not None,
        }
        text = "\n".join(f"{key}: {value}" for key, value in payload.items())
        _emit(payload, args.json, text)
        return 0

    manager = InstallManager.from_settings(settings)

    if args.command == "status":
        status = manager.check_status(args.tool_id)
        text = (
            f"{args.tool_id}: installed={status.installed} "
            f"installed_version={status.installed_version or '-'} "
            f"latest_version={status.latest_version or '-'} "
            f"has_update={status.has_update}"
        )
        if status.error:
            text += f" error={status.error}"
        _emit(status.to_dict(), args.json, text)
        return 0 if status.error is None else 1

    if args.command in ACTION_COMMANDS:
        handler = getattr(manager, args.command)
        return _emit_action(handler(args.tool_id), args.json)

    if args.command == "list":
        installed = manager.list_installed()
        _emit(
            {"installed": installed},
            args.json,
            "\n".join(installed) if installed else "No tools installed",
        )
        return 0

    if args.command == "check":
        auto_update = (
            settings.auto_update_on_launch
            if args.auto_update is None
            else args.auto_update
        )
        summary = manager.check_updates(auto_update=auto_update)
        lines = []
        for tool_id, status in summary.statuses.items():
            if status.error:
                lines.append(f"{tool_id}: {status.error}")
            elif tool_id in summary.updated:
                lines.append(f"{tool_id}: updated to {status.latest_version}")
            elif status.has_update:
                lines.append(
                    f"{tool_id}: update available "
                    f"({status.installed_version} -> {status.latest_version})"
                )
            elif status.installed:
                lines.append(f"{tool_id}: up to date ({status.installed_version})")
            else:
                lines.append(f"{tool_id}: not installed")
        for tool_id, message in summary.failed.items():
            lines.append(f"{tool_id}: update failed: {message}")
        _emit(summary.to_dict(), args.json, "\n".join(lines))
        return 1 if summary.failed else 0

    parser.print_help()
    return 0


def run() -> None:
    sys.exit(main())


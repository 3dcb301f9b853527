"""
Auto-discovery CLI dispatcher for relaunch.

Every public module under ``cli/commands`` becomes a subcommand; adding a
command means adding a file.
"""
from __future__ import annotations

import argparse
import importlib
import sys
from collections.abc import Callable
from functools import lru_cache
from pathlib import Path
from typing import Any

from relaunch.core.logging import configure_logging


@lru_cache(maxsize=1)
def discover_commands() -> dict[str, dict[str, Any]]:
    """Map command name to its module, summary, ``register_args`` and ``main``."""
    commands_dir = Path(__file__).parent / "commands"
    commands: dict[str, dict[str, Any]] = {}
    for item in sorted(commands_dir.glob("*.py")):
        if item.name.startswith("_"):
            continue
        cmd_name = item.stem
        try:
            module = importlib.import_module(f"relaunch.cli.commands.{cmd_name}")
        except ImportError as e:
            print(f"Warning: Could not import command {cmd_name}: {e}", file=sys.stderr)
            continue
        commands[cmd_name] = {
            "module": module,
            "summary": getattr(module, "SUMMARY", cmd_name),
            "register_args": getattr(module, "register_args", None),
            "main": getattr(module, "main", None),
        }
    return commands


def _get_version() -> str:
    from relaunch import __version__

    return __version__


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="relaunch",
        description="Inspect and reconcile crash/session records",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {_get_version()}")
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Log level for relaunch loggers (defaults to logging.level from config)",
    )
    subparsers = parser.add_subparsers(dest="command", title="commands", metavar="<command>")
    for cmd_name, cmd_info in discover_commands().items():
        cmd_parser = subparsers.add_parser(cmd_name, help=cmd_info["summary"])
        if cmd_info["register_args"]:
            cmd_info["register_args"](cmd_parser)
        if cmd_info["main"]:
            cmd_parser.set_defaults(_func=cmd_info["main"])
    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for the ``relaunch`` console script."""
    if argv is None:
        argv = sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    func: Callable[[argparse.Namespace], int] | None = getattr(args, "_func", None)
    if func is None:
        parser.print_help()
        return 0
    repo_root = Path(args.repo_root) if getattr(args, "repo_root", None) else None
    configure_logging(args.log_level, repo_root=repo_root)
    return int(func(args))


__all__ = ["build_parser", "discover_commands", "main"]

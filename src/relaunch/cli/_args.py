"""Common CLI argument registration helpers."""
from __future__ import annotations

import argparse


def add_json_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--json", action="store_true", help="Output as JSON")


def add_repo_root_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--repo-root", type=str, help="Override project root path")


def add_store_dir_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--store-dir",
        type=str,
        help="Record store directory (defaults to client.storeDir from config)",
    )


def add_standard_flags(parser: argparse.ArgumentParser) -> None:
    """Add --json, --repo-root and --store-dir."""
    add_json_flag(parser)
    add_repo_root_flag(parser)
    add_store_dir_flag(parser)


__all__ = ["add_json_flag", "add_repo_root_flag", "add_store_dir_flag", "add_standard_flags"]

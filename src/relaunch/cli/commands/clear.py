"""
relaunch clear command.

SUMMARY: Delete records from the store
"""
from __future__ import annotations

import argparse
import sys

from relaunch.cli import OutputFormatter, add_standard_flags, load_options
from relaunch.core.store.records import RecordStore, Slot

SUMMARY = "Delete records from the store"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--slot",
        choices=[slot.value for slot in Slot],
        action="append",
        help="Slot to delete (repeatable; default: all slots)",
    )
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    try:
        options = load_options(args)
        store = RecordStore(options.store_dir)
        slots = [Slot(value) for value in args.slot] if args.slot else list(Slot)
        for slot in slots:
            store.delete(slot)
        names = [slot.value for slot in slots]
        formatter.success({"cleared": names}, f"Cleared {', '.join(names)}")
        return 0
    except Exception as e:
        formatter.error(e, error_code="clear_error")
        return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))

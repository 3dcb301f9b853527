"""
relaunch status command.

SUMMARY: Show the session and app state records in the store
"""
from __future__ import annotations

import argparse
import json
import sys

from relaunch.cli import OutputFormatter, add_standard_flags, load_options
from relaunch.core.store.records import RecordStore, Slot

SUMMARY = "Show the session and app state records in the store"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    try:
        options = load_options(args)
        store = RecordStore(options.store_dir)
        slots = {slot.value: store.read(slot) for slot in Slot}
        if formatter.json_mode:
            formatter.json_output({"storeDir": str(options.store_dir), "slots": slots})
            return 0
        formatter.text(f"Store: {options.store_dir}")
        for name, record in slots.items():
            if record is None:
                formatter.text_kv(name, "(empty)")
            else:
                formatter.text_kv(name, json.dumps(record, sort_keys=True))
        return 0
    except Exception as e:
        formatter.error(e, error_code="status_error")
        return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))

"""
relaunch report command.

SUMMARY: Print the crash report left by the previous run
"""
from __future__ import annotations

import argparse
import json
import sys

from relaunch.cli import OutputFormatter, add_standard_flags, load_options
from relaunch.core.crash.faulthandler_adapter import FaulthandlerCrashAdapter

SUMMARY = "Print the crash report left by the previous run"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    try:
        options = load_options(args)
        report = FaulthandlerCrashAdapter(options.crash_dir).load_crash_report()
        if report is None:
            formatter.success({"report": None}, "No crash report", status="empty")
            return 0
        if formatter.json_mode:
            formatter.json_output(report)
            return 0
        formatter.text(f"Crashed at: {report['crashedAt']}")
        if report["userInfo"] is not None:
            formatter.text("User info:")
            formatter.text(json.dumps(report["userInfo"], indent=2, sort_keys=True))
        formatter.text("Traceback:")
        formatter.text(report["traceback"].rstrip())
        return 0
    except Exception as e:
        formatter.error(e, error_code="report_error")
        return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))

"""
relaunch reconcile command.

SUMMARY: Reconcile the stored session against the last crash log
"""
from __future__ import annotations

import argparse
import sys

from relaunch.cli import OutputFormatter, add_standard_flags, load_options
from relaunch.core.app_state import AppStateTracker
from relaunch.core.crash.faulthandler_adapter import FaulthandlerCrashAdapter
from relaunch.core.device import collect_device_facts
from relaunch.core.session.reconciler import SessionReconciler
from relaunch.core.store.records import RecordStore

SUMMARY = "Reconcile the stored session against the last crash log"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--no-oom",
        action="store_true",
        help="Do not end the session as abnormal on a suspected out-of-memory kill",
    )
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    try:
        options = load_options(args)
        if args.no_oom:
            options.enable_out_of_memory_tracking = False
        store = RecordStore(options.store_dir)
        adapter = FaulthandlerCrashAdapter(options.crash_dir)
        adapter.install()
        try:
            tracker = None
            if options.enable_out_of_memory_tracking:
                tracker = AppStateTracker(store, collect_device_facts(), options.release_name)
            result = SessionReconciler(
                store,
                adapter,
                app_state=tracker,
                enable_out_of_memory_tracking=options.enable_out_of_memory_tracking,
                crash_end_delta_seconds=options.crash_end_delta_seconds,
            ).reconcile()
        finally:
            adapter.uninstall()

        session = result.session.to_dict() if result.session else None
        message = f"Reconciliation: {result.action.value}"
        if result.session is not None and result.action.ends_session:
            message += f" (session {result.session.id} -> {result.session.status.value})"
        formatter.success({"action": result.action.value, "session": session}, message)
        return 0
    except Exception as e:
        formatter.error(e, error_code="reconcile_error")
        return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))

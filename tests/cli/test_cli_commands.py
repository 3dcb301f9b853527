from __future__ import annotations

import json
import logging
from datetime import timedelta
from pathlib import Path

import pytest

from relaunch.cli._dispatcher import build_parser, discover_commands, main
from relaunch.core.crash.faulthandler_adapter import CRASH_LOG, PREVIOUS_CRASH_LOG, USER_INFO
from relaunch.core.logging import PACKAGE_LOGGER
from relaunch.core.options import Options
from relaunch.core.store.records import RecordStore
from conftest import BOOT, T0
from helpers.factories import make_app_state, make_session


@pytest.fixture(autouse=True)
def _drop_cli_log_handler():
    """The CLI attaches a stderr handler bound to the captured stream; detach it."""
    yield
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def cli_store(isolated_project_env) -> RecordStore:
    return RecordStore(Options.from_config(isolated_project_env).store_dir)


def _run(capsys, *argv: str):
    code = main(list(argv))
    out, err = capsys.readouterr()
    return code, out, err


def test_commands_are_discovered() -> None:
    assert set(discover_commands()) >= {"status", "reconcile", "clear", "report"}
    assert build_parser().prog == "relaunch"


def test_no_command_prints_help(capsys) -> None:
    code, out, _ = _run(capsys)
    assert code == 0
    assert "status" in out


def test_status_json_lists_all_slots(isolated_project_env, cli_store, capsys) -> None:
    cli_store.store_current_session(make_session(T0))

    code, out, _ = _run(capsys, "status", "--json")

    assert code == 0
    payload = json.loads(out)
    assert payload["slots"]["session.current"]["id"] == "s1"
    assert payload["slots"]["session.crashed"] is None
    assert payload["slots"]["appstate.current"] is None


def test_status_text_output(isolated_project_env, cli_store, capsys) -> None:
    code, out, _ = _run(capsys, "status")

    assert code == 0
    assert "session.current: (empty)" in out


def test_status_honors_store_dir(tmp_path: Path, isolated_project_env, capsys) -> None:
    other = RecordStore(tmp_path / "other-store")
    other.store_app_state(make_app_state(BOOT))

    code, out, _ = _run(capsys, "status", "--json", "--store-dir", str(tmp_path / "other-store"))

    assert code == 0
    assert json.loads(out)["slots"]["appstate.current"]["osVersion"] == "6.1.0"


def test_reconcile_ends_session_after_crash_log(isolated_project_env, cli_store, capsys) -> None:
    cli_store.store_current_session(make_session(T0))
    crash_dir = Options.from_config(isolated_project_env).crash_dir
    crash_dir.mkdir(parents=True)
    (crash_dir / CRASH_LOG).write_text("Fatal Python error: Aborted\n", encoding="utf-8")

    code, out, _ = _run(capsys, "reconcile", "--json")

    assert code == 0
    payload = json.loads(out)
    assert payload["action"] == "end_crashed"
    assert payload["session"]["status"] == "crashed"
    assert cli_store.read_current_session() is None
    assert cli_store.read_crashed_session().ended_at == T0 + timedelta(seconds=5)


def test_reconcile_without_session(isolated_project_env, capsys) -> None:
    code, out, _ = _run(capsys, "reconcile")

    assert code == 0
    assert "noop_no_session" in out


def test_reconcile_no_oom_leaves_session(isolated_project_env, cli_store, capsys) -> None:
    cli_store.store_current_session(make_session(T0))

    code, out, _ = _run(capsys, "reconcile", "--no-oom", "--json")

    assert code == 0
    assert json.loads(out)["action"] == "leave_running"
    assert cli_store.read_current_session() is not None


def test_clear_single_slot(isolated_project_env, cli_store, capsys) -> None:
    cli_store.store_current_session(make_session(T0))
    cli_store.store_app_state(make_app_state(BOOT))

    code, out, _ = _run(capsys, "clear", "--slot", "appstate.current", "--json")

    assert code == 0
    assert json.loads(out)["cleared"] == ["appstate.current"]
    assert cli_store.read_app_state() is None
    assert cli_store.read_current_session() is not None


def test_clear_all_slots(isolated_project_env, cli_store, capsys) -> None:
    cli_store.store_current_session(make_session(T0))

    code, _, _ = _run(capsys, "clear")

    assert code == 0
    assert all(value is None for value in cli_store.snapshot().values())


def test_clear_rejects_unknown_slot(isolated_project_env, capsys) -> None:
    with pytest.raises(SystemExit):
        main(["clear", "--slot", "bogus"])


def test_report_without_crash(isolated_project_env, capsys) -> None:
    code, out, _ = _run(capsys, "report", "--json")

    assert code == 0
    assert json.loads(out) == {"status": "empty", "report": None}


def test_report_after_reconcile(isolated_project_env, capsys) -> None:
    crash_dir = Options.from_config(isolated_project_env).crash_dir
    crash_dir.mkdir(parents=True)
    (crash_dir / CRASH_LOG).write_text("Fatal Python error: Aborted\n", encoding="utf-8")
    (crash_dir / USER_INFO).write_text(json.dumps({"release": "app@1.0.0"}), encoding="utf-8")
    _run(capsys, "reconcile")

    code, out, _ = _run(capsys, "report")

    assert code == 0
    assert "Fatal Python error: Aborted" in out
    assert '"release": "app@1.0.0"' in out


def test_errors_are_reported_as_json(isolated_project_env, capsys) -> None:
    crash_dir = Options.from_config(isolated_project_env).crash_dir
    # A directory where the crash log should be cannot be read as text.
    (crash_dir / PREVIOUS_CRASH_LOG).mkdir(parents=True)

    code, _, err = _run(capsys, "report", "--json")

    assert code == 1
    assert json.loads(err)["error"] == "report_error"

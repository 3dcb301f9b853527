from __future__ import annotations

import json
from datetime import timedelta

import pytest

from relaunch.core.exceptions import RecordStoreError
from relaunch.core.store.records import RecordStore, Slot
from conftest import BOOT, T0
from helpers.factories import make_app_state, make_session


def test_slot_names_are_stable() -> None:
    assert [slot.value for slot in Slot] == ["session.current", "session.crashed", "appstate.current"]


def test_read_missing_slot_returns_none(store) -> None:
    for slot in Slot:
        assert store.read(slot) is None


def test_store_then_read(store) -> None:
    record = make_session(T0).to_dict()

    store.store(record, Slot.CURRENT_SESSION)

    assert store.read(Slot.CURRENT_SESSION) == record
    assert store.path_for(Slot.CURRENT_SESSION).name == "session.current.json"


def test_store_replaces_whole_record(store) -> None:
    store.store(make_session(T0, distinct_id="u1").to_dict(), Slot.CURRENT_SESSION)
    store.store(make_session(T0).to_dict(), Slot.CURRENT_SESSION)

    assert "distinctId" not in store.read(Slot.CURRENT_SESSION)


def test_delete_missing_slot_is_noop(store) -> None:
    store.delete(Slot.CRASHED_SESSION)
    store.delete(Slot.CRASHED_SESSION)
    assert store.read(Slot.CRASHED_SESSION) is None


@pytest.mark.parametrize(
    "content",
    [
        "{truncated",
        "[1, 2, 3]",
        json.dumps({"id": "s1"}),
        json.dumps({"id": "s1", "startedAt": "x", "status": "zombie", "errorsCount": 0, "releaseName": "r"}),
    ],
)
def test_corrupt_slot_reads_as_absent(store, content: str, caplog) -> None:
    path = store.path_for(Slot.CURRENT_SESSION)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")

    with caplog.at_level("WARNING", logger="relaunch.core.store.records"):
        assert store.read(Slot.CURRENT_SESSION) is None
    assert "session.current" in caplog.text


def test_failed_write_keeps_previous_value(store) -> None:
    record = make_session(T0).to_dict()
    store.store(record, Slot.CURRENT_SESSION)

    with pytest.raises(RecordStoreError) as excinfo:
        store.store({"bad": object()}, Slot.CURRENT_SESSION)

    assert excinfo.value.context["slot"] == "session.current"
    assert store.read(Slot.CURRENT_SESSION) == record
    leftovers = [p.name for p in store.base_dir.iterdir() if p.name.endswith(".tmp")]
    assert leftovers == []


def test_move_to_crashed_stages_then_clears_current(store) -> None:
    session = make_session(T0)
    store.store_current_session(session)
    session.end_crashed(T0 + timedelta(seconds=5))

    store.move_to_crashed(session)

    assert store.read_current_session() is None
    assert store.read_crashed_session() == session


def test_move_to_crashed_writes_crashed_slot_first(store, monkeypatch) -> None:
    session = make_session(T0)
    store.store_current_session(session)
    session.end_crashed(T0)

    def _killed(*_args, **_kwargs):
        raise KeyboardInterrupt

    monkeypatch.setattr(store, "delete_current_session", _killed)
    with pytest.raises(KeyboardInterrupt):
        store.move_to_crashed(session)

    assert store.read_crashed_session() == session
    assert store.read_current_session() is not None


def test_typed_app_state_helpers(store) -> None:
    state = make_app_state(BOOT)

    store.store_app_state(state)
    assert store.read_app_state() == state

    store.delete_app_state()
    assert store.read_app_state() is None


def test_snapshot_returns_raw_bytes(store) -> None:
    store.store_current_session(make_session(T0))

    snap = store.snapshot()

    assert set(snap) == {"session.current", "session.crashed", "appstate.current"}
    assert snap["session.crashed"] is None
    assert json.loads(snap["session.current"])["id"] == "s1"


def test_clear_deletes_every_slot(store) -> None:
    store.store_current_session(make_session(T0))
    store.store_app_state(make_app_state(BOOT))

    store.clear()

    assert all(value is None for value in store.snapshot().values())


def test_store_creates_base_dir(tmp_path) -> None:
    store = RecordStore(tmp_path / "a" / "b")
    store.store_app_state(make_app_state(BOOT))
    assert (tmp_path / "a" / "b" / "appstate.current.json").exists()

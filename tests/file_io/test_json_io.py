from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Dict

import pytest

from relaunch.core.utils.io import read_json, write_json_atomic


def test_write_json_atomic_roundtrip(tmp_path: Path) -> None:
    out = tmp_path / "nested" / "data.json"
    payload: Dict[str, Any] = {"b": 1, "a": {"c": [1, 2, 3]}}

    write_json_atomic(out, payload)

    assert read_json(out) == payload
    # Keys are sorted and indented by default.
    assert out.read_text(encoding="utf-8").splitlines()[1].strip().startswith('"a"')


def test_read_json_missing_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        read_json(tmp_path / "nope.json")


def test_read_json_missing_returns_default(tmp_path: Path) -> None:
    assert read_json(tmp_path / "nope.json", default=None) is None


def test_read_json_invalid_raises_value_error(tmp_path: Path) -> None:
    path = tmp_path / "bad.json"
    path.write_text("{", encoding="utf-8")
    with pytest.raises(ValueError):
        read_json(path)


def test_failed_serialization_leaves_previous_content(tmp_path: Path) -> None:
    out = tmp_path / "data.json"
    write_json_atomic(out, {"v": 1})

    with pytest.raises(TypeError):
        write_json_atomic(out, {"v": object()})

    assert json.loads(out.read_text()) == {"v": 1}
    assert sorted(p.name for p in tmp_path.iterdir()) == ["data.json"]


def test_concurrent_atomic_writes_produce_valid_json(tmp_path: Path) -> None:
    out = tmp_path / "race.json"

    def writer(value: int) -> None:
        for _ in range(50):
            write_json_atomic(out, {"v": value})

    t1 = threading.Thread(target=writer, args=(1,))
    t2 = threading.Thread(target=writer, args=(2,))
    t1.start(); t2.start()
    t1.join(); t2.join()

    data = json.loads(out.read_text())
    assert data.get("v") in (1, 2)

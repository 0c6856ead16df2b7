from __future__ import annotations

import pytest

from claimdrop.runtime.drop_store import MemoryDropStore, empty_drop_state


def test_failed_update_restores_every_touched_key() -> None:
    store = MemoryDropStore()
    store.update(lambda st: st["token"]["balances"].update({"alice": 5, "bob": 7}))
    before = store.read()

    def _mut(st: dict) -> None:
        st["token"]["balances"]["alice"] = 99
        st["token"]["balances"]["carol"] = 1
        del st["token"]["balances"]["bob"]
        st["drop"]["claimed"].setdefault("carol", True)
        st["drop"]["issued"] = 100
        st["extra"] = {"nested": {"x": 1}}
        st["extra"]["nested"]["x"] = 2
        raise RuntimeError("abort")

    with pytest.raises(RuntimeError):
        store.update(_mut)
    assert store.read() == before


def test_subtrees_inserted_by_an_update_roll_back_later() -> None:
    store = MemoryDropStore()
    store.update(lambda st: st.__setitem__("extra", {"a": 1}))

    def _mut(st: dict) -> None:
        st["extra"]["a"] = 2
        st["extra"].pop("a")
        raise RuntimeError("abort")

    with pytest.raises(RuntimeError):
        store.update(_mut)
    assert store.read()["extra"] == {"a": 1}


def test_update_returns_result_and_keeps_changes() -> None:
    store = MemoryDropStore()

    def _mut(st: dict) -> int:
        st["drop"]["issued"] = 3
        return 42

    assert store.update(_mut) == 42
    assert store.view(lambda st: st["drop"]["issued"]) == 3


def test_read_is_detached_and_initial_state_is_copied() -> None:
    initial = empty_drop_state()
    store = MemoryDropStore(initial)
    initial["drop"]["issued"] = 9

    snap = store.read()
    snap["drop"]["claimed"]["mallory"] = True

    assert type(snap["drop"]) is dict
    assert store.read() == empty_drop_state()

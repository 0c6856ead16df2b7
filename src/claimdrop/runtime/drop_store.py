from __future__ import annotations

import threading
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

Json = Dict[str, Any]

_MISSING = object()


def empty_drop_state() -> Json:
    return {
        "token": {"total_supply": 0, "balances": {}},
        "drop": {"issued": 0, "claimed": {}, "claims": 0, "last_claim_time": None},
    }


class DropStore(Protocol):
    def read(self) -> Json: ...

    def view(self, fn: Callable[[Json], Any]) -> Any: ...

    def update(self, mut: Callable[[Json], Any]) -> Any: ...


class _UndoLog:
    def __init__(self) -> None:
        self.entries: List[Tuple[dict, Any, Any]] = []
        self.recording = False

    def note(self, d: dict, key: Any) -> None:
        if self.recording:
            self.entries.append((d, key, dict.get(d, key, _MISSING)))

    def rollback(self) -> None:
        while self.entries:
            d, key, old = self.entries.pop()
            if old is _MISSING:
                dict.pop(d, key, None)
            else:
                dict.__setitem__(d, key, old)

    def commit(self) -> None:
        # Subtrees inserted during the update become tracked from now on.
        for d, key, _old in self.entries:
            v = dict.get(d, key, _MISSING)
            if type(v) is dict:
                dict.__setitem__(d, key, _tracked(v, self))
        self.entries = []


class _TrackedDict(dict):
    """dict that records the previous value of each key it changes."""

    __slots__ = ("_undo",)

    def __init__(self, src: Json, undo: _UndoLog) -> None:
        super().__init__()
        self._undo = undo
        for k, v in src.items():
            dict.__setitem__(self, k, _tracked(v, undo))

    def __setitem__(self, key: Any, value: Any) -> None:
        self._undo.note(self, key)
        dict.__setitem__(self, key, value)

    def __delitem__(self, key: Any) -> None:
        self._undo.note(self, key)
        dict.__delitem__(self, key)

    def setdefault(self, key: Any, default: Any = None) -> Any:
        if key not in self:
            self[key] = default
        return dict.__getitem__(self, key)

    def pop(self, key: Any, *default: Any) -> Any:
        if key in self:
            self._undo.note(self, key)
        return dict.pop(self, key, *default)

    def popitem(self) -> Tuple[Any, Any]:
        key = next(reversed(self.keys()))
        value = dict.__getitem__(self, key)
        del self[key]
        return key, value

    def update(self, *args: Any, **kw: Any) -> None:
        for k, v in dict(*args, **kw).items():
            self[k] = v

    def clear(self) -> None:
        for k in list(self.keys()):
            del self[k]


def _tracked(v: Any, undo: _UndoLog) -> Any:
    if isinstance(v, dict):
        return _TrackedDict(v, undo)
    return v


def _plain(v: Any) -> Any:
    if isinstance(v, dict):
        return {k: _plain(x) for k, x in v.items()}
    if isinstance(v, list):
        return [_plain(x) for x in v]
    return v


class MemoryDropStore:
    """In-process drop state.

    update(mut) holds a single lock for the whole read-modify-write and runs
    `mut` against the live state. Every key `mut` sets or deletes is logged
    with its previous value; if `mut` raises, the log is replayed backwards,
    so the state is unchanged. A settle step therefore costs what it touches,
    not what the state holds.

    The state is a tree of dicts with scalar leaves. Lists are not tracked.
    """

    def __init__(self, initial: Optional[Json] = None) -> None:
        self._lock = threading.Lock()
        self._undo = _UndoLog()
        self._state: Json = _tracked(initial if initial is not None else empty_drop_state(), self._undo)

    def read(self) -> Json:
        """Full detached copy of the state."""
        with self._lock:
            return _plain(self._state)

    def view(self, fn: Callable[[Json], Any]) -> Any:
        """Run a read-only `fn` on the live state under the lock."""
        with self._lock:
            return fn(self._state)

    def update(self, mut: Callable[[Json], Any]) -> Any:
        with self._lock:
            self._undo.recording = True
            try:
                out = mut(self._state)
            except BaseException:
                self._undo.rollback()
                raise
            finally:
                self._undo.recording = False
            self._undo.commit()
            return out


__all__ = ["DropStore", "MemoryDropStore", "empty_drop_state"]

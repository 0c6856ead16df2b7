# src/claimdrop/runtime/sqlite_db.py
from __future__ import annotations

import os
import json
import sqlite3
import time
import random
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterator

from claimdrop.runtime.drop_store import empty_drop_state

Json = Dict[str, Any]


def _now_ms() -> int:
    return int(time.time() * 1000)


def _canon_json(obj: Any) -> str:
    # Big ints stay exact in JSON; unknown types must fail rather than be coerced.
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _env_int(name: str, default: int) -> int:
    try:
        raw = str(os.environ.get(name, "")).strip()
        return int(raw) if raw else int(default)
    except Exception:
        return int(default)


class SqliteDB:
    """SQLite manager for drop state.

    Connections are never shared across threads or processes. SQLite allows
    one writer at a time, so BEGIN IMMEDIATE is retried with bounded backoff
    in write_tx().
    """

    SCHEMA_VERSION = 1

    def __init__(self, *, path: str) -> None:
        self.path = str(path)

    def ensure_parent_dir(self) -> None:
        p = Path(self.path)
        p.parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        self.ensure_parent_dir()

        connect_timeout_s = float(_env_int("CLAIMDROP_SQLITE_CONNECT_TIMEOUT_MS", 30_000)) / 1000.0

        con = sqlite3.connect(
            self.path,
            timeout=connect_timeout_s,
            isolation_level=None,  # BEGIN/COMMIT are issued explicitly
            check_same_thread=False,
        )
        con.row_factory = sqlite3.Row

        row = con.execute("PRAGMA journal_mode=WAL;").fetchone()
        mode = str(row[0]).strip().lower() if row is not None else ""
        if mode and mode != "wal":
            con.close()
            raise RuntimeError(f"sqlite journal_mode is '{mode}', expected 'wal'")

        con.execute("PRAGMA synchronous=FULL;")
        con.execute("PRAGMA temp_store=MEMORY;")

        busy_ms = _env_int("CLAIMDROP_SQLITE_BUSY_TIMEOUT_MS", int(connect_timeout_s * 1000))
        con.execute(f"PRAGMA busy_timeout={max(0, int(busy_ms))};")

        return con

    def init_schema(self) -> None:
        with self.write_tx() as con:
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS meta (
                  key TEXT PRIMARY KEY,
                  value TEXT NOT NULL
                );
                """
            )

            con.execute(
                """
                CREATE TABLE IF NOT EXISTS drop_state (
                  id INTEGER PRIMARY KEY CHECK (id = 1),
                  claims INTEGER NOT NULL,
                  state_json TEXT NOT NULL,
                  updated_ts_ms INTEGER NOT NULL
                );
                """
            )

            row = con.execute("SELECT value FROM meta WHERE key='schema_version' LIMIT 1;").fetchone()
            if row is None:
                con.execute("INSERT INTO meta(key, value) VALUES('schema_version', ?);", (str(self.SCHEMA_VERSION),))
            else:
                try:
                    v = int(str(row["value"]))
                except Exception:
                    v = 0
                if v != self.SCHEMA_VERSION:
                    raise RuntimeError(
                        f"sqlite schema_version mismatch: have={v} want={self.SCHEMA_VERSION}. "
                        "Refuse to start to avoid corrupting data."
                    )

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        con = self._connect()
        try:
            yield con
        finally:
            con.close()

    @staticmethod
    def _is_locked_error(e: Exception) -> bool:
        msg = str(e).lower()
        return ("database is locked" in msg) or ("database is busy" in msg)

    def _backoff(self, attempt: int) -> None:
        base_sleep = max(0.001, float(_env_int("CLAIMDROP_SQLITE_WRITE_BACKOFF_BASE_MS", 5)) / 1000.0)
        max_sleep = max(base_sleep, float(_env_int("CLAIMDROP_SQLITE_WRITE_BACKOFF_MAX_MS", 250)) / 1000.0)
        sleep_s = min(max_sleep, base_sleep * (2.0 ** min(attempt, 8)))
        time.sleep(sleep_s * (0.5 + random.random()))

    @contextmanager
    def write_tx(self) -> Iterator[sqlite3.Connection]:
        """Open a write transaction, retrying lock contention until a deadline.

        Any exception raised inside the block rolls the transaction back and
        propagates.
        """
        deadline_ms = max(250, _env_int("CLAIMDROP_SQLITE_WRITE_DEADLINE_MS", 30_000))
        deadline_ts = _now_ms() + deadline_ms

        with self.connection() as con:
            attempt = 0
            while True:
                try:
                    con.execute("BEGIN IMMEDIATE;")
                    break
                except sqlite3.OperationalError as e:
                    if not self._is_locked_error(e) or _now_ms() >= deadline_ts:
                        raise
                    self._backoff(attempt)
                    attempt += 1

            try:
                yield con

                c_attempt = 0
                while True:
                    try:
                        con.execute("COMMIT;")
                        break
                    except sqlite3.OperationalError as e:
                        if not self._is_locked_error(e) or _now_ms() >= deadline_ts:
                            raise
                        self._backoff(c_attempt)
                        c_attempt += 1
            except BaseException:
                con.execute("ROLLBACK;")
                raise


class SqliteDropStore:
    """Drop state persisted as a single SQLite row.

      - read(): load the latest state
      - view(fn): run fn on the latest state; returns fn's result
      - update(mut): read-modify-write inside one write transaction; returns mut's result

    The row is seeded with an empty state on first use.
    """

    def __init__(self, *, db: SqliteDB) -> None:
        self._db = db
        self._db.init_schema()
        with self._db.write_tx() as con:
            row = con.execute("SELECT 1 FROM drop_state WHERE id=1;").fetchone()
            if row is None:
                con.execute(
                    "INSERT INTO drop_state(id, claims, state_json, updated_ts_ms) VALUES(1, 0, ?, ?);",
                    (_canon_json(empty_drop_state()), _now_ms()),
                )

    @classmethod
    def open(cls, path: str) -> "SqliteDropStore":
        return cls(db=SqliteDB(path=path))

    @staticmethod
    def _load(row: Any) -> Json:
        if row is None:
            raise FileNotFoundError("sqlite drop_state is missing")
        st = json.loads(str(row["state_json"]))
        if not isinstance(st, dict):
            raise ValueError("drop_state is not a JSON object")
        return st

    def read(self) -> Json:
        with self._db.connection() as con:
            return self._load(con.execute("SELECT state_json FROM drop_state WHERE id=1;").fetchone())

    def view(self, fn: Callable[[Json], Any]) -> Any:
        return fn(self.read())

    def update(self, mut: Callable[[Json], Any]) -> Any:
        with self._db.write_tx() as con:
            st = self._load(con.execute("SELECT state_json FROM drop_state WHERE id=1;").fetchone())

            out = mut(st)

            drop = st.get("drop") if isinstance(st.get("drop"), dict) else {}
            con.execute(
                "UPDATE drop_state SET claims=?, state_json=?, updated_ts_ms=? WHERE id=1;",
                (int(drop.get("claims", 0)), _canon_json(st), _now_ms()),
            )
            return out


__all__ = ["SqliteDB", "SqliteDropStore"]

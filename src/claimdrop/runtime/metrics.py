from __future__ import annotations

import os
import threading
import time
from typing import Dict


_lock = threading.Lock()
_counters: Dict[str, int] = {}
_gauges: Dict[str, int] = {}
_started_ms = int(time.time() * 1000)


def metrics_enabled() -> bool:
    v = (os.environ.get("CLAIMDROP_METRICS_ENABLED") or "").strip().lower()
    return v in {"1", "true", "yes", "y", "on"}


def inc_counter(name: str, value: int = 1) -> None:
    n = str(name or "").strip()
    if not n:
        return
    with _lock:
        _counters[n] = int(_counters.get(n, 0)) + int(value)


def set_gauge(name: str, value: int) -> None:
    n = str(name or "").strip()
    if not n:
        return
    with _lock:
        _gauges[n] = int(value)


def snapshot() -> dict:
    with _lock:
        return {
            "ts_ms": int(time.time() * 1000),
            "started_ms": int(_started_ms),
            "uptime_ms": int(time.time() * 1000) - int(_started_ms),
            "counters": dict(_counters),
            "gauges": dict(_gauges),
        }


def reset() -> None:
    with _lock:
        _counters.clear()
        _gauges.clear()


def format_prometheus(prefix: str = "claimdrop_") -> str:
    """Prometheus exposition text; integer counters/gauges only."""
    pre = str(prefix or "").strip() or "claimdrop_"
    snap = snapshot()
    lines: list[str] = [f"{pre}uptime_ms {int(snap['uptime_ms'])}"]

    for k in sorted(snap["counters"].keys()):
        lines.append(f"{pre}{k} {int(snap['counters'][k])}")
    for k in sorted(snap["gauges"].keys()):
        lines.append(f"{pre}{k} {int(snap['gauges'][k])}")

    return "\n".join(lines) + "\n"

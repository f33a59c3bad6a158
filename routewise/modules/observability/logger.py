"""
modules/observability/logger.py
---------------------------------
Event log for planner timings and live-routing fallbacks: one JSON object per
line in  <LOGS_DIR>/<stream>.jsonl.

Usage:
    from routewise.modules.observability.logger import get_event_log

    events = get_event_log()
    with events.timed("DayScheduler.schedule", days=3) as perf:
        ...
        perf["points"] = 12                      # extra fields before exit
    events.log("ROUTE_FALLBACK", {"reason": "deadline", "pending": 2})

The shared instance is opened lazily on the first record and closed by the
API lifespan (api/server.py) and by the CLI demo in main.py.  Nothing is
written when config.STRUCTURED_LOG_ENABLED is false.
"""

from __future__ import annotations

import json
import threading
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Mapping, Optional, TextIO

from routewise import config


class StructuredLogger:
    """Thread-safe, append-only JSONL event stream."""

    def __init__(
        self,
        logs_dir: Path | str | None = None,
        stream: str = "routewise",
        enabled: bool | None = None,
    ) -> None:
        self.path = Path(logs_dir or config.LOGS_DIR) / f"{stream}.jsonl"
        self.enabled = config.STRUCTURED_LOG_ENABLED if enabled is None else enabled
        self._lock = threading.Lock()
        self._fh: Optional[TextIO] = None

    def log(self, event_type: str, payload: Mapping[str, Any]) -> None:
        if not self.enabled:
            return
        line = json.dumps({
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type,
            "payload": dict(payload),
        }, default=str, ensure_ascii=False)

        with self._lock:
            if self._fh is None:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self._fh = open(self.path, "a", encoding="utf-8")  # noqa: SIM115
            self._fh.write(line + "\n")
            self._fh.flush()

    @contextmanager
    def timed(self, component: str, **fields: Any) -> Iterator[dict]:
        """
        Emit one PERFORMANCE record with ``duration_ms`` when the block
        completes.  A block that raises emits nothing.
        """
        payload: dict[str, Any] = {"component": component, **fields}
        started = time.perf_counter()
        yield payload
        payload["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)
        self.log("PERFORMANCE", payload)

    def close(self) -> None:
        with self._lock:
            if self._fh is not None:
                self._fh.close()
                self._fh = None


# ── Shared instance ───────────────────────────────────────────────────────────

_event_log: Optional[StructuredLogger] = None
_event_log_lock = threading.Lock()


def get_event_log() -> StructuredLogger:
    """Process-wide event log (created on first use)."""
    global _event_log
    with _event_log_lock:
        if _event_log is None:
            _event_log = StructuredLogger()
        return _event_log

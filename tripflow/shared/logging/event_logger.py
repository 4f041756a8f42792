"""
Per-session event log.

Writes one JSON line per dispatched event (and per API call) to
<logs_dir>/<session_id>/session_events.jsonl so a conversation can be
replayed and analysed after the fact.
"""

import json
import time
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


# Session-based logger registry to ensure the same instance is reused
_logger_registry: Dict[str, "SessionEventLogger"] = {}


def get_or_create_logger(session_id: str, logs_dir: str = "logs") -> "SessionEventLogger":
    """
    Get an existing event logger for the session or create a new one.

    Args:
        session_id: Unique session identifier
        logs_dir: Directory to store log files (default: "logs")

    Returns:
        SessionEventLogger instance for this session
    """
    if session_id not in _logger_registry:
        _logger_registry[session_id] = SessionEventLogger(session_id, logs_dir)
    return _logger_registry[session_id]


def remove_logger(session_id: str) -> None:
    """Remove a logger from the registry (e.g., after the session ends)."""
    _logger_registry.pop(session_id, None)


def summarize_event_log(log_file_path: str) -> Dict[str, Any]:
    """
    Aggregate an existing event log file.

    Args:
        log_file_path: Path to a session_events.jsonl file

    Returns:
        Dict with total event count, counts per event type, ignored count
        and the final machine state seen in the log
    """
    by_type: Counter = Counter()
    ignored = 0
    final_state = None
    session_id = None

    with open(log_file_path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue

            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                continue

            if entry.get("type") != "event":
                continue

            session_id = entry.get("session_id", session_id)
            by_type[entry.get("event_type", "unknown")] += 1
            if entry.get("status") == "ignored":
                ignored += 1
            final_state = entry.get("state", final_state)

    return {
        "session_id": session_id,
        "total_events": sum(by_type.values()),
        "by_type": dict(by_type),
        "ignored": ignored,
        "final_state": final_state,
    }


class SessionEventLogger:
    """
    Append-only JSON Lines log for one planning session.

    Each session gets its own folder under logs_dir.
    """

    def __init__(self, session_id: str, logs_dir: str = "logs"):
        self.session_id = session_id
        self.base_logs_dir = Path(logs_dir)
        self.session_dir = self.base_logs_dir / session_id
        self.log_file = self.session_dir / "session_events.jsonl"

        self.session_dir.mkdir(parents=True, exist_ok=True)

        # Session accumulators for summary
        self._started = time.perf_counter()
        self._event_count = 0
        self._ignored_count = 0
        self._api_call_count = 0
        self._total_api_duration_ms = 0.0

    def _get_timestamp(self) -> str:
        return datetime.now(timezone.utc).isoformat()

    def _append_to_log(self, entry: Dict[str, Any]) -> None:
        with open(self.log_file, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, ensure_ascii=False, default=str) + "\n")

    def log_event(
        self,
        event_type: str,
        status: str,
        state: str,
        path: Optional[list] = None,
        reason: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Log one dispatched event and its outcome.

        Args:
            event_type: Event type tag (e.g. "WIDGET_COMPLETED")
            status: "applied" or "ignored"
            state: Machine state after the event
            path: States visited while handling the event
            reason: Why the event was ignored, if it was
            payload: JSON-safe event fields
        """
        self._event_count += 1
        if status == "ignored":
            self._ignored_count += 1

        self._append_to_log(
            {
                "type": "event",
                "timestamp": self._get_timestamp(),
                "session_id": self.session_id,
                "sequence": self._event_count,
                "event_type": event_type,
                "status": status,
                "reason": reason,
                "state": state,
                "path": path or [],
                "payload": payload or {},
            }
        )

    def log_api_timing(
        self,
        endpoint: str,
        duration_ms: float,
        success: bool = True,
        error: Optional[str] = None,
    ) -> None:
        """
        Log API endpoint timing.

        Args:
            endpoint: API endpoint path (e.g., "/api/planner/sessions/{id}/events")
            duration_ms: Total time for the API call in milliseconds
            success: Whether the API call succeeded
            error: Error message if the call failed
        """
        self._api_call_count += 1
        self._total_api_duration_ms += duration_ms

        entry = {
            "type": "api_timing",
            "timestamp": self._get_timestamp(),
            "session_id": self.session_id,
            "endpoint": endpoint,
            "duration_ms": round(duration_ms, 2),
            "success": success,
        }
        if error:
            entry["error"] = error

        self._append_to_log(entry)

    def get_session_summary(self) -> Dict[str, Any]:
        """Accumulated counters for this session."""
        return {
            "session_id": self.session_id,
            "events": self._event_count,
            "ignored": self._ignored_count,
            "api_calls": self._api_call_count,
            "total_api_duration_ms": round(self._total_api_duration_ms, 2),
            "uptime_s": round(time.perf_counter() - self._started, 2),
        }

from __future__ import annotations

import json
import logging
import os
import threading
from datetime import date, datetime
from typing import Dict, Any

try:
    from .sessions_api import StudySession
except ImportError:
    from sessions_api import StudySession


def _safe_read_json(path: str) -> Dict[str, Any]:
    try:
        if not os.path.exists(path):
            return {}
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except Exception as exc:
        logging.exception("history read failed: %s", exc)
        return {}


def _safe_write_json(path: str, data: Dict[str, Any]) -> None:
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
    except Exception as exc:
        logging.exception("history write failed: %s", exc)


def format_duration(seconds: int) -> str:
    if seconds < 60:
        return f"{seconds} sec"
    minutes, sec = divmod(seconds, 60)
    if minutes < 60:
        return f"{minutes} min {sec} sec"
    hours, minutes = divmod(minutes, 60)
    return f"{hours} h {minutes} min"


class SessionHistory:
    """Per-day tally of logged focus sessions, shared with the submit worker."""

    def __init__(self, path: str) -> None:
        self.path = path
        self._lock = threading.Lock()
        self._data = _safe_read_json(self.path)

    def add_session(self, session: StudySession) -> None:
        key = datetime.fromtimestamp(session.start_time).date().isoformat()
        with self._lock:
            day_info = self._data.get(key, {})
            day_info["sessions"] = int(day_info.get("sessions", 0)) + 1
            day_info["focus_seconds"] = int(day_info.get("focus_seconds", 0)) + session.duration_sec
            day_info["distractions"] = int(day_info.get("distractions", 0)) + int(session.distraction_count)
            self._data[key] = day_info
            _safe_write_json(self.path, self._data)

    def get_day(self, day: date | None = None) -> Dict[str, int]:
        if day is None:
            day = date.today()
        with self._lock:
            day_info = dict(self._data.get(day.isoformat(), {}))
        return {
            "sessions": int(day_info.get("sessions", 0)),
            "focus_seconds": int(day_info.get("focus_seconds", 0)),
            "distractions": int(day_info.get("distractions", 0)),
        }

    def format_today(self) -> str:
        info = self.get_day()
        return (
            f"{info['sessions']} sessions, {format_duration(info['focus_seconds'])} focused, "
            f"{info['distractions']} distractions"
        )

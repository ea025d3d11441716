from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests

try:
    from .settings import AppSettings
except ImportError:
    from settings import AppSettings


def _iso(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class StudySession:
    topic_id: str
    start_time: float
    end_time: float
    distraction_count: int = 0

    @property
    def duration_sec(self) -> int:
        return max(0, int(round(self.end_time - self.start_time)))

    def to_payload(self) -> Dict[str, Any]:
        return {
            "studyTopicId": self.topic_id,
            "startTime": _iso(self.start_time),
            "endTime": _iso(self.end_time),
            "distractionCount": int(self.distraction_count),
        }


@dataclass
class SubmitResult:
    ok: bool
    session: StudySession
    status_code: Optional[int] = None
    error: str = ""


class StudySessionClient:
    def __init__(self, settings: AppSettings | None = None) -> None:
        self._settings = settings or AppSettings()

    def _config(self) -> tuple[str, Dict[str, str], int]:
        data = self._settings.get_settings()
        url = f"{data['api_base_url']}{data['sessions_path']}"
        headers = {"Content-Type": "application/json"}
        token = str(data.get("api_token", "")).strip()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return url, headers, int(data["request_timeout_sec"])

    def create_session(self, session: StudySession) -> SubmitResult:
        if not session.topic_id:
            logging.warning("study session not sent: missing topic id")
            return SubmitResult(ok=False, session=session, error="missing topic id")
        url, headers, timeout = self._config()
        try:
            resp = requests.post(url, headers=headers, json=session.to_payload(), timeout=timeout)
            resp.raise_for_status()
        except Exception as exc:
            logging.exception("failed to log study session: topic=%s error=%s", session.topic_id, exc)
            status = getattr(getattr(exc, "response", None), "status_code", None)
            return SubmitResult(ok=False, session=session, status_code=status, error=str(exc))
        logging.info(
            "study session logged: topic=%s duration=%ss distractions=%s",
            session.topic_id,
            session.duration_sec,
            session.distraction_count,
        )
        return SubmitResult(ok=True, session=session, status_code=resp.status_code)

    def list_sessions(self, topic_id: str | None = None) -> List[Dict[str, Any]]:
        url, headers, timeout = self._config()
        params = {"topicId": topic_id} if topic_id else None
        try:
            resp = requests.get(url, headers=headers, params=params, timeout=timeout)
            resp.raise_for_status()
            data = resp.json()
        except Exception as exc:
            logging.exception("failed to fetch study sessions: %s", exc)
            return []
        if not isinstance(data, list):
            logging.warning("unexpected study sessions payload: %s", type(data).__name__)
            return []
        return data

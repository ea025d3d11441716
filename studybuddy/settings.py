from __future__ import annotations

import json
import logging
import os
from typing import Dict, Any


BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
DEFAULT_API_URL = "http://localhost:3000"


class AppSettings:
    def __init__(self, path: str | None = None) -> None:
        self._path = path or os.path.join(BASE_DIR, "data", "settings.json")
        self._data: Dict[str, Any] = {}
        self._load()

    @property
    def path(self) -> str:
        return self._path

    def _load(self) -> None:
        try:
            if os.path.exists(self._path):
                with open(self._path, "r", encoding="utf-8") as f:
                    self._data = json.load(f)
            logging.info("settings loaded: %s", self._path)
        except Exception as exc:
            logging.exception("settings read failed: %s", exc)
            self._data = {}

    def _save(self) -> None:
        try:
            os.makedirs(os.path.dirname(self._path), exist_ok=True)
            with open(self._path, "w", encoding="utf-8") as f:
                json.dump(self._data, f, ensure_ascii=False, indent=2)
        except Exception as exc:
            logging.exception("settings write failed: %s", exc)

    def get_settings(self) -> Dict[str, Any]:
        default = {
            "api_base_url": DEFAULT_API_URL,
            "sessions_path": "/api/study-planner/sessions",
            "api_token": "",
            "request_timeout_sec": 10,
            "sound_enabled": True,
            "sound_path": "assets/sounds/bell.wav",
            "distraction_threshold_sec": 30,
            "history_path": "data/history.json",
        }
        stored = self._data.get("settings", {})
        merged = default.copy()
        if isinstance(stored, dict):
            for key, value in stored.items():
                merged[key] = value
        env_url = os.getenv("STUDYBUDDY_API_URL", "").strip()
        if env_url:
            merged["api_base_url"] = env_url
        env_token = os.getenv("STUDYBUDDY_API_TOKEN", "").strip()
        if env_token:
            merged["api_token"] = env_token
        merged["api_base_url"] = str(merged["api_base_url"]).strip().rstrip("/") or DEFAULT_API_URL
        path = str(merged["sessions_path"]).strip() or default["sessions_path"]
        if not path.startswith("/"):
            path = "/" + path
        merged["sessions_path"] = path
        try:
            merged["request_timeout_sec"] = max(1, int(merged["request_timeout_sec"]))
        except (TypeError, ValueError):
            merged["request_timeout_sec"] = default["request_timeout_sec"]
        try:
            merged["distraction_threshold_sec"] = max(0, int(merged["distraction_threshold_sec"]))
        except (TypeError, ValueError):
            merged["distraction_threshold_sec"] = default["distraction_threshold_sec"]
        return merged

    def set_settings(self, values: Dict[str, Any]) -> None:
        if not isinstance(values, dict):
            return
        # Env overrides are not written back to disk.
        stored = self._data.get("settings", {})
        current = dict(stored) if isinstance(stored, dict) else {}
        for key in self.get_settings().keys():
            if key in values:
                current[key] = values[key]
        self._data["settings"] = current
        self._save()

    def resolve_path(self, key: str) -> str:
        """Settings paths are relative to the project root unless absolute."""
        value = str(self.get_settings().get(key, ""))
        if not value or os.path.isabs(value):
            return value
        return os.path.join(BASE_DIR, value)

from __future__ import annotations

import logging
import time
from typing import Callable


DISTRACTION_THRESHOLD_SEC = 30

DISTRACTION_MESSAGE = "Distraction detected! You were away for {seconds} seconds. Stay focused on your study goal."


class DistractionMonitor:
    """Counts absences longer than the threshold during active focus time.

    ``is_armed`` reports whether tracking applies right now (focus phase and
    running timer). Outside of that window visibility changes are ignored.
    """

    def __init__(
        self,
        is_armed: Callable[[], bool],
        threshold_sec: float = DISTRACTION_THRESHOLD_SEC,
        on_distraction: Callable[[float], None] | None = None,
    ) -> None:
        self._is_armed = is_armed
        self.threshold_sec = threshold_sec
        self._on_distraction = on_distraction
        self._hidden_at: float | None = None
        self._count = 0

    @property
    def count(self) -> int:
        return self._count

    @property
    def hidden_at(self) -> float | None:
        return self._hidden_at

    def reset(self) -> None:
        self._count = 0
        self._hidden_at = None

    def on_visibility_changed(self, visible: bool, now: float | None = None) -> bool:
        """Returns True when this transition counted as a distraction."""
        if now is None:
            now = time.time()
        if not visible:
            if self._is_armed() and self._hidden_at is None:
                self._hidden_at = now
            return False

        hidden_at = self._hidden_at
        self._hidden_at = None
        if hidden_at is None or not self._is_armed():
            return False
        away = now - hidden_at
        if away <= self.threshold_sec:
            return False
        self._count += 1
        logging.info("distraction detected: away=%.0fs count=%s", away, self._count)
        if self._on_distraction:
            self._on_distraction(away)
        return True

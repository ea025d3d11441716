from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional

from PySide6.QtCore import QObject, QTimer, Signal, Slot

try:
    from .chime import Chime
    from .distraction import DISTRACTION_MESSAGE, DISTRACTION_THRESHOLD_SEC, DistractionMonitor
    from .recorder import SessionRecorder
    from .timer import FocusTimer
except ImportError:
    from chime import Chime
    from distraction import DISTRACTION_MESSAGE, DISTRACTION_THRESHOLD_SEC, DistractionMonitor
    from recorder import SessionRecorder
    from timer import FocusTimer


class FocusSession:
    """One focus-mode run for a study topic.

    Wires the countdown, the distraction monitor and the session recorder
    together. Every focus phase that had a start time is recorded exactly
    once, whether it ran out, was skipped, or the session was closed.
    """

    def __init__(
        self,
        topic_id: str,
        topic_title: str,
        recorder: SessionRecorder,
        chime: Chime | None = None,
        visibility=None,
        threshold_sec: float = DISTRACTION_THRESHOLD_SEC,
        on_alert: Callable[[str], None] | None = None,
        on_flip: Callable[[str], None] | None = None,
    ) -> None:
        self.topic_id = topic_id
        self.topic_title = topic_title
        self._recorder = recorder
        self._chime = chime
        self._visibility = visibility
        self._unsubscribe: Callable[[], None] | None = None
        self._on_alert = on_alert
        self._on_flip = on_flip
        self._alert: str | None = None
        self._closed = False
        self.timer = FocusTimer(on_phase_complete=self._handle_phase_complete, on_flip=self._handle_flip)
        self.monitor = DistractionMonitor(
            is_armed=self._tracking_armed,
            threshold_sec=threshold_sec,
            on_distraction=self._handle_distraction,
        )

    @property
    def alert(self) -> str | None:
        return self._alert

    @property
    def closed(self) -> bool:
        return self._closed

    def _tracking_armed(self) -> bool:
        return self.timer.phase == "focus" and self.timer.running

    def open(self) -> None:
        if self._visibility is not None and self._unsubscribe is None:
            self._unsubscribe = self._visibility.subscribe(self.monitor.on_visibility_changed)

    def start(self, now: float | None = None) -> None:
        if not self._closed:
            self.timer.start(now)

    def pause(self) -> None:
        if not self._closed:
            self.timer.pause()

    def toggle(self, now: float | None = None) -> None:
        if not self._closed:
            self.timer.toggle(now)

    def skip(self, now: float | None = None) -> None:
        if not self._closed:
            self.timer.skip(now)

    def reset(self) -> None:
        if self._closed:
            return
        self.timer.reset()
        self.monitor.reset()

    def tick(self, now: float | None = None) -> bool:
        if self._closed:
            return False
        return self.timer.tick(now)

    def dismiss_alert(self) -> None:
        self._alert = None

    def set_sound_enabled(self, enabled: bool) -> None:
        if self._chime:
            self._chime.set_enabled(enabled)

    def close(self, now: float | None = None) -> Dict[str, Any]:
        return self._teardown("close", now)

    def complete(self, now: float | None = None) -> Dict[str, Any]:
        return self._teardown("complete", now)

    def _teardown(self, reason: str, now: float | None) -> Dict[str, Any]:
        if self._closed:
            return self.snapshot()
        if now is None:
            now = time.time()
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None
        self.timer.finish(now)
        self.timer.pause()
        self._closed = True
        logging.info("focus mode %s: topic=%s cycles=%s", reason, self.topic_id, self.timer.state().cycles)
        return self.snapshot()

    def _handle_phase_complete(self, phase: str, start_time: Optional[float], end_time: float) -> None:
        if phase != "focus" or start_time is None:
            return
        try:
            self._recorder.record_completed_focus_phase(
                self.topic_id, start_time, end_time, self.monitor.count
            )
        except Exception as exc:
            logging.exception("study session hand-off failed: %s", exc)
        finally:
            self.monitor.reset()

    def _handle_flip(self, phase: str) -> None:
        if self._chime:
            self._chime.play()
        if self._on_flip:
            self._on_flip(phase)

    def _handle_distraction(self, away_sec: float) -> None:
        self._alert = DISTRACTION_MESSAGE.format(seconds=int(away_sec))
        if self._on_alert:
            self._on_alert(self._alert)

    def snapshot(self) -> Dict[str, Any]:
        state = self.timer.state()
        return {
            "topic_id": self.topic_id,
            "topic_title": self.topic_title,
            "phase": state.phase,
            "status": state.status,
            "remaining_sec": state.remaining_sec,
            "total_sec": state.total_sec,
            "display": state.display,
            "progress": round(state.progress, 1),
            "cycles": state.cycles,
            "distraction_count": self.monitor.count,
            "alert": self._alert,
            "closed": self._closed,
        }


class FocusModeBridge(QObject):
    stateUpdated = Signal(dict)
    phaseCompleted = Signal(str)
    distractionDetected = Signal(str)
    closed = Signal()
    completed = Signal()

    def __init__(
        self,
        topic_id: str,
        topic_title: str,
        recorder: SessionRecorder,
        chime: Chime | None = None,
        visibility=None,
        threshold_sec: float = DISTRACTION_THRESHOLD_SEC,
    ) -> None:
        super().__init__()
        self.session = FocusSession(
            topic_id,
            topic_title,
            recorder,
            chime=chime,
            visibility=visibility,
            threshold_sec=threshold_sec,
            on_alert=self.distractionDetected.emit,
            on_flip=self.phaseCompleted.emit,
        )
        self._timer = QTimer(self)
        self._timer.setInterval(1000)
        self._timer.timeout.connect(self.tick)

    def open(self) -> None:
        self.session.open()
        self._push()

    def _push(self) -> dict:
        payload = self.session.snapshot()
        self.stateUpdated.emit(payload)
        return payload

    def _sync_ticker(self) -> None:
        if self.session.timer.running and not self.session.closed:
            if not self._timer.isActive():
                self._timer.start()
        elif self._timer.isActive():
            self._timer.stop()

    @Slot()
    def tick(self) -> None:
        self.session.tick()
        self._push()

    @Slot()
    def toggle(self) -> None:
        self.session.toggle()
        self._sync_ticker()
        self._push()

    @Slot()
    def skip(self) -> None:
        self.session.skip()
        self._sync_ticker()
        self._push()

    @Slot()
    def reset(self) -> None:
        self.session.reset()
        self._sync_ticker()
        self._push()

    @Slot()
    def dismissAlert(self) -> None:
        self.session.dismiss_alert()
        self._push()

    @Slot(bool)
    def setSoundEnabled(self, enabled: bool) -> None:
        self.session.set_sound_enabled(enabled)

    @Slot()
    def close(self) -> None:
        self._timer.stop()
        self.session.close()
        self._push()
        self.closed.emit()

    @Slot()
    def complete(self) -> None:
        self._timer.stop()
        self.session.complete()
        self._push()
        self.completed.emit()

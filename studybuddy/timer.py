from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional


FOCUS_SECONDS = 25 * 60
BREAK_SECONDS = 5 * 60

PHASE_SECONDS = {
    "focus": FOCUS_SECONDS,
    "break": BREAK_SECONDS,
}


@dataclass
class TimerState:
    phase: str  # focus | break
    status: str  # idle | running | paused
    remaining_sec: int
    total_sec: int
    start_time: Optional[float]
    cycles: int

    @property
    def progress(self) -> float:
        if self.total_sec <= 0:
            return 0.0
        return (self.total_sec - self.remaining_sec) / self.total_sec * 100

    @property
    def display(self) -> str:
        return format_clock(self.remaining_sec)


def format_clock(seconds: int) -> str:
    minutes, sec = divmod(max(0, int(seconds)), 60)
    return f"{minutes:02d}:{sec:02d}"


# Called with (phase that ended, its start time, end time). The handler
# persists the focus phase; the return value is ignored.
PhaseHandler = Callable[[str, Optional[float], float], None]


class FocusTimer:
    """Focus/break countdown driven by one tick per second.

    The timer auto-continues: when a phase runs out the next one starts
    immediately in the running state. ``on_phase_complete`` fires for every
    completed phase (natural expiry or skip) before the flip, and for a
    focus phase finished early through :meth:`finish`.
    """

    def __init__(
        self,
        on_phase_complete: PhaseHandler | None = None,
        on_flip: Callable[[str], None] | None = None,
    ) -> None:
        self._on_phase_complete = on_phase_complete
        self._on_flip = on_flip
        self._phase = "focus"
        self._status = "idle"
        self._remaining_sec = FOCUS_SECONDS
        self._start_time: float | None = None
        self._cycles = 0

    @property
    def phase(self) -> str:
        return self._phase

    @property
    def status(self) -> str:
        return self._status

    @property
    def remaining_sec(self) -> int:
        return self._remaining_sec

    @property
    def start_time(self) -> float | None:
        return self._start_time

    @property
    def running(self) -> bool:
        return self._status == "running"

    def start(self, now: float | None = None) -> None:
        if self._status == "running":
            return
        if now is None:
            now = time.time()
        if self._phase == "focus" and self._start_time is None:
            self._start_time = now
        self._status = "running"

    def pause(self) -> None:
        if self._status == "running":
            self._status = "paused"

    def toggle(self, now: float | None = None) -> None:
        if self._status == "running":
            self.pause()
        else:
            self.start(now)

    def reset(self) -> None:
        self._phase = "focus"
        self._status = "idle"
        self._remaining_sec = FOCUS_SECONDS
        self._start_time = None

    def tick(self, now: float | None = None) -> bool:
        """Advance one second. Returns True when the tick ended a phase."""
        if self._status != "running":
            return False
        self._remaining_sec = max(0, self._remaining_sec - 1)
        if self._remaining_sec > 0:
            return False
        self._advance(now)
        return True

    def skip(self, now: float | None = None) -> None:
        self._advance(now)

    def finish(self, now: float | None = None) -> bool:
        """Close out an active focus phase without flipping.

        Returns True when a session was handed to the completion handler.
        """
        if self._phase != "focus" or self._start_time is None:
            return False
        if now is None:
            now = time.time()
        self._complete_phase(now)
        return True

    def _advance(self, now: float | None) -> None:
        if now is None:
            now = time.time()
        ended = self._phase
        self._complete_phase(now)
        if ended == "focus":
            self._cycles += 1
            self._phase = "break"
        else:
            self._phase = "focus"
            if self._status == "running":
                self._start_time = now
        self._remaining_sec = PHASE_SECONDS[self._phase]
        logging.info("pomodoro switch: %s -> %s", ended, self._phase)
        if self._on_flip:
            self._on_flip(self._phase)

    def _complete_phase(self, now: float) -> None:
        start_time = self._start_time
        if self._phase == "focus":
            # Cleared before the handler runs so a re-entrant finish() is a no-op.
            self._start_time = None
        if self._on_phase_complete:
            self._on_phase_complete(self._phase, start_time, now)

    def state(self) -> TimerState:
        return TimerState(
            phase=self._phase,
            status=self._status,
            remaining_sec=int(self._remaining_sec),
            total_sec=PHASE_SECONDS[self._phase],
            start_time=self._start_time,
            cycles=self._cycles,
        )

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

try:
    from .history import SessionHistory
    from .sessions_api import StudySession, StudySessionClient, SubmitResult
except ImportError:
    from history import SessionHistory
    from sessions_api import StudySession, StudySessionClient, SubmitResult


Dispatcher = Callable[[Callable[[], None]], None]


def run_in_background(job: Callable[[], None]) -> threading.Thread:
    thread = threading.Thread(target=job, daemon=True)
    thread.start()
    return thread


class SessionRecorder:
    """Hands finished focus phases to the sessions API without waiting.

    The submit runs through ``dispatch`` (a daemon thread by default). Its
    outcome is only logged; callers never see it and never block on it.
    Pending background submits are tracked so shutdown can wait for them
    with :meth:`drain`.
    """

    def __init__(
        self,
        client: StudySessionClient,
        history: SessionHistory | None = None,
        dispatch: Dispatcher | None = None,
    ) -> None:
        self._client = client
        self._history = history
        self._dispatch = dispatch or self._start_worker
        self._threads: list[threading.Thread] = []
        self._threads_lock = threading.Lock()

    def _start_worker(self, job: Callable[[], None]) -> None:
        thread = run_in_background(job)
        with self._threads_lock:
            self._threads = [t for t in self._threads if t.is_alive()]
            self._threads.append(thread)

    def pending(self) -> int:
        with self._threads_lock:
            return sum(1 for t in self._threads if t.is_alive())

    def drain(self, timeout: float | None = None) -> bool:
        """Wait for in-flight submits. Returns False if some are still running."""
        with self._threads_lock:
            threads = list(self._threads)
        deadline = None if timeout is None else time.monotonic() + timeout
        for thread in threads:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            thread.join(remaining)
        left = self.pending()
        if left:
            logging.warning("study session submits still pending at shutdown: %s", left)
        return left == 0

    def record_completed_focus_phase(
        self,
        topic_id: str,
        start_time: float | None,
        end_time: float,
        distraction_count: int,
    ) -> StudySession:
        if start_time is None:
            raise ValueError("focus phase has no start time")
        session = StudySession(
            topic_id=topic_id,
            start_time=float(start_time),
            end_time=float(end_time),
            distraction_count=max(0, int(distraction_count)),
        )

        def _worker() -> None:
            try:
                result = self._client.create_session(session)
                self._after_submit(result)
            except Exception as exc:
                logging.exception("study session worker failed: %s", exc)

        self._dispatch(_worker)
        return session

    def _after_submit(self, result: SubmitResult) -> None:
        if not result.ok:
            logging.error("study session not saved: topic=%s error=%s", result.session.topic_id, result.error)
            return
        if self._history:
            self._history.add_session(result.session)

import os
import tempfile
import threading
import time
import unittest
from datetime import date, datetime
from unittest import mock

from studybuddy.history import SessionHistory
from studybuddy.recorder import SessionRecorder, run_in_background
from studybuddy.sessions_api import StudySession, SubmitResult


def run_now(job) -> None:
    job()


class StubClient:
    def __init__(self, ok: bool = True, error: Exception | None = None) -> None:
        self.ok = ok
        self.error = error
        self.sent = []

    def create_session(self, session: StudySession) -> SubmitResult:
        self.sent.append(session)
        if self.error:
            raise self.error
        return SubmitResult(ok=self.ok, session=session, status_code=200 if self.ok else 500)


class SessionRecorderTests(unittest.TestCase):
    def test_records_session(self):
        client = StubClient()
        recorder = SessionRecorder(client, dispatch=run_now)
        session = recorder.record_completed_focus_phase("algorithms", 0.0, 1500.0, 0)
        self.assertEqual(client.sent, [session])
        self.assertEqual(session.duration_sec, 1500)

    def test_requires_start_time(self):
        recorder = SessionRecorder(StubClient(), dispatch=run_now)
        with self.assertRaises(ValueError):
            recorder.record_completed_focus_phase("algorithms", None, 10.0, 0)

    def test_negative_distractions_clamped(self):
        client = StubClient()
        recorder = SessionRecorder(client, dispatch=run_now)
        session = recorder.record_completed_focus_phase("algorithms", 0.0, 10.0, -2)
        self.assertEqual(session.distraction_count, 0)

    def test_history_updated_only_on_success(self):
        with tempfile.TemporaryDirectory() as tmp:
            history = SessionHistory(os.path.join(tmp, "history.json"))
            start = datetime.combine(date.today(), datetime.min.time()).timestamp() + 3600
            SessionRecorder(StubClient(ok=True), history=history, dispatch=run_now).record_completed_focus_phase(
                "algorithms", start, start + 600, 1
            )
            SessionRecorder(StubClient(ok=False), history=history, dispatch=run_now).record_completed_focus_phase(
                "algorithms", start, start + 600, 1
            )
            self.assertEqual(history.get_day(), {"sessions": 1, "focus_seconds": 600, "distractions": 1})

    def test_client_exception_is_swallowed(self):
        client = StubClient(error=RuntimeError("boom"))
        recorder = SessionRecorder(client, dispatch=run_now)
        with self.assertLogs(level="ERROR"):
            recorder.record_completed_focus_phase("algorithms", 0.0, 10.0, 0)
        self.assertEqual(len(client.sent), 1)

    def test_default_dispatch_uses_daemon_thread(self):
        done = threading.Event()
        with mock.patch("studybuddy.recorder.threading.Thread") as thread_cls:
            run_in_background(done.set)
        kwargs = thread_cls.call_args.kwargs
        self.assertTrue(kwargs["daemon"])
        thread_cls.return_value.start.assert_called_once()

        client = StubClient()
        finished = threading.Event()
        original = client.create_session

        def create_and_signal(session):
            result = original(session)
            finished.set()
            return result

        client.create_session = create_and_signal
        SessionRecorder(client).record_completed_focus_phase("algorithms", 0.0, 10.0, 0)
        self.assertTrue(finished.wait(2))

    def test_drain_waits_for_background_submit(self):
        client = StubClient()
        original = client.create_session

        def slow_create(session):
            time.sleep(0.2)
            return original(session)

        client.create_session = slow_create
        recorder = SessionRecorder(client)
        session = recorder.record_completed_focus_phase("algorithms", 0.0, 10.0, 0)
        self.assertTrue(recorder.drain(timeout=2))
        self.assertEqual(client.sent, [session])
        self.assertEqual(recorder.pending(), 0)

    def test_drain_timeout_reports_stuck_submit(self):
        release = threading.Event()
        client = StubClient()
        original = client.create_session

        def blocked_create(session):
            release.wait(5)
            return original(session)

        client.create_session = blocked_create
        recorder = SessionRecorder(client)
        recorder.record_completed_focus_phase("algorithms", 0.0, 10.0, 0)
        try:
            with self.assertLogs(level="WARNING"):
                self.assertFalse(recorder.drain(timeout=0.05))
            self.assertEqual(recorder.pending(), 1)
        finally:
            release.set()
        self.assertTrue(recorder.drain(timeout=2))


if __name__ == "__main__":
    unittest.main()

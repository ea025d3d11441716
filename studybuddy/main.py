from __future__ import annotations

import argparse
import logging
import os
import sys

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QApplication,
    QCheckBox,
    QDialog,
    QHBoxLayout,
    QLabel,
    QProgressBar,
    QPushButton,
    QVBoxLayout,
)

try:
    from .chime import Chime
    from .focus_mode import FocusModeBridge
    from .history import SessionHistory
    from .recorder import SessionRecorder
    from .sessions_api import StudySessionClient
    from .settings import AppSettings, BASE_DIR
    from .visibility import QtVisibility
except ImportError:
    from chime import Chime
    from focus_mode import FocusModeBridge
    from history import SessionHistory
    from recorder import SessionRecorder
    from sessions_api import StudySessionClient
    from settings import AppSettings, BASE_DIR
    from visibility import QtVisibility


LOG_DIR = os.path.join(BASE_DIR, "data")
LOG_PATH = os.path.join(LOG_DIR, "app.log")


class FocusModeDialog(QDialog):
    def __init__(
        self,
        bridge: FocusModeBridge,
        history: SessionHistory | None = None,
        sound_enabled: bool = True,
        parent=None,
    ) -> None:
        super().__init__(parent)
        self._bridge = bridge
        self._history = history
        self.setWindowTitle("Focus Mode")
        self.setMinimumWidth(360)

        self._phase_label = QLabel("Focus Time")
        self._phase_label.setStyleSheet("font-size: 18px; font-weight: 600;")
        self._topic_label = QLabel(f"Currently studying: {bridge.session.topic_title}")
        self._clock_label = QLabel("25:00")
        self._clock_label.setAlignment(Qt.AlignCenter)
        self._clock_label.setStyleSheet("font-size: 42px; font-weight: 700; letter-spacing: 4px;")
        self._progress = QProgressBar()
        self._progress.setRange(0, 100)
        self._progress.setTextVisible(False)
        self._cycles_label = QLabel("")
        self._today_label = QLabel("")

        self._alert_label = QLabel("")
        self._alert_label.setWordWrap(True)
        self._alert_label.setStyleSheet(
            "QLabel { color: #92400e; background: #fef3c7; border-radius: 6px; padding: 8px; }"
        )
        self._alert_dismiss = QPushButton("Dismiss")
        self._alert_dismiss.clicked.connect(bridge.dismissAlert)
        alert_row = QHBoxLayout()
        alert_row.addWidget(self._alert_label, 1)
        alert_row.addWidget(self._alert_dismiss)

        self._toggle_button = QPushButton("Start")
        self._toggle_button.clicked.connect(bridge.toggle)
        skip_button = QPushButton("Skip")
        skip_button.clicked.connect(bridge.skip)
        reset_button = QPushButton("Reset")
        reset_button.clicked.connect(bridge.reset)
        sound_box = QCheckBox("Sound")
        sound_box.setChecked(sound_enabled)
        sound_box.toggled.connect(bridge.setSoundEnabled)
        controls = QHBoxLayout()
        controls.addWidget(self._toggle_button)
        controls.addWidget(skip_button)
        controls.addWidget(reset_button)
        controls.addWidget(sound_box)

        complete_button = QPushButton("Complete Session")
        complete_button.clicked.connect(self._on_complete)

        layout = QVBoxLayout()
        layout.addWidget(self._phase_label)
        layout.addWidget(self._topic_label)
        layout.addLayout(alert_row)
        layout.addWidget(self._clock_label)
        layout.addWidget(self._progress)
        layout.addLayout(controls)
        layout.addWidget(self._cycles_label)
        layout.addWidget(self._today_label)
        layout.addWidget(complete_button, alignment=Qt.AlignRight)
        self.setLayout(layout)

        bridge.stateUpdated.connect(self.render)
        self._set_alert_visible(False)

    def _set_alert_visible(self, visible: bool) -> None:
        self._alert_label.setVisible(visible)
        self._alert_dismiss.setVisible(visible)

    def render(self, state: dict) -> None:
        is_break = state.get("phase") == "break"
        self._phase_label.setText("Take a Break" if is_break else "Focus Time")
        self._clock_label.setText(str(state.get("display", "")))
        self._progress.setValue(int(state.get("progress", 0)))
        self._toggle_button.setText("Pause" if state.get("status") == "running" else "Start")
        cycles = int(state.get("cycles", 0))
        self._cycles_label.setText(f"Completed focus sessions: {cycles}" if cycles else "Study session in progress")
        alert = state.get("alert")
        self._alert_label.setText(alert or "")
        self._set_alert_visible(bool(alert))
        if self._history:
            self._today_label.setText(f"Today: {self._history.format_today()}")

    def _on_complete(self) -> None:
        self._bridge.complete()
        self.accept()

    def closeEvent(self, event) -> None:
        if not self._bridge.session.closed:
            self._bridge.close()
        super().closeEvent(event)

    def reject(self) -> None:
        if not self._bridge.session.closed:
            self._bridge.close()
        super().reject()


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="studybuddy", description="Study Buddy focus mode")
    parser.add_argument("--topic-id", required=True, help="study topic id the sessions are logged against")
    parser.add_argument("--topic-title", default="", help="title shown while studying")
    parser.add_argument("--settings", default=None, help="path to settings.json")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_arg_parser().parse_args(argv)
    os.makedirs(LOG_DIR, exist_ok=True)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.FileHandler(LOG_PATH, encoding="utf-8"),
            logging.StreamHandler(sys.stdout),
        ],
    )
    logging.info("app start: topic=%s", args.topic_id)

    app = QApplication(sys.argv[:1])

    settings = AppSettings(args.settings)
    data = settings.get_settings()
    history = SessionHistory(settings.resolve_path("history_path"))
    recorder = SessionRecorder(StudySessionClient(settings), history=history)
    chime = Chime(settings.resolve_path("sound_path"), enabled=bool(data.get("sound_enabled", True)))
    bridge = FocusModeBridge(
        args.topic_id,
        args.topic_title or args.topic_id,
        recorder,
        chime=chime,
        visibility=QtVisibility(app),
        threshold_sec=float(data["distraction_threshold_sec"]),
    )

    dialog = FocusModeDialog(bridge, history=history, sound_enabled=chime.enabled)
    bridge.open()
    dialog.show()
    exit_code = app.exec()
    # Closing the dialog quits Qt; give the final session submit time to land.
    recorder.drain(timeout=float(data["request_timeout_sec"]) + 1)
    logging.info("app exit: %s", exit_code)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()

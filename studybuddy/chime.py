from __future__ import annotations

import logging
import os

from PySide6.QtCore import QUrl
from PySide6.QtMultimedia import QSoundEffect
from PySide6.QtWidgets import QApplication


class Chime:
    def __init__(self, sound_path: str = "", enabled: bool = True) -> None:
        self.sound_path = sound_path
        self.enabled = enabled
        self._effect: QSoundEffect | None = None

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = bool(enabled)

    def play(self) -> None:
        if not self.enabled:
            return
        try:
            if self.sound_path and os.path.exists(self.sound_path):
                if self._effect is None:
                    self._effect = QSoundEffect()
                    self._effect.setSource(QUrl.fromLocalFile(self.sound_path))
                self._effect.play()
            else:
                QApplication.beep()
        except Exception as exc:
            logging.debug("chime playback failed: %s", exc)

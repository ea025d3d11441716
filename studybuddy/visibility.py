from __future__ import annotations

import logging
from typing import Callable, List

from PySide6.QtCore import Qt
from PySide6.QtGui import QGuiApplication


VisibilityCallback = Callable[[bool], None]


def _noop() -> None:
    return None


class ManualVisibility:
    """Visibility source driven by hand, for headless runs and tests."""

    def __init__(self, visible: bool = True) -> None:
        self.visible = visible
        self._callbacks: List[VisibilityCallback] = []

    def subscribe(self, callback: VisibilityCallback) -> Callable[[], None]:
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._callbacks)

    def set_visible(self, visible: bool) -> None:
        if visible == self.visible:
            return
        self.visible = visible
        for callback in list(self._callbacks):
            callback(visible)


class QtVisibility:
    """Foreground/background transitions of the running Qt application.

    Without a QGuiApplication instance nothing is ever reported, which
    leaves distraction tracking disarmed.
    """

    def __init__(self, app: QGuiApplication | None = None) -> None:
        self._app = app

    def _application(self) -> QGuiApplication | None:
        if self._app is not None:
            return self._app
        instance = QGuiApplication.instance()
        if isinstance(instance, QGuiApplication):
            return instance
        return None

    def subscribe(self, callback: VisibilityCallback) -> Callable[[], None]:
        app = self._application()
        if app is None:
            logging.info("visibility unavailable: distraction tracking disabled")
            return _noop

        last = {"visible": app.applicationState() == Qt.ApplicationState.ApplicationActive}

        def on_state_changed(state) -> None:
            # Inactive and Hidden both mean away; only report the edge.
            visible = state == Qt.ApplicationState.ApplicationActive
            if visible == last["visible"]:
                return
            last["visible"] = visible
            callback(visible)

        app.applicationStateChanged.connect(on_state_changed)

        def unsubscribe() -> None:
            try:
                app.applicationStateChanged.disconnect(on_state_changed)
            except (RuntimeError, TypeError) as exc:
                logging.debug("visibility disconnect failed: %s", exc)

        return unsubscribe

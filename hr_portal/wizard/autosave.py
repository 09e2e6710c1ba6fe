from __future__ import annotations

from PySide6.QtCore import QObject, QTimer

from .. import config


class DraftAutoSaver(QObject):
    """Periodically writes the wizard's pending edits to the draft cache."""

    def __init__(self, wizard, interval_ms: int | None = None, parent: QObject | None = None):
        super().__init__(parent)
        self._wizard = wizard
        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms or config.autosave_interval_ms())
        self._timer.timeout.connect(self.tick)

    @property
    def interval_ms(self) -> int:
        return self._timer.interval()

    def start(self) -> None:
        self._timer.start()

    def stop(self) -> None:
        self._timer.stop()

    def is_active(self) -> bool:
        return self._timer.isActive()

    def tick(self) -> bool:
        return self._wizard.autosave()

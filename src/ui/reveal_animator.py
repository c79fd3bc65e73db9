import logging

from PyQt6.QtCore import QEasingCurve, QObject, QVariantAnimation, pyqtSignal

logger = logging.getLogger(__name__)


class RevealAnimator(QObject):
    """Drives the 0..1 progress of the preview card's vertical reveal."""

    progress_changed = pyqtSignal(float)
    finished = pyqtSignal()

    def __init__(self, duration_ms: int, parent=None):
        super().__init__(parent)
        self._progress = 0.0
        self._disposed = False

        self.animation = QVariantAnimation(self)
        self.animation.setStartValue(0.0)
        self.animation.setEndValue(1.0)
        self.animation.setDuration(max(0, duration_ms))
        self.animation.setEasingCurve(QEasingCurve.Type.OutQuad)
        self.animation.valueChanged.connect(self._on_value_changed)
        self.animation.finished.connect(self._on_finished)

    @property
    def progress(self) -> float:
        return self._progress

    def is_running(self) -> bool:
        return self.animation.state() == QVariantAnimation.State.Running

    def restart(self):
        """Reset progress to 0 and animate towards 1."""
        if self._disposed:
            return
        self.animation.stop()
        self._set_progress(0.0)
        self.animation.start()

    def dispose(self):
        """Stop the animation; no progress is reported afterwards."""
        if self._disposed:
            return
        self._disposed = True
        self.animation.stop()
        self.animation.valueChanged.disconnect(self._on_value_changed)
        self.animation.finished.disconnect(self._on_finished)

    def _on_value_changed(self, value):
        if self._disposed:
            return
        self._set_progress(float(value))

    def _on_finished(self):
        if self._disposed:
            return
        self._set_progress(1.0)
        self.finished.emit()

    def _set_progress(self, value: float):
        if value == self._progress:
            return
        self._progress = value
        self.progress_changed.emit(value)

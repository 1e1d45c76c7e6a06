# widgets.py
from __future__ import annotations

from PySide6.QtCore import Qt, QRectF, QEasingCurve, QPropertyAnimation, Property, QSize
from PySide6.QtGui import QPainter, QColor, QFont, QPen
from PySide6.QtWidgets import QAbstractButton, QLabel


PILL_COLORS = {
    "active": ("#233a2c", "#2f6b45", "#cfeedd"),
    "muted": ("#3a2424", "#7a3131", "#f3c8c8"),
    "never": ("#3a3424", "#7a6231", "#f3e6c8"),
    "hidden": ("#24303a", "#31557a", "#c8dcf3"),
    "offline": ("#1f1f24", "#2a2a30", "#8a8a92"),
    "idle": ("#2a2a30", "#3a3a42", "#d6d6d6"),
}


def _blend(a: QColor, b: QColor, t: float) -> QColor:
    return QColor(
        round(a.red() + (b.red() - a.red()) * t),
        round(a.green() + (b.green() - a.green()) * t),
        round(a.blue() + (b.blue() - a.blue()) * t),
    )


class ModeSwitch(QAbstractButton):
    """Automatic (checked, green, knob right) vs manual (amber, knob left), captioned on the track."""

    WIDTH = 72
    HEIGHT = 24

    def __init__(self, parent=None) -> None:
        super().__init__(parent)
        self.setCheckable(True)
        self.setCursor(Qt.PointingHandCursor)

        self._pos = 0.0
        self._slide = QPropertyAnimation(self, b"position", self)
        self._slide.setDuration(160)
        self._slide.setEasingCurve(QEasingCurve.OutCubic)

        self._auto_bg = QColor("#7fd6a6")
        self._manual_bg = QColor("#e5c58b")
        self._knob = QColor("#f2f2f2")
        self._border = QColor("#2a2a30")
        self._caption = QColor("#141416")

        self.toggled.connect(self._slide_to)
        self.setFixedSize(self.WIDTH, self.HEIGHT)

    def sizeHint(self) -> QSize:
        return QSize(self.WIDTH, self.HEIGHT)

    def set_checked_silent(self, checked: bool) -> None:
        """Reflect engine state without emitting toggled or animating."""
        self.blockSignals(True)
        self.setChecked(checked)
        self.blockSignals(False)
        self._slide.stop()
        self._set_position(1.0 if checked else 0.0)

    def _slide_to(self, checked: bool) -> None:
        self._slide.stop()
        self._slide.setStartValue(self._pos)
        self._slide.setEndValue(1.0 if checked else 0.0)
        self._slide.start()

    def _get_position(self) -> float:
        return self._pos

    def _set_position(self, v: float) -> None:
        self._pos = float(v)
        self.update()

    position = Property(float, _get_position, _set_position)

    def paintEvent(self, _event) -> None:
        p = QPainter(self)
        p.setRenderHint(QPainter.Antialiasing, True)

        track = QRectF(0.5, 0.5, self.width() - 1.0, self.height() - 1.0)
        rad = track.height() / 2.0
        p.setPen(QPen(self._border, 1.0))
        p.setBrush(_blend(self._manual_bg, self._auto_bg, self._pos))
        p.drawRoundedRect(track, rad, rad)

        pad = 3.0
        d = track.height() - 2 * pad
        travel = track.width() - 2 * pad - d
        knob = QRectF(track.x() + pad + self._pos * travel, track.y() + pad, d, d)

        # caption sits on whichever side the knob left free
        f = QFont(self.font())
        f.setPointSizeF(max(6.0, f.pointSizeF() * 0.75))
        f.setBold(True)
        p.setFont(f)
        p.setPen(self._caption)
        if self._pos >= 0.5:
            text_rect = QRectF(track.x() + pad, track.y(), knob.x() - track.x() - pad, track.height())
            p.drawText(text_rect, Qt.AlignCenter, "AUTO")
        else:
            text_rect = QRectF(knob.right(), track.y(), track.right() - knob.right() - pad, track.height())
            p.drawText(text_rect, Qt.AlignCenter, "MAN")

        p.setPen(Qt.NoPen)
        p.setBrush(self._knob)
        p.drawEllipse(knob)
        p.end()


class StatusPill(QLabel):
    """Small colored badge; hidden while it has no text."""

    def __init__(self, parent=None) -> None:
        super().__init__(parent)
        self.setAlignment(Qt.AlignCenter)
        self.setMinimumWidth(70)
        self.set_state("idle", "")

    def set_state(self, state: str, text: str) -> None:
        bg, bd, fg = PILL_COLORS.get(state, PILL_COLORS["idle"])
        self.setText(text)
        self.setVisible(bool(text))
        self.setStyleSheet(
            f"QLabel {{ background: {bg}; border: 1px solid {bd}; border-radius: 9px;"
            f" padding: 2px 8px; color: {fg}; font-weight: 600; }}"
        )

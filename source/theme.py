# theme.py
from __future__ import annotations

from PySide6.QtGui import QPalette, QColor
from PySide6.QtWidgets import QApplication

BG = "#141416"
PANEL = "#1b1b1f"
CARD = "#1f1f24"
BORDER = "#2a2a30"
ACCENT = "#506eaa"

PALETTE_ROLES = {
    QPalette.Window: BG,
    QPalette.WindowText: "#e6e6e6",
    QPalette.Base: "#0e0e10",
    QPalette.AlternateBase: "#1a1a1c",
    QPalette.Text: "#e6e6e6",
    QPalette.Button: "#222226",
    QPalette.ButtonText: "#e6e6e6",
    QPalette.Highlight: ACCENT,
    QPalette.HighlightedText: "#ffffff",
    QPalette.ToolTipBase: "#1f1f24",
    QPalette.ToolTipText: "#e6e6e6",
}

DISABLED_ROLES = (QPalette.Text, QPalette.ButtonText, QPalette.WindowText)


def apply_dark_theme(app: QApplication) -> None:
    app.setStyle("Fusion")

    pal = QPalette()
    for role, color in PALETTE_ROLES.items():
        pal.setColor(role, QColor(color))
    for role in DISABLED_ROLES:
        pal.setColor(QPalette.Disabled, role, QColor("#8c8c8c"))
    app.setPalette(pal)

    app.setStyleSheet(STYLESHEET)


STYLESHEET = f"""
QMainWindow {{ background: {BG}; }}

QLabel#Title {{ font-size: 16px; font-weight: 650; }}
QLabel#Hint {{ color: #aeb3bc; }}

QFrame#Panel {{ background: {PANEL}; border: 1px solid {BORDER}; border-radius: 10px; }}
QWidget#RowCard {{ background: {CARD}; border: 1px solid {BORDER}; border-radius: 10px; }}

QPushButton {{ padding: 6px 10px; border-radius: 10px; border: 1px solid {BORDER}; background: #232329; }}
QPushButton:hover {{ background: #2a2a33; }}

/* active category */
QPushButton#Category:checked {{ background: #2c3a5a; border: 1px solid #3b4f7a; }}
QPushButton#Edit:checked {{ background: #3a3424; border: 1px solid #7a6231; color: #f3e6c8; }}

QPushButton#Device, QPushButton#DeviceCurrent {{ text-align: left; border: none; background: transparent; }}
QPushButton#Device:hover {{ background: #2a2a33; }}
QPushButton#Device:disabled {{ color: #8a8a92; }}
QPushButton#DeviceCurrent {{ font-weight: 650; color: #cfeedd; }}

QToolButton {{ padding: 2px 6px; border-radius: 8px; border: 1px solid {BORDER}; background: #232329; }}
QToolButton:hover {{ background: #2a2a33; }}
QToolButton::menu-indicator {{ image: none; }}

QSlider::groove:horizontal {{ height: 6px; border-radius: 3px; background: {BORDER}; }}
QSlider::handle:horizontal {{ width: 14px; margin: -5px 0; border-radius: 7px; background: #d6d6d6; }}
QSlider::sub-page:horizontal {{ border-radius: 3px; background: {ACCENT}; }}
"""

# rows.py
from __future__ import annotations

from typing import Optional

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import QHBoxLayout, QMenu, QPushButton, QSizePolicy, QToolButton, QWidget

from models import CATEGORY_LABELS, CATEGORIES, KIND_OUTPUT, AudioDevice
from widgets import StatusPill


class DeviceRow(QWidget):
    select_requested = Signal(object)
    move_requested = Signal(object, int)
    hide_requested = Signal(object)
    hide_entirely_requested = Signal(object)
    unhide_requested = Signal(object)
    never_use_requested = Signal(object, bool)
    category_requested = Signal(object, str)
    forget_requested = Signal(object)

    def __init__(
        self,
        device: AudioDevice,
        *,
        category: Optional[str] = None,
        current: bool = False,
        muted: bool = False,
        hidden: bool = False,
        never_use: bool = False,
        edit_mode: bool = False,
        movable: bool = True,
        last_seen: str = "",
    ) -> None:
        super().__init__()
        self.setObjectName("RowCard")
        self.device = device
        self.category = category

        self.name_btn = QPushButton(device.name)
        self.name_btn.setObjectName("DeviceCurrent" if current else "Device")
        self.name_btn.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Fixed)
        self.name_btn.setEnabled(device.connected)
        self.name_btn.setToolTip(device.uid)
        self.name_btn.clicked.connect(lambda: self.select_requested.emit(self.device))

        self.status = StatusPill()
        if not device.connected:
            self.status.set_state("offline", last_seen or "offline")
        elif hidden:
            self.status.set_state("hidden", "Hidden")
        elif never_use:
            self.status.set_state("never", "Never use")
        elif muted:
            self.status.set_state("muted", "Muted")
        elif current:
            self.status.set_state("active", "Active")

        row = QHBoxLayout()
        row.setContentsMargins(10, 6, 10, 6)
        row.setSpacing(8)
        row.addWidget(self.name_btn, 1)
        row.addWidget(self.status, 0, Qt.AlignVCenter)

        if movable:
            up = QToolButton()
            up.setText("▲")
            up.clicked.connect(lambda: self.move_requested.emit(self.device, -1))
            down = QToolButton()
            down.setText("▼")
            down.clicked.connect(lambda: self.move_requested.emit(self.device, 1))
            row.addWidget(up, 0, Qt.AlignVCenter)
            row.addWidget(down, 0, Qt.AlignVCenter)

        more = QToolButton()
        more.setText("⋯")
        more.setPopupMode(QToolButton.InstantPopup)
        more.setMenu(self._build_menu(hidden, never_use, edit_mode))
        row.addWidget(more, 0, Qt.AlignVCenter)

        self.setLayout(row)

    def _build_menu(self, hidden: bool, never_use: bool, edit_mode: bool) -> QMenu:
        menu = QMenu(self)
        d = self.device

        if hidden:
            menu.addAction("Unhide").triggered.connect(lambda: self.unhide_requested.emit(d))
        else:
            menu.addAction("Hide").triggered.connect(lambda: self.hide_requested.emit(d))
            if d.kind == KIND_OUTPUT:
                menu.addAction("Hide everywhere").triggered.connect(lambda: self.hide_entirely_requested.emit(d))

        act = menu.addAction("Never use")
        act.setCheckable(True)
        act.setChecked(never_use)
        act.toggled.connect(lambda on: self.never_use_requested.emit(d, on))

        if d.kind == KIND_OUTPUT:
            menu.addSeparator()
            for cat in CATEGORIES:
                a = menu.addAction(f"Category: {CATEGORY_LABELS[cat]}")
                a.setCheckable(True)
                a.setChecked(cat == self.category)
                a.triggered.connect(lambda _checked=False, c=cat: self.category_requested.emit(d, c))

        if edit_mode and not d.connected:
            menu.addSeparator()
            menu.addAction("Forget").triggered.connect(lambda: self.forget_requested.emit(d))

        return menu

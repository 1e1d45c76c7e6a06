# main_window.py
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Tuple

from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QFont, QIcon
from PySide6.QtWidgets import (
    QApplication,
    QButtonGroup,
    QFrame,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QMenu,
    QMessageBox,
    QPushButton,
    QScrollArea,
    QSizePolicy,
    QSlider,
    QSystemTrayIcon,
    QVBoxLayout,
    QWidget,
)

from app_meta import APP_NAME, detect_version
from audio_manager import AudioManager
from models import (
    CATEGORY_HEADPHONE,
    CATEGORY_LABELS,
    CATEGORY_SPEAKER,
    KIND_INPUT,
    KIND_OUTPUT,
    AudioDevice,
)
from rows import DeviceRow
from widgets import ModeSwitch

logger = logging.getLogger(__name__)

PANEL_INPUTS = "inputs"
PANEL_SPEAKERS = "speakers"
PANEL_HEADPHONES = "headphones"
PANEL_IGNORED = "ignored"

PANEL_TITLES = {
    PANEL_INPUTS: "Inputs",
    PANEL_SPEAKERS: "Speakers",
    PANEL_HEADPHONES: "Headphones",
    PANEL_IGNORED: "Ignored",
}


class MainWindow(QMainWindow):
    def __init__(
        self,
        manager: AudioManager,
        *,
        server_label: str = "",
        poll_interval_ms: int = 0,
    ) -> None:
        super().__init__()
        self.setWindowTitle(f"{APP_NAME} {detect_version()}")
        self.resize(1220, 640)

        self.manager = manager
        self._server_label = server_label
        self._quitting = False
        self._rendering = False

        self._lists: Dict[str, QScrollArea] = {}
        self._titles: Dict[str, QLabel] = {}

        self._build_ui()
        self._build_tray()
        self._wire_timers(poll_interval_ms)

        self.manager.set_listener(self.render, self._on_blink)

    # ---- layout ------------------------------------------------------------

    def _build_ui(self) -> None:
        root = QWidget()
        outer = QVBoxLayout()
        outer.setContentsMargins(12, 12, 12, 12)
        outer.setSpacing(10)
        root.setLayout(outer)
        self.setCentralWidget(root)

        outer.addLayout(self._build_header())
        outer.addLayout(self._build_body(), 1)

        hint = QLabel(
            "Click a device to make it the default. In automatic mode the click also moves it to the top "
            "of its list. Edit shows hidden and offline devices in their saved positions."
        )
        hint.setObjectName("Hint")
        hint.setWordWrap(True)
        outer.addWidget(hint)

    def _build_header(self) -> QHBoxLayout:
        header = QHBoxLayout()
        header.setSpacing(10)

        title = QLabel(APP_NAME)
        title.setObjectName("Title")

        self.server = QLabel(self._server_label)
        self.server.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Preferred)

        self.auto_switch = ModeSwitch()
        self.auto_switch.setToolTip("Automatic: follow priorities. Manual: keep what you pick.")
        self.auto_switch.toggled.connect(lambda on: self._run(self.manager.set_manual, not on))
        self.auto_label = QLabel("")

        self.category_group = QButtonGroup(self)
        self.category_group.setExclusive(True)
        self.category_buttons: Dict[str, QPushButton] = {}
        for cat in (CATEGORY_SPEAKER, CATEGORY_HEADPHONE):
            b = QPushButton(CATEGORY_LABELS[cat])
            b.setObjectName("Category")
            b.setCheckable(True)
            b.clicked.connect(lambda _checked=False, c=cat: self._run(self.manager.set_category_mode, c))
            self.category_group.addButton(b)
            self.category_buttons[cat] = b

        self.edit_btn = QPushButton("Edit")
        self.edit_btn.setObjectName("Edit")
        self.edit_btn.setCheckable(True)
        self.edit_btn.clicked.connect(lambda _checked=False: self._run(self.manager.toggle_edit_mode))

        refresh_btn = QPushButton("Refresh")
        refresh_btn.clicked.connect(lambda: self._run(self.manager.refresh))

        self.volume = QSlider(Qt.Horizontal)
        self.volume.setRange(0, 100)
        self.volume.setFixedWidth(160)
        self.volume.setToolTip("Output volume")
        self.volume.valueChanged.connect(self._on_volume_changed)

        header.addWidget(title)
        header.addSpacing(8)
        header.addWidget(self.server, 2)
        header.addStretch(1)
        header.addWidget(self.auto_switch, 0, Qt.AlignVCenter)
        header.addWidget(self.auto_label)
        for b in self.category_buttons.values():
            header.addWidget(b)
        header.addWidget(self.edit_btn)
        header.addWidget(refresh_btn)
        header.addWidget(QLabel("Volume"))
        header.addWidget(self.volume)

        return header

    def _build_body(self) -> QHBoxLayout:
        body = QHBoxLayout()
        body.setSpacing(12)
        for key in (PANEL_INPUTS, PANEL_SPEAKERS, PANEL_HEADPHONES, PANEL_IGNORED):
            body.addWidget(self._make_panel(key), 1)
        return body

    def _make_panel(self, key: str) -> QFrame:
        frame = QFrame()
        frame.setObjectName("Panel")

        layout = QVBoxLayout()
        layout.setContentsMargins(12, 12, 12, 12)
        layout.setSpacing(10)
        frame.setLayout(layout)

        t = QLabel(PANEL_TITLES[key])
        f = QFont()
        f.setPointSize(12)
        f.setWeight(QFont.DemiBold)
        t.setFont(f)
        layout.addWidget(t)

        scroll = self._make_scroll_list()
        layout.addWidget(scroll, 1)

        self._titles[key] = t
        self._lists[key] = scroll
        return frame

    def _make_scroll_list(self) -> QScrollArea:
        container = QWidget()
        v = QVBoxLayout()
        v.setContentsMargins(0, 0, 0, 0)
        v.setSpacing(8)
        container.setLayout(v)
        v.addStretch(1)

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        scroll.setWidget(container)
        scroll._layout = v  # type: ignore[attr-defined]
        return scroll

    # ---- tray --------------------------------------------------------------

    def _build_tray(self) -> None:
        self.tray: Optional[QSystemTrayIcon] = None
        if not QSystemTrayIcon.isSystemTrayAvailable():
            logger.info("System tray not available")
            return

        self.tray = QSystemTrayIcon(self._tray_icon(), self)
        self.tray.setToolTip(APP_NAME)

        menu = QMenu(self)
        menu.addAction("Show").triggered.connect(self.show_from_tray)
        menu.addAction("Switch speakers / headphones").triggered.connect(
            lambda: self._run(self.manager.toggle_category_mode)
        )
        menu.addAction("Refresh").triggered.connect(lambda: self._run(self.manager.refresh))
        menu.addSeparator()
        menu.addAction("Quit").triggered.connect(self.quit)
        self.tray.setContextMenu(menu)

        def on_activated(reason):
            if reason in (QSystemTrayIcon.Trigger, QSystemTrayIcon.DoubleClick):
                if self.isVisible():
                    self.hide()
                else:
                    self.show_from_tray()

        self.tray.activated.connect(on_activated)
        self.tray.show()

    def _tray_icon(self) -> QIcon:
        icon = QIcon.fromTheme(self.manager.tray_icon_name())
        if icon.isNull():
            icon = QIcon.fromTheme("audio-card")
        return icon

    def _update_tray(self) -> None:
        if self.tray is None:
            return
        self.tray.setIcon(self._tray_icon())
        mode = "automatic" if self.manager.is_automatic else "manual"
        self.tray.setToolTip(f"{APP_NAME}: {CATEGORY_LABELS[self.manager.category]} ({mode})")

    def _on_blink(self, _on: bool) -> None:
        self._update_tray()

    def show_from_tray(self) -> None:
        self.show()
        self.raise_()
        self.activateWindow()

    def _wire_timers(self, poll_interval_ms: int) -> None:
        self.timer: Optional[QTimer] = None
        if poll_interval_ms > 0:
            self.timer = QTimer(self)
            self.timer.setInterval(poll_interval_ms)
            self.timer.timeout.connect(self._poll)
            self.timer.start()

    def _poll(self) -> None:
        try:
            self.manager.refresh()
        except Exception:
            logger.exception("Periodic refresh failed")

    # ---- actions -----------------------------------------------------------

    def _run(self, fn: Callable, *args) -> None:
        if self._rendering:
            return
        try:
            fn(*args)
        except Exception as e:
            logger.exception("Action failed")
            QMessageBox.critical(self, "Error", str(e))
            self.render()

    def _on_volume_changed(self, value: int) -> None:
        self._run(self.manager.set_volume, value / 100.0)

    def _move(self, panel_category: Optional[str], device: AudioDevice, delta: int) -> None:
        current = self.manager.lists.for_kind(device.kind, panel_category)
        try:
            i = current.index(device)
        except ValueError:
            return
        j = i + delta
        if j < 0 or j >= len(current):
            return
        self._run(self.manager.move_device, device.kind, panel_category, i, j)

    def _hide(self, panel_category: Optional[str], device: AudioDevice) -> None:
        self._run(self.manager.hide_device, device, panel_category)

    def _unhide(self, panel_category: Optional[str], device: AudioDevice) -> None:
        self._run(self.manager.unhide_device, device, panel_category)

    def _forget(self, device: AudioDevice) -> None:
        q = QMessageBox.question(
            self,
            "Forget device",
            f"Forget {device.name}?\n\nIts priority position, category and hidden state are removed.",
            QMessageBox.Yes | QMessageBox.No,
            QMessageBox.No,
        )
        if q == QMessageBox.Yes:
            self._run(self.manager.forget_device, device.uid)

    # ---- rendering ---------------------------------------------------------

    def _clear(self, key: str) -> None:
        lay = self._lists[key]._layout  # type: ignore[attr-defined]
        while lay.count() > 1:
            w = lay.takeAt(0).widget()
            if w is not None:
                w.setParent(None)
                w.deleteLater()

    def _add_row(self, key: str, row: DeviceRow) -> None:
        lay = self._lists[key]._layout  # type: ignore[attr-defined]
        lay.insertWidget(lay.count() - 1, row)

    def _make_row(
        self,
        device: AudioDevice,
        panel_category: Optional[str],
        *,
        hidden: bool,
        never_use: bool,
        movable: bool,
    ) -> DeviceRow:
        m = self.manager
        row = DeviceRow(
            device,
            category=m.priorities.category_of(device) if device.kind == KIND_OUTPUT else None,
            current=m.is_current(device),
            muted=m.mute.is_muted(device),
            hidden=hidden,
            never_use=never_use,
            edit_mode=m.edit_mode,
            movable=movable,
            last_seen=m.last_seen_label(device.uid) if not device.connected else "",
        )
        row.select_requested.connect(lambda d: self._run(m.select_device, d))
        row.move_requested.connect(lambda d, delta: self._move(panel_category, d, delta))
        row.hide_requested.connect(lambda d: self._hide(panel_category, d))
        row.hide_entirely_requested.connect(lambda d: self._run(m.hide_device_entirely, d))
        row.unhide_requested.connect(lambda d: self._unhide(panel_category, d))
        row.never_use_requested.connect(lambda d, on: self._run(m.set_never_use, d, on))
        row.category_requested.connect(lambda d, c: self._run(m.set_device_category, d, c))
        row.forget_requested.connect(self._forget)
        return row

    def _ignored_groups(self) -> List[Tuple[AudioDevice, Optional[str], bool]]:
        lists = self.manager.lists
        out: List[Tuple[AudioDevice, Optional[str], bool]] = []
        out += [(d, None, True) for d in lists.hidden_inputs]
        out += [(d, CATEGORY_SPEAKER, True) for d in lists.hidden_speakers]
        out += [(d, CATEGORY_HEADPHONE, True) for d in lists.hidden_headphones]
        out += [(d, None, False) for d in lists.never_use]
        return out

    def render(self) -> None:
        m = self.manager
        vis = m.visibility
        self._rendering = True
        try:
            self.auto_switch.set_checked_silent(m.is_automatic)
            self.auto_label.setText("Automatic" if m.is_automatic else "Manual")
            for cat, b in self.category_buttons.items():
                b.setChecked(cat == m.category)
            self.edit_btn.setChecked(m.edit_mode)
            self.volume.setValue(int(round(m.volume * 100)))

            for key, cat in ((PANEL_SPEAKERS, CATEGORY_SPEAKER), (PANEL_HEADPHONES, CATEGORY_HEADPHONE)):
                suffix = "  (active)" if cat == m.category else ""
                self._titles[key].setText(PANEL_TITLES[key] + suffix)

            panels = (
                (PANEL_INPUTS, KIND_INPUT, None),
                (PANEL_SPEAKERS, KIND_OUTPUT, CATEGORY_SPEAKER),
                (PANEL_HEADPHONES, KIND_OUTPUT, CATEGORY_HEADPHONE),
            )
            for key, kind, cat in panels:
                self._clear(key)
                for d in m.lists.for_kind(kind, cat):
                    row = self._make_row(
                        d,
                        cat,
                        hidden=vis.is_hidden(d, cat),
                        never_use=vis.is_never_use(d),
                        movable=True,
                    )
                    self._add_row(key, row)

            self._clear(PANEL_IGNORED)
            for d, cat, hidden in self._ignored_groups():
                row = self._make_row(d, cat, hidden=hidden, never_use=not hidden or vis.is_never_use(d), movable=False)
                self._add_row(PANEL_IGNORED, row)
        finally:
            self._rendering = False

        self._update_tray()

    # ---- lifecycle ---------------------------------------------------------

    def quit(self) -> None:
        self._quitting = True
        self.close()

    def closeEvent(self, event) -> None:
        if self.tray is not None and not self._quitting:
            event.ignore()
            self.hide()
            return

        if self.timer is not None:
            self.timer.stop()

        try:
            self.manager.close()
        except Exception:
            logger.exception("Engine shutdown failed")

        try:
            self.manager.backend.close()
        except Exception:
            logger.exception("Backend shutdown failed")

        if self.tray is not None:
            self.tray.hide()

        super().closeEvent(event)
        QApplication.quit()

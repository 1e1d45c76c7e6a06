# event_bridge.py
from __future__ import annotations

from PySide6.QtCore import QObject, Qt, Signal

from audio_manager import AudioManager


class EventBridge(QObject):
    """
    Carries audio server callbacks from the listener thread into the thread
    that owns this object (the Qt main thread) through queued connections.
    """

    devices_changed = Signal()
    default_output_changed = Signal(object)
    mute_or_volume_changed = Signal()

    def attach(self, manager: AudioManager) -> None:
        self.devices_changed.connect(manager.handle_devices_changed, Qt.QueuedConnection)
        self.default_output_changed.connect(manager.handle_default_output_changed, Qt.QueuedConnection)
        self.mute_or_volume_changed.connect(manager.handle_mute_or_volume_changed, Qt.QueuedConnection)

    def subscribe(self, backend) -> None:
        backend.subscribe(
            self.devices_changed.emit,
            self.default_output_changed.emit,
            self.mute_or_volume_changed.emit,
        )

from typing import Optional

from PyQt6.QtWidgets import (
    QCheckBox, QHBoxLayout, QLabel, QMainWindow, QPlainTextEdit, QPushButton,
    QVBoxLayout, QWidget,
)
from PyQt6.QtCore import QDateTime, QObject, pyqtSignal

MAX_LOG_LINES = 500


class WindowSignals(QObject):
    start = pyqtSignal()
    stop = pyqtSignal()
    diagnostics = pyqtSignal()
    auto_watch = pyqtSignal(bool)

    # Cross-thread updates from the monitor/watcher threads
    _set_status_sig = pyqtSignal(str)
    _append_log_sig = pyqtSignal(str)


class MonitorWindow(QMainWindow):
    """Status window: control buttons, current status and a rolling log.

    Also acts as an observability sink. log() and set_status() may be called
    from any thread; they are marshalled onto the GUI thread through signals.
    """

    def __init__(self, auto_watch: bool = True, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.setWindowTitle("AutoAccept")
        self.signals = WindowSignals()

        root = QWidget(self)
        layout = QVBoxLayout(root)

        self._status = QLabel("Status: stopped")
        self._status.setObjectName("status")
        layout.addWidget(self._status)

        buttons = QHBoxLayout()
        self._btn_start = QPushButton("Start")
        self._btn_stop = QPushButton("Stop")
        self._btn_diag = QPushButton("Diagnostics")
        for btn in (self._btn_start, self._btn_stop, self._btn_diag):
            buttons.addWidget(btn)
        layout.addLayout(buttons)

        self._auto = QCheckBox("Start automatically when the match screen appears")
        self._auto.setChecked(bool(auto_watch))
        layout.addWidget(self._auto)

        self._log = QPlainTextEdit()
        self._log.setReadOnly(True)
        self._log.setMaximumBlockCount(MAX_LOG_LINES)
        layout.addWidget(self._log, 1)

        self.setCentralWidget(root)
        self.resize(560, 420)

        self._btn_start.clicked.connect(self.signals.start.emit)
        self._btn_stop.clicked.connect(self.signals.stop.emit)
        self._btn_diag.clicked.connect(self.signals.diagnostics.emit)
        self._auto.toggled.connect(self.signals.auto_watch.emit)
        self.signals._set_status_sig.connect(self._apply_status)
        self.signals._append_log_sig.connect(self._apply_log)

    # ------ Wiring ------
    def on_start(self, slot): self.signals.start.connect(slot)
    def on_stop(self, slot): self.signals.stop.connect(slot)
    def on_diagnostics(self, slot): self.signals.diagnostics.connect(slot)
    def on_auto_watch(self, slot): self.signals.auto_watch.connect(slot)

    # ------ Sink API (thread-safe) ------
    def log(self, message: str) -> None:
        self.signals._append_log_sig.emit(str(message))

    def set_status(self, status: str) -> None:
        self.signals._set_status_sig.emit(str(status))

    # ------ GUI thread ------
    def _apply_status(self, text: str) -> None:
        self._status.setText(f"Status: {text}")

    def _apply_log(self, text: str) -> None:
        stamp = QDateTime.currentDateTime().toString("HH:mm:ss")
        self._log.appendPlainText(f"[{stamp}] {text}")

from typing import Callable, Optional, Sequence, Tuple

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QBrush, QColor, QIcon, QPainter, QPixmap
from PyQt6.QtWidgets import QMenu, QSystemTrayIcon

Callback = Optional[Callable[[], None]]
MenuEntry = Tuple[str, Callable[[], None]]


def create_programmatic_icon() -> QIcon:
    """Dark rounded square with a blue dot, drawn in code."""
    pixmap = QPixmap(64, 64)
    pixmap.fill(Qt.GlobalColor.transparent)

    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.RenderHint.Antialiasing)
    painter.setPen(Qt.PenStyle.NoPen)

    painter.setBrush(QBrush(QColor("#1e1e2e")))
    painter.drawRoundedRect(0, 0, 64, 64, 12, 12)

    painter.setBrush(QBrush(QColor("#5e9cff")))
    painter.drawEllipse(16, 16, 32, 32)

    painter.end()
    return QIcon(pixmap)


class SystemTray:
    def __init__(self, app, entries: Sequence[MenuEntry] = (), quit_callback: Callback = None):
        self.app = app
        self.quit_callback = quit_callback

        self.tray_icon = QSystemTrayIcon(app)
        self.tray_icon.setIcon(create_programmatic_icon())
        self.tray_icon.setToolTip("navshell")

        self.menu = QMenu()
        title_action = self.menu.addAction("navshell")
        title_action.setEnabled(False)
        self.menu.addSeparator()

        for label, callback in entries:
            self.menu.addAction(label).triggered.connect(lambda _checked=False, cb=callback: cb())
        self.menu.addSeparator()

        exit_action = self.menu.addAction("Exit")
        exit_action.triggered.connect(self.on_exit)

        self.tray_icon.setContextMenu(self.menu)
        self.tray_icon.show()

    def set_notification_count(self, count: int) -> None:
        self.tray_icon.setToolTip(f"navshell ({count} notifications)" if count else "navshell")

    def on_exit(self):
        self.tray_icon.hide()
        if self.quit_callback:
            self.quit_callback()


def setup_tray(app, entries: Sequence[MenuEntry] = (), on_quit: Callback = None) -> SystemTray:
    """Build the tray; the caller keeps the returned reference alive."""
    return SystemTray(app, entries=entries, quit_callback=on_quit)

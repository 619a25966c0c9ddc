import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Set, Tuple

from PyQt6.QtGui import QCursor, QGuiApplication
from PyQt6.QtWidgets import QApplication

logger = logging.getLogger(__name__)

# ══════════════════════════════════════════════════════════════════════════════
# GEOMETRY
# ══════════════════════════════════════════════════════════════════════════════

@dataclass
class Rect:
    x: int
    y: int
    width: int
    height: int

    def to_tuple(self) -> Tuple[int, int, int, int]:
        return (self.x, self.y, self.width, self.height)

    @classmethod
    def from_ltrb(cls, l: int, t: int, r: int, b: int) -> "Rect":
        return cls(l, t, r - l, b - t)

    @classmethod
    def from_qrect(cls, qrect) -> "Rect":
        return cls(qrect.x(), qrect.y(), qrect.width(), qrect.height())


@dataclass
class Size:
    width: int
    height: int


@dataclass
class ScreenInfo:
    geometry: Rect
    workarea: Rect

# ══════════════════════════════════════════════════════════════════════════════
# HOST INTERFACE
# ══════════════════════════════════════════════════════════════════════════════

class HostWindowManager(ABC):
    """What the popups need from the window manager they run under."""

    @abstractmethod
    def pointer_position(self) -> Tuple[int, int]: ...

    @abstractmethod
    def screen_at_pointer(self) -> ScreenInfo: ...

    @abstractmethod
    def clear_focus(self) -> None: ...

    @abstractmethod
    def restore_focus_under_pointer(self) -> None: ...

    @abstractmethod
    def execute_keybind(self, modifiers: Set[str], key: str) -> bool:
        """Run the global binding for a key the popup did not consume."""


class QtHostWindowManager(HostWindowManager):
    """Host adapter built on Qt's view of screens, pointer and windows."""

    def __init__(self, dispatcher=None):
        self.dispatcher = dispatcher
        self._saved_window = None

    def pointer_position(self) -> Tuple[int, int]:
        pos = QCursor.pos()
        return pos.x(), pos.y()

    def screen_at_pointer(self) -> ScreenInfo:
        screen = QGuiApplication.screenAt(QCursor.pos()) or QGuiApplication.primaryScreen()
        if screen is None:
            logger.warning("No screen available, assuming 1920x1080")
            fallback = Rect(0, 0, 1920, 1080)
            return ScreenInfo(geometry=fallback, workarea=fallback)
        return ScreenInfo(
            geometry=Rect.from_qrect(screen.geometry()),
            workarea=Rect.from_qrect(screen.availableGeometry()),
        )

    def clear_focus(self) -> None:
        self._saved_window = QApplication.activeWindow()
        focus = QApplication.focusWidget()
        if focus is not None:
            focus.clearFocus()

    def restore_focus_under_pointer(self) -> None:
        widget = QApplication.widgetAt(QCursor.pos())
        window: Optional[object] = widget.window() if widget is not None else self._saved_window
        self._saved_window = None
        if window is None or not window.isVisible():
            return
        try:
            window.raise_()
            window.activateWindow()
        except RuntimeError as e:
            # Deleted on the C++ side since we looked it up.
            logger.debug(f"Could not restore focus: {e}")

    def execute_keybind(self, modifiers: Set[str], key: str) -> bool:
        if self.dispatcher is None:
            return False
        return self.dispatcher.dispatch(modifiers, key)

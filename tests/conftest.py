import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from typing import Callable, List, Set, Tuple

import pytest
from PyQt6.QtCore import QPointF, Qt
from PyQt6.QtWidgets import QApplication

from navshell.window_manager import HostWindowManager, Rect, ScreenInfo


class ManualScheduler:
    """Stands in for QTimer.singleShot; callbacks run only when asked."""

    def __init__(self) -> None:
        self.scheduled: List[Tuple[int, Callable[[], None]]] = []

    def __call__(self, delay_ms: int, callback: Callable[[], None]) -> None:
        self.scheduled.append((delay_ms, callback))

    @property
    def delays(self) -> List[int]:
        return [delay for delay, _cb in self.scheduled]

    def run_all(self) -> None:
        pending, self.scheduled = self.scheduled, []
        for _delay, callback in pending:
            callback()


class MouseStub:
    """Just enough of a QMouseEvent for the item handlers."""

    def __init__(self, button=Qt.MouseButton.LeftButton, x: float = 0.0,
                 modifiers=Qt.KeyboardModifier.NoModifier) -> None:
        self._button = button
        self._x = x
        self._modifiers = modifiers
        self.accepted = False

    def button(self):
        return self._button

    def buttons(self):
        return self._button

    def modifiers(self):
        return self._modifiers

    def globalPosition(self) -> QPointF:
        return QPointF(self._x, 0.0)

    def accept(self) -> None:
        self.accepted = True


class FakeHost(HostWindowManager):
    def __init__(self, screen: ScreenInfo = None, keybind_result: bool = False) -> None:
        self.screen = screen or ScreenInfo(
            geometry=Rect(0, 0, 1920, 1080),
            workarea=Rect(0, 30, 1920, 1050),
        )
        self.keybind_result = keybind_result
        self.calls: List[str] = []
        self.keybinds: List[Tuple[Set[str], str]] = []

    def pointer_position(self):
        return (960, 540)

    def screen_at_pointer(self) -> ScreenInfo:
        return self.screen

    def clear_focus(self) -> None:
        self.calls.append("clear_focus")

    def restore_focus_under_pointer(self) -> None:
        self.calls.append("restore_focus")

    def execute_keybind(self, modifiers, key) -> bool:
        self.keybinds.append((set(modifiers), key))
        return self.keybind_result


@pytest.fixture
def qt_app():
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def mouse_event():
    return MouseStub

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Set

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QCursor
from PyQt6.QtWidgets import QFrame, QHBoxLayout, QLabel, QSizePolicy, QWidget

from navshell.keys import modifier_names

logger = logging.getLogger(__name__)

ItemCallback = Callable[[Any], None]

STYLES = {
    "item_normal": """
        QFrame#navItem {
            background-color: rgba(255, 255, 255, 0.03);
            border-radius: 8px;
            border: 1px solid rgba(255, 255, 255, 0.06);
            color: #e6e6eb;
        }
    """,
    "item_focused": """
        QFrame#navItem {
            background-color: rgba(94, 156, 255, 0.15);
            border-radius: 8px;
            border: 1px solid rgba(94, 156, 255, 0.55);
            color: #ffffff;
        }
    """,
    "sub_button": """
        QLabel#subButton {
            background-color: rgba(255, 255, 255, 0.05);
            border: 1px solid transparent;
            border-radius: 6px;
            color: #9ca3af;
            font-size: 11px;
            padding: 2px 8px;
        }
    """,
    "sub_button_focused": """
        QLabel#subButton {
            background-color: rgba(94, 156, 255, 0.25);
            border: 1px solid rgba(94, 156, 255, 0.7);
            border-radius: 6px;
            color: #ffffff;
            font-size: 11px;
            padding: 2px 8px;
        }
    """,
}


def invoke(callback: Optional[Callable[..., Any]], *args, what: str = "callback") -> None:
    """Run a consumer callback from a Qt event handler, logging any failure.

    PyQt aborts the process when a virtual event handler raises.
    """
    if callback is None:
        return
    try:
        callback(*args)
    except Exception:
        logger.exception(f"{what} failed")


def hover_under_pointer(container: QWidget) -> bool:
    """Re-send a hover to the item of ``container`` under the pointer.

    Needed after a re-render swapped the widget under a pointer that did
    not move, since no enter event fires then.
    """
    child = container.childAt(container.mapFromGlobal(QCursor.pos()))
    while child is not None and not isinstance(child, NavigableItem):
        child = child.parentWidget()
    if child is None or child.parentWidget() is not container:
        return False
    child.hover()
    return True


@dataclass
class ItemStyle:
    normal: str = STYLES["item_normal"]
    focused: str = STYLES["item_focused"]


class NavigableItem(QFrame):
    """A content widget with focus visuals, driven by hover and keyboard."""

    def __init__(self, content: Optional[QWidget] = None, data: Any = None,
                 style: Optional[ItemStyle] = None,
                 on_click: Optional[ItemCallback] = None,
                 on_right_click: Optional[ItemCallback] = None,
                 parent=None):
        super().__init__(parent)
        self.setObjectName("navItem")
        self.data = data
        self.style_pair = style or ItemStyle()
        self.on_click = on_click
        self.on_right_click = on_right_click
        self.click_modifiers: Set[str] = set()
        self._focused = False
        self._hover_callback: Optional[Callable[[], None]] = None

        self._layout = QHBoxLayout(self)
        self._layout.setContentsMargins(8, 6, 8, 6)
        self._layout.setSpacing(8)
        self.content = None
        if content is not None:
            self.set_content(content)

        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Fixed)
        if on_click is not None:
            self.setCursor(Qt.CursorShape.PointingHandCursor)
        self._apply_style()

    # ---------------------------------------------------------------- content

    def set_content(self, widget: QWidget) -> None:
        if self.content is not None:
            self._layout.removeWidget(self.content)
            self.content.setParent(None)
            self.content.deleteLater()
        self.content = widget
        self._layout.addWidget(widget, 1)

    @property
    def is_focused(self) -> bool:
        return self._focused

    # ------------------------------------------------------- focus interface

    def bind_hover(self, callback: Callable[[], None]) -> None:
        self._hover_callback = callback

    def on_focus(self) -> None:
        self._focused = True
        self._apply_style()

    def on_unfocus(self) -> None:
        self._focused = False
        self._apply_style()

    def on_activate(self, data: Any = None) -> None:
        if self.on_click is not None:
            self.on_click(self.data if data is None else data)

    def _apply_style(self) -> None:
        self.setStyleSheet(self.style_pair.focused if self._focused else self.style_pair.normal)

    # ----------------------------------------------------------------- events

    def hover(self) -> None:
        """Pointer entered: ask the registry for focus unless we already hold it."""
        if self._focused or self._hover_callback is None:
            return
        invoke(self._hover_callback, what="Hover focus")

    def enterEvent(self, event):
        self.hover()
        super().enterEvent(event)

    def mousePressEvent(self, event):
        self.click_modifiers = modifier_names(event.modifiers())
        if event.button() == Qt.MouseButton.LeftButton and self.on_click is not None:
            invoke(self.on_click, self.data, what="Item click")
            event.accept()
            return
        if event.button() == Qt.MouseButton.RightButton and self.on_right_click is not None:
            invoke(self.on_right_click, self.data, what="Item right-click")
            event.accept()
            return
        super().mousePressEvent(event)


class SubButton(QLabel):
    """Small clickable label nested inside an item row."""

    def __init__(self, text: str, on_click: Callable[[], None],
                 on_hover: Optional[Callable[[], None]] = None, parent=None):
        super().__init__(text, parent)
        self.setObjectName("subButton")
        self.on_click = on_click
        self.on_hover = on_hover
        self.focused = False
        self.setCursor(Qt.CursorShape.PointingHandCursor)
        self.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.set_focused(False)

    def set_focused(self, focused: bool) -> None:
        self.focused = focused
        self.setStyleSheet(STYLES["sub_button_focused" if focused else "sub_button"])

    def enterEvent(self, event):
        invoke(self.on_hover, what="Sub-button hover")
        super().enterEvent(event)

    def mousePressEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton:
            invoke(self.on_click, what=f"Sub-button {self.text()!r} click")
            event.accept()
            return
        super().mousePressEvent(event)


def text_item(text: str, data: Any = None, **kwargs) -> NavigableItem:
    """A navigable item showing a single line of text."""
    label = QLabel(text)
    label.setStyleSheet("background: transparent; font-size: 13px;")
    return NavigableItem(content=label, data=text if data is None else data, **kwargs)

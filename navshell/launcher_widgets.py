"""Item variants rendered by the application launcher."""
from enum import Enum, auto
from typing import Callable, Optional

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QHBoxLayout, QLabel, QWidget

from navshell.catalog import CatalogEntry
from navshell.icons import load_icon
from navshell.keys import modifier_names
from navshell.navigable_item import ItemStyle, NavigableItem, SubButton, invoke
from navshell.pinned import PinnedEntry

ICON_SIZE = 28
PIN_ICON_SIZE = 32

STYLES = {
    "item_secondary": """
        QFrame#navItem {
            background-color: rgba(255, 140, 66, 0.15);
            border-radius: 8px;
            border: 1px solid rgba(255, 140, 66, 0.6);
            color: #ffffff;
        }
    """,
    "app_label": """
        background: transparent;
        color: #e6e6eb;
        font-size: 13px;
    """,
}


class SubFocus(Enum):
    NONE = auto()
    PIN_TOGGLE = auto()
    INFO_ACTION = auto()


class AppEntryItem(NavigableItem):
    """Catalog row: icon, name, and pin/info sub-controls shown while focused."""

    def __init__(self, entry: CatalogEntry, pinned: bool = False,
                 on_launch: Optional[Callable[[CatalogEntry, set], None]] = None,
                 on_toggle_pin: Optional[Callable[[CatalogEntry], None]] = None,
                 on_info: Optional[Callable[[CatalogEntry], None]] = None,
                 on_subfocus: Optional[Callable[[SubFocus], None]] = None,
                 style: Optional[ItemStyle] = None, parent=None):
        # Read by _apply_style, which the base constructor already calls.
        self.subfocus = SubFocus.NONE
        self.secondary = False
        super().__init__(data=entry, style=style, parent=parent)
        self.entry = entry
        self.on_launch = on_launch

        row = QWidget()
        row.setStyleSheet("background: transparent;")
        layout = QHBoxLayout(row)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(10)

        self.icon_label = QLabel()
        self.icon_label.setFixedSize(ICON_SIZE, ICON_SIZE)
        self.icon_label.setPixmap(load_icon(entry.icon_path, ICON_SIZE, entry.display_name))
        layout.addWidget(self.icon_label)

        self.name_label = QLabel(entry.display_name)
        self.name_label.setStyleSheet(STYLES["app_label"])
        layout.addWidget(self.name_label, 1)

        def hover_to(sub):
            return lambda: on_subfocus(sub) if on_subfocus is not None else None

        self.pin_button = SubButton(
            "Unpin" if pinned else "Pin",
            on_click=lambda: on_toggle_pin(entry) if on_toggle_pin is not None else None,
            on_hover=hover_to(SubFocus.PIN_TOGGLE),
        )
        self.info_button = SubButton(
            "Info",
            on_click=lambda: on_info(entry) if on_info is not None else None,
            on_hover=hover_to(SubFocus.INFO_ACTION),
        )
        layout.addWidget(self.pin_button)
        layout.addWidget(self.info_button)
        self.set_content(row)

        self.on_click = self._clicked
        self.setCursor(Qt.CursorShape.PointingHandCursor)
        self._sync_sub_buttons()

    def _clicked(self, entry: CatalogEntry) -> None:
        if self.on_launch is not None:
            self.on_launch(entry, self.click_modifiers)

    def set_subfocus(self, subfocus: SubFocus) -> None:
        self.subfocus = subfocus
        self._sync_sub_buttons()
        self._apply_style()

    def set_secondary(self, secondary: bool) -> None:
        if secondary != self.secondary:
            self.secondary = secondary
            self._apply_style()

    def on_focus(self) -> None:
        super().on_focus()
        self._sync_sub_buttons()

    def on_unfocus(self) -> None:
        self.subfocus = SubFocus.NONE
        super().on_unfocus()
        self._sync_sub_buttons()

    def _sync_sub_buttons(self) -> None:
        self.pin_button.setVisible(self.is_focused)
        self.info_button.setVisible(self.is_focused)
        self.pin_button.set_focused(self.subfocus is SubFocus.PIN_TOGGLE)
        self.info_button.set_focused(self.subfocus is SubFocus.INFO_ACTION)

    def _apply_style(self) -> None:
        if self.is_focused and self.secondary and self.subfocus is SubFocus.NONE:
            self.setStyleSheet(STYLES["item_secondary"])
        else:
            super()._apply_style()


class PinnedIconItem(NavigableItem):
    """Icon cell in the pinned row; launches on release, drags to reorder."""

    def __init__(self, entry: PinnedEntry, index: int,
                 on_press: Optional[Callable[[int, int, set], None]] = None,
                 on_drag: Optional[Callable[[int], None]] = None,
                 on_release: Optional[Callable[[], None]] = None,
                 on_unpin: Optional[Callable[[int], None]] = None,
                 style: Optional[ItemStyle] = None, parent=None):
        self.secondary = False
        super().__init__(data=entry, style=style, parent=parent)
        self.index = index
        self.on_press = on_press
        self.on_drag = on_drag
        self.on_release = on_release
        self.on_unpin = on_unpin

        self._layout.setContentsMargins(6, 6, 6, 6)
        self.icon_label = QLabel()
        self.icon_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.icon_label.setStyleSheet("background: transparent;")
        self.set_content(self.icon_label)
        self.set_entry(entry)
        self.setCursor(Qt.CursorShape.PointingHandCursor)

    def set_entry(self, entry: PinnedEntry) -> None:
        self.data = entry
        self.icon_label.setPixmap(load_icon(entry.icon, PIN_ICON_SIZE, entry.name))
        self.setToolTip(entry.name)

    def set_secondary(self, secondary: bool) -> None:
        if secondary != self.secondary:
            self.secondary = secondary
            self._apply_style()

    def _apply_style(self) -> None:
        if self.is_focused and self.secondary:
            self.setStyleSheet(STYLES["item_secondary"])
        else:
            super()._apply_style()

    def mousePressEvent(self, event):
        self.click_modifiers = modifier_names(event.modifiers())
        if event.button() == Qt.MouseButton.RightButton:
            invoke(self.on_unpin, self.index, what="Pinned unpin")
        elif event.button() == Qt.MouseButton.LeftButton:
            invoke(self.on_press, self.index, int(event.globalPosition().x()), self.click_modifiers,
                   what="Pinned press")
        event.accept()

    def mouseMoveEvent(self, event):
        if event.buttons() & Qt.MouseButton.LeftButton:
            invoke(self.on_drag, int(event.globalPosition().x()), what="Pinned drag")
        event.accept()

    def mouseReleaseEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton:
            invoke(self.on_release, what="Pinned release")
        event.accept()

"""
Notification center: newest-first history of desktop notifications.

The list is virtualized. Each row shows icon, title, a one-line message
and the arrival time, and grows a dismiss control while focused.
"""
import logging
import re
import time
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional, Set

from PyQt6.QtWidgets import QHBoxLayout, QLabel, QVBoxLayout, QWidget

from navshell.config import NotificationConfig, PopupConfig
from navshell.icons import load_icon
from navshell.navigable_item import NavigableItem, SubButton
from navshell.placement import Placement, anchored
from navshell.popup import PopupController, PopupState
from navshell.virtual_list import VirtualizedList, compute_page_size
from navshell.window_manager import HostWindowManager

logger = logging.getLogger(__name__)

ICON_SIZE = 36

STYLES = {
    "title": "background: transparent; color: #ffffff; font-size: 13px; font-weight: 600;",
    "message": "background: transparent; color: #c9ccd6; font-size: 12px;",
    "time": "background: transparent; color: #7d8290; font-size: 10px;",
    "header": "background: transparent; color: #e6e6eb; font-size: 14px; font-weight: 600;",
    "count": "background: transparent; color: #7d8290; font-size: 12px;",
}


def format_message(text: str, length: int) -> str:
    """Collapse whitespace onto one line and cut at ``length`` characters."""
    if not text:
        return ""
    text = re.sub(r"\s+", " ", text).strip()
    if len(text) > length:
        return text[:length] + "..."
    return text


def format_timestamp(timestamp: float) -> str:
    """12-hour clock time without a leading zero, e.g. ``9:05 PM``."""
    return time.strftime("%I:%M %p", time.localtime(timestamp)).lstrip("0")


@dataclass(eq=False)
class Notification:
    title: str = ""
    text: str = ""
    icon: str = ""
    app: str = ""
    timestamp: float = field(default_factory=time.time)
    # Bus id, 0 for notifications posted in-process.
    id: int = 0


class NotificationHistory:
    """Newest-first store; listeners hear about every change."""

    def __init__(self, max_items: int = 100):
        self.max_items = max(1, max_items)
        self._items: List[Notification] = []
        self._listeners: List[Callable[[], None]] = []

    def add_listener(self, callback: Callable[[], None]) -> None:
        self._listeners.append(callback)

    def add(self, notification: Notification) -> Notification:
        self._items.insert(0, notification)
        del self._items[self.max_items:]
        self._notify()
        return notification

    def remove(self, notification: Notification) -> bool:
        for i, item in enumerate(self._items):
            if item is notification:
                del self._items[i]
                self._notify()
                return True
        return False

    def find(self, notification_id: int) -> Optional[Notification]:
        if not notification_id:
            return None
        for item in self._items:
            if item.id == notification_id:
                return item
        return None

    def clear(self) -> None:
        if not self._items:
            return
        self._items = []
        self._notify()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Notification]:
        return iter(list(self._items))

    def __getitem__(self, index: int) -> Notification:
        return self._items[index]

    def _notify(self) -> None:
        for callback in list(self._listeners):
            try:
                callback()
            except Exception:
                logger.exception("Notification history listener failed")


class NotificationItem(NavigableItem):
    def __init__(self, notification: Notification, config: NotificationConfig,
                 on_open: Optional[Callable[[Notification], None]] = None,
                 on_dismiss: Optional[Callable[[Notification], None]] = None,
                 on_dismiss_hover: Optional[Callable[[], None]] = None,
                 parent=None):
        super().__init__(data=notification, on_click=on_open, parent=parent)
        self.notification = notification

        row = QWidget()
        row.setStyleSheet("background: transparent;")
        layout = QHBoxLayout(row)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(10)

        icon = QLabel()
        icon.setFixedSize(ICON_SIZE, ICON_SIZE)
        icon.setPixmap(load_icon(notification.icon, ICON_SIZE, notification.app or notification.title))
        layout.addWidget(icon)

        text = QVBoxLayout()
        text.setSpacing(0)
        title = QLabel(format_message(notification.title, config.title_length))
        title.setStyleSheet(STYLES["title"])
        text.addWidget(title)

        line = QHBoxLayout()
        message = QLabel(format_message(notification.text, config.message_length))
        message.setStyleSheet(STYLES["message"])
        line.addWidget(message, 1)
        stamp = QLabel(format_timestamp(notification.timestamp))
        stamp.setStyleSheet(STYLES["time"])
        line.addWidget(stamp)
        text.addLayout(line)
        layout.addLayout(text, 1)

        self.dismiss_button = SubButton(
            "Dismiss",
            on_click=lambda: on_dismiss(notification) if on_dismiss is not None else None,
            on_hover=on_dismiss_hover,
        )
        layout.addWidget(self.dismiss_button)
        self.set_content(row)
        self.set_dismiss_focused(False)

    def set_dismiss_focused(self, focused: bool) -> None:
        self.dismiss_button.set_focused(focused)
        self._sync_dismiss()

    def on_focus(self) -> None:
        super().on_focus()
        self._sync_dismiss()

    def on_unfocus(self) -> None:
        self.dismiss_button.set_focused(False)
        super().on_unfocus()
        self._sync_dismiss()

    def _sync_dismiss(self) -> None:
        self.dismiss_button.setVisible(self.is_focused)


class NotificationCenter(PopupController):
    name = "notifications"

    def __init__(self, host: HostWindowManager, history: Optional[NotificationHistory] = None,
                 config: Optional[NotificationConfig] = None,
                 popup_config: Optional[PopupConfig] = None,
                 placement: Optional[Placement] = None,
                 schedule: Optional[Callable[[int, Callable[[], None]], None]] = None,
                 on_open: Optional[Callable[[Notification], None]] = None):
        self.notification_config = config or NotificationConfig()
        super().__init__(host, popup_config,
                         placement=placement or anchored(self.notification_config.position),
                         schedule=schedule)
        if history is None:
            history = NotificationHistory(self.notification_config.max_history)
        self.history = history
        self.on_open = on_open
        self.dismiss_focused = False
        self.list_view: Optional[VirtualizedList] = None
        self.count_label: Optional[QLabel] = None
        history.add_listener(self._on_history_change)

    # ------------------------------------------------------------------ build

    def on_init(self) -> None:
        cfg = self.notification_config
        root = QWidget()
        root.setStyleSheet("background: transparent;")
        root.setFixedWidth(cfg.width)
        layout = QVBoxLayout(root)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(8)

        header = QHBoxLayout()
        title = QLabel("Notifications")
        title.setStyleSheet(STYLES["header"])
        header.addWidget(title)
        self.count_label = QLabel()
        self.count_label.setStyleSheet(STYLES["count"])
        header.addWidget(self.count_label, 1)
        self.clear_button = SubButton("Clear all", on_click=self.clear_all)
        header.addWidget(self.clear_button)
        layout.addLayout(header)

        pitch = cfg.item_height + cfg.item_spacing
        self.list_view = VirtualizedList(
            self.registry,
            self._create_item,
            on_item_select=lambda notification, _index: self.open(notification),
            on_item_focus=self._on_item_focus,
            page_size=compute_page_size(cfg.list_height + cfg.item_spacing, pitch),
            item_height=cfg.item_height,
            item_spacing=cfg.item_spacing,
            wrap=self.config.wrap_navigation,
            hover_resync_ms=self.config.hover_resync_ms,
            schedule=self.schedule,
            is_active=lambda: self.state is PopupState.VISIBLE,
        )
        self.list_view.setFixedHeight(cfg.list_height)
        layout.addWidget(self.list_view)
        self.surface.set_content(root)

    def show(self) -> None:
        if not len(self.history):
            logger.debug("No notifications to show")
            return
        super().show()

    def create_content(self) -> None:
        reopening = self.state is PopupState.HIDDEN
        if reopening:
            self.dismiss_focused = False
        self.list_view.set_data(list(self.history), keep_position=not reopening)
        self._sync_rows()
        self._update_count()
        return None

    def _create_item(self, notification: Notification, index: int) -> NotificationItem:
        return NotificationItem(
            notification,
            self.notification_config,
            on_open=self.open,
            on_dismiss=self._clicked_dismiss,
            on_dismiss_hover=lambda i=index: self._hover_dismiss(i),
        )

    def _update_count(self) -> None:
        if self.count_label is not None:
            self.count_label.setText(str(len(self.history)))

    # ------------------------------------------------------------------ focus

    def reset_selection(self) -> None:
        self.dismiss_focused = False
        if self.list_view.get_count():
            self.list_view.focus_item(1)

    def clear_selection(self) -> None:
        self.dismiss_focused = False
        self.list_view.blur()

    def _on_item_focus(self, _notification: Notification, _index: int) -> None:
        self.dismiss_focused = False
        self._sync_rows()

    def _hover_dismiss(self, index: int) -> None:
        if self.state is not PopupState.VISIBLE:
            return
        self.list_view.focus_item(index)
        self.set_dismiss_focused(True)

    def set_dismiss_focused(self, focused: bool) -> None:
        self.dismiss_focused = focused and bool(self.list_view.get_focused_index())
        self._sync_rows()

    def _sync_rows(self) -> None:
        focused = self.list_view.get_focused_index()
        for index, item in self.list_view.rendered_items():
            item.set_dismiss_focused(self.dismiss_focused and index == focused)

    # --------------------------------------------------------------- keyboard

    def handle_key(self, modifiers: Set[str], key: str) -> bool:
        view = self.list_view
        if key == "Escape":
            self.hide()
        elif key == "Down" or (key == "Tab" and "Shift" not in modifiers):
            view.navigate_next()
        elif key == "Up" or key == "Tab":
            view.navigate_prev()
        elif key == "Prior":
            view.focus_item(max(1, view.get_focused_index() - view.page_size))
        elif key == "Next":
            view.focus_item(min(view.get_count(), view.get_focused_index() + view.page_size))
        elif key == "Home":
            view.focus_item(1)
        elif key == "End":
            view.focus_item(view.get_count())
        elif key == "Right":
            self.set_dismiss_focused(True)
        elif key == "Left":
            self.set_dismiss_focused(False)
        elif key == "Delete":
            self._dismiss_focused()
        elif key == "Return":
            if self.dismiss_focused:
                self._dismiss_focused()
            else:
                view.select_current()
        else:
            return False
        return True

    # ---------------------------------------------------------------- actions

    def open(self, notification: Notification) -> None:
        """Hand the notification to its owner, then drop it from the history."""
        logger.info(f"Opening notification {notification.title!r}")
        self.hide()
        if self.on_open is not None:
            try:
                self.on_open(notification)
            except Exception:
                logger.exception(f"Opening notification {notification.title!r} failed")
        self.history.remove(notification)

    def dismiss(self, notification: Notification) -> None:
        if self.history.remove(notification):
            logger.debug(f"Dismissed notification {notification.title!r}")

    def _dismiss_focused(self) -> None:
        notification = self.list_view.get_focused_data()
        if notification is not None:
            self.dismiss(notification)

    def _clicked_dismiss(self, notification: Notification) -> None:
        self.dismiss(notification)
        if self.state is PopupState.VISIBLE:
            # The next row slid under a pointer that did not move.
            self.list_view.schedule_hover_resync()

    def clear_all(self) -> None:
        logger.info(f"Clearing {len(self.history)} notifications")
        self.history.clear()

    def _on_history_change(self) -> None:
        self._update_count()
        if self.state is PopupState.HIDDEN:
            return
        if not len(self.history):
            self.hide()
            return
        self.refresh()

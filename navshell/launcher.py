"""
Application launcher: pinned row, text filter and a virtualized catalog list.

Keyboard focus moves over two zones. The pinned row is horizontal, the
catalog list vertical, and each catalog row has two nested sub-controls
(pin toggle and info) reached with Left/Right.
"""
import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, List, Optional, Set

from PyQt6.QtWidgets import QHBoxLayout, QVBoxLayout, QWidget

from navshell.actions import execute_action
from navshell.catalog import ApplicationCatalog, CatalogEntry, filter_entries
from navshell.config import LauncherConfig, PopupConfig
from navshell.focus import FocusRegistry
from navshell.keys import MODIFIER_KEY_NAMES
from navshell.launcher_widgets import AppEntryItem, PinnedIconItem, SubFocus
from navshell.navigable_item import hover_under_pointer
from navshell.pinned import PinnedEntry, PinnedStore
from navshell.placement import Placement, centered
from navshell.popup import PopupController, PopupState
from navshell.text_input import SearchField, TextInput
from navshell.virtual_list import VirtualizedList, compute_page_size
from navshell.window_manager import HostWindowManager

logger = logging.getLogger(__name__)

STYLES = {
    "search_input": """
        QLineEdit#searchInput {
            background-color: rgba(255, 255, 255, 0.04);
            border: 1px solid rgba(255, 255, 255, 0.08);
            border-radius: 8px;
            color: #e6e6eb;
            font-size: 16px;
            font-weight: 500;
            padding: 6px 10px;
            selection-background-color: rgba(94, 156, 255, 0.3);
        }
    """,
    "transparent": "background: transparent;",
}

SUBFOCUS_ORDER = (SubFocus.NONE, SubFocus.PIN_TOGGLE, SubFocus.INFO_ACTION)


class Zone(Enum):
    PINNED_ROW = auto()
    LIST_ROW = auto()


@dataclass
class FocusCursor:
    zone: Zone = Zone.LIST_ROW
    index: int = 0
    subfocus: SubFocus = SubFocus.NONE


class PinnedDrag:
    """Pointer drag over the pinned row, in screen x coordinates."""

    def __init__(self, cell_width: int):
        self.cell_width = cell_width
        self.index = 0
        self.origin_x: Optional[int] = None
        self.dragged = False

    @property
    def active(self) -> bool:
        return self.origin_x is not None

    def press(self, index: int, x: int) -> None:
        self.index = index
        self.origin_x = x
        self.dragged = False

    def move(self, x: int) -> int:
        """Direction to swap in (-1/+1) once the pointer crossed a cell, else 0."""
        if self.origin_x is None:
            return 0
        dx = x - self.origin_x
        if abs(dx) <= self.cell_width:
            return 0
        self.origin_x = x
        self.dragged = True
        return 1 if dx > 0 else -1

    def release(self) -> bool:
        """End the gesture; True when it was a plain click."""
        click = self.active and not self.dragged
        self.cancel()
        return click

    def cancel(self) -> None:
        self.origin_x = None
        self.dragged = False


class Launcher(PopupController):
    name = "launcher"

    def __init__(self, host: HostWindowManager, catalog: ApplicationCatalog,
                 config: Optional[LauncherConfig] = None,
                 popup_config: Optional[PopupConfig] = None,
                 store: Optional[PinnedStore] = None,
                 placement: Placement = centered,
                 schedule: Optional[Callable[[int, Callable[[], None]], None]] = None,
                 run_action: Optional[Callable[[dict], None]] = None):
        super().__init__(host, popup_config, placement=placement, schedule=schedule)
        self.catalog = catalog
        self.launcher_config = config or LauncherConfig()
        cfg = self.launcher_config

        if store is None:
            store = PinnedStore(cfg.pinned_path, cfg.max_pinned)
            store.load()
        self.store = store
        self.run_action = run_action or execute_action

        self.pinned_registry = FocusRegistry(wrap=False)
        self.search = TextInput(on_change=self._on_filter_change, disable_arrows=True)
        self.cursor = FocusCursor()
        self.drag = PinnedDrag(cfg.pin_cell_width)
        self.secondary_mode = False

        self.entries: List[CatalogEntry] = []
        self.filtered: List[CatalogEntry] = []
        self.list_view: Optional[VirtualizedList] = None
        self.search_field: Optional[SearchField] = None
        self.pinned_row: Optional[QWidget] = None
        self.pinned_items: List[PinnedIconItem] = []

        self._secondary_keys = MODIFIER_KEY_NAMES.get(cfg.secondary_modifier, ())
        self._press_modifiers: Set[str] = set()
        self._syncing = False

    # ══════════════════════════════════════════════════════════════════════
    # BUILD
    # ══════════════════════════════════════════════════════════════════════

    def on_init(self) -> None:
        self.surface.set_content(self._build())

    def _build(self) -> QWidget:
        cfg = self.launcher_config
        root = QWidget()
        root.setObjectName("launcherRoot")
        root.setStyleSheet(STYLES["transparent"])
        root.setFixedWidth(cfg.width)

        layout = QVBoxLayout(root)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(10)

        self.search_field = SearchField()
        self.search_field.setStyleSheet(STYLES["search_input"])
        layout.addWidget(self.search_field)

        self.pinned_row = QWidget()
        self.pinned_row.setStyleSheet(STYLES["transparent"])
        self.pinned_layout = QHBoxLayout(self.pinned_row)
        self.pinned_layout.setContentsMargins(0, 0, 0, 0)
        self.pinned_layout.setSpacing(6)
        self.pinned_layout.addStretch()
        self.pinned_row.setVisible(False)
        layout.addWidget(self.pinned_row)

        pitch = cfg.item_height + cfg.item_spacing
        self.list_view = VirtualizedList(
            self.registry,
            self._create_list_item,
            on_item_select=lambda entry, _index: self.launch(entry.launch_command),
            page_size=compute_page_size(cfg.list_height + cfg.item_spacing, pitch),
            item_height=cfg.item_height,
            item_spacing=cfg.item_spacing,
            scroll_step=cfg.scroll_step,
            wrap=cfg.wrap_navigation,
            hover_resync_ms=self.config.hover_resync_ms,
            schedule=self.schedule,
            is_active=lambda: self.state is PopupState.VISIBLE,
        )
        self.list_view.setFixedHeight(cfg.list_height)
        layout.addWidget(self.list_view)

        self.registry.add_listener(self._on_list_focus)
        self.pinned_registry.add_listener(self._on_pinned_focus)
        return root

    def create_content(self) -> None:
        # The catalog is re-read on every show so new installs appear.
        self.entries = list(self.catalog.entries())
        self.filtered = list(self.entries)
        self.search.set_text("", notify=False)
        self.search_field.sync(self.search)
        self.secondary_mode = False
        self.drag.cancel()
        self.cursor = FocusCursor()
        self._rebuild_pinned_row()
        self.list_view.set_data(self.filtered)
        logger.debug(f"Launcher loaded {len(self.entries)} entries, {len(self.store)} pinned")
        return None

    def _create_list_item(self, entry: CatalogEntry, index: int) -> AppEntryItem:
        item = AppEntryItem(
            entry,
            pinned=self.store.is_pinned(entry.display_name),
            on_launch=self._on_entry_click,
            on_toggle_pin=self._clicked_toggle_pin,
            on_info=self.show_info,
            on_subfocus=lambda sub, i=index: self._hover_subfocus(i, sub),
        )
        if self.cursor.zone is Zone.LIST_ROW and self.cursor.index == index:
            item.set_subfocus(self.cursor.subfocus)
        item.set_secondary(self.secondary_mode)
        return item

    def _rebuild_pinned_row(self) -> None:
        cell = self.launcher_config.pin_cell_width
        self.pinned_registry.clear()
        for item in self.pinned_items:
            self.pinned_layout.removeWidget(item)
            item.hide()
            item.setParent(None)
            item.deleteLater()
        self.pinned_items = []

        for i, entry in enumerate(self.store.entries, start=1):
            item = PinnedIconItem(
                entry, i,
                on_press=self.pin_drag_press,
                on_drag=self.pin_drag_move,
                on_release=self.pin_drag_release,
                on_unpin=self._clicked_unpin,
            )
            item.setFixedSize(cell, cell)
            item.set_secondary(self.secondary_mode)
            self.pinned_layout.insertWidget(i - 1, item)
            self.pinned_items.append(item)
            self.pinned_registry.register(item, None, lambda _data, index: self._launch_pinned(index, set()))
        self.pinned_row.setVisible(bool(self.pinned_items))

    def _sync_pinned_row(self) -> None:
        """Show the store's order; swaps keep the widgets so a drag survives."""
        if len(self.pinned_items) != len(self.store):
            self._rebuild_pinned_row()
            return
        for item, entry in zip(self.pinned_items, self.store.entries):
            item.set_entry(entry)

    # ══════════════════════════════════════════════════════════════════════
    # FOCUS CURSOR
    # ══════════════════════════════════════════════════════════════════════

    def reset_selection(self) -> None:
        if len(self.store):
            self.cursor = FocusCursor(Zone.PINNED_ROW, 1)
        else:
            self.cursor = FocusCursor(Zone.LIST_ROW, 1 if self.filtered else 0)
        self._apply_cursor()

    def clear_selection(self) -> None:
        self.cursor = FocusCursor()
        self.secondary_mode = False
        self.drag.cancel()
        self._syncing = True
        try:
            self.list_view.blur()
            self.pinned_registry.blur()
        finally:
            self._syncing = False

    def set_cursor(self, zone: Zone, index: int, subfocus: SubFocus = SubFocus.NONE) -> None:
        self.cursor = FocusCursor(zone, index, subfocus)
        self._apply_cursor()

    def _apply_cursor(self) -> None:
        cursor = self.cursor
        self._syncing = True
        try:
            if cursor.zone is Zone.PINNED_ROW:
                self.list_view.blur()
                self.pinned_registry.focus(cursor.index)
            else:
                self.pinned_registry.blur()
                if cursor.index:
                    self.list_view.focus_item(cursor.index)
                else:
                    self.list_view.blur()
        finally:
            self._syncing = False
        self._refresh_item_states()

    def _refresh_item_states(self) -> None:
        for index, item in self.list_view.rendered_items():
            if self.cursor.zone is Zone.LIST_ROW and self.cursor.index == index:
                item.set_subfocus(self.cursor.subfocus)
            else:
                item.set_subfocus(SubFocus.NONE)
            item.set_secondary(self.secondary_mode)
        for item in self.pinned_items:
            item.set_secondary(self.secondary_mode)

    def _on_list_focus(self, local: int) -> None:
        if self._syncing or local == 0:
            return
        index = self.list_view.get_focused_index()
        if not index:
            return
        if self.cursor.zone is Zone.LIST_ROW and self.cursor.index == index:
            return
        self.cursor = FocusCursor(Zone.LIST_ROW, index)
        self._syncing = True
        try:
            self.pinned_registry.blur()
        finally:
            self._syncing = False
        self._refresh_item_states()

    def _on_pinned_focus(self, index: int) -> None:
        if self._syncing or index == 0:
            return
        if self.cursor.zone is Zone.PINNED_ROW and self.cursor.index == index:
            return
        self.cursor = FocusCursor(Zone.PINNED_ROW, index)
        self._syncing = True
        try:
            self.list_view.blur()
        finally:
            self._syncing = False
        self._refresh_item_states()

    def _hover_subfocus(self, index: int, subfocus: SubFocus) -> None:
        if self.state is not PopupState.VISIBLE:
            return
        self.set_cursor(Zone.LIST_ROW, index, subfocus)

    def set_secondary_mode(self, active: bool) -> None:
        if active == self.secondary_mode:
            return
        self.secondary_mode = active
        logger.debug(f"Secondary mode {'on' if active else 'off'}")
        self._refresh_item_states()

    # ══════════════════════════════════════════════════════════════════════
    # KEYBOARD
    # ══════════════════════════════════════════════════════════════════════

    def handle_key(self, modifiers: Set[str], key: str) -> bool:
        if key in self._secondary_keys:
            self.set_secondary_mode(True)
            return True

        if key == "Escape":
            self.hide()
        elif key == "Up":
            self._move_vertical(-1)
        elif key == "Down":
            self._move_vertical(1)
        elif key in ("Left", "Right"):
            direction = -1 if key == "Left" else 1
            if self.cursor.zone is Zone.PINNED_ROW:
                if self.launcher_config.reorder_modifier in modifiers:
                    self.move_pinned(self.cursor.index, direction)
                else:
                    self._move_pinned_focus(direction)
            else:
                self._move_subfocus(direction)
        elif key == "Tab":
            self._tab("Shift" in modifiers)
        elif key == "Prior":
            self._move_vertical(-self.list_view.page_size)
        elif key == "Next":
            self._move_vertical(self.list_view.page_size)
        elif key == "Home":
            self._jump(first=True)
        elif key == "End":
            self._jump(first=False)
        elif key == "Return":
            self.activate(modifiers)
        elif self.search.handle_key(modifiers, key):
            self.search_field.sync(self.search)
        else:
            return False
        return True

    def handle_key_release(self, modifiers: Set[str], key: str) -> None:
        if key in self._secondary_keys:
            self.set_secondary_mode(False)

    def _move_vertical(self, step: int) -> None:
        cursor = self.cursor
        count = len(self.filtered)

        if cursor.zone is Zone.PINNED_ROW:
            if step > 0 and count:
                self.set_cursor(Zone.LIST_ROW, 1)
            return

        if not count:
            return
        if step < 0 and cursor.index <= 1 and len(self.store):
            self.set_cursor(Zone.PINNED_ROW, 1)
            return

        index = cursor.index + step
        if index > count:
            index = 1 if self.launcher_config.wrap_navigation and abs(step) == 1 else count
        elif index < 1:
            index = count if self.launcher_config.wrap_navigation and abs(step) == 1 else 1
        self.set_cursor(Zone.LIST_ROW, index)

    def _move_pinned_focus(self, direction: int) -> None:
        index = self.cursor.index + direction
        if 1 <= index <= len(self.store):
            self.set_cursor(Zone.PINNED_ROW, index)

    def _move_subfocus(self, direction: int) -> None:
        if not self.cursor.index:
            return
        # Clamped at both ends: Right stops at the info action.
        position = SUBFOCUS_ORDER.index(self.cursor.subfocus) + direction
        position = max(0, min(len(SUBFOCUS_ORDER) - 1, position))
        self.set_cursor(Zone.LIST_ROW, self.cursor.index, SUBFOCUS_ORDER[position])

    def _tab(self, backwards: bool) -> None:
        if self.cursor.zone is Zone.PINNED_ROW:
            count = len(self.store)
            if not count:
                return
            index = self.cursor.index + (-1 if backwards else 1)
            if index > count:
                index = 1
            elif index < 1:
                index = count
            self.set_cursor(Zone.PINNED_ROW, index)
        else:
            self._move_vertical(-1 if backwards else 1)

    def _jump(self, first: bool) -> None:
        if self.cursor.zone is Zone.PINNED_ROW:
            self.set_cursor(Zone.PINNED_ROW, 1 if first else len(self.store))
        elif self.filtered:
            self.set_cursor(Zone.LIST_ROW, 1 if first else len(self.filtered))

    # ══════════════════════════════════════════════════════════════════════
    # ACTIONS
    # ══════════════════════════════════════════════════════════════════════

    def activate(self, modifiers: Set[str]) -> None:
        cursor = self.cursor
        if cursor.zone is Zone.PINNED_ROW:
            self._launch_pinned(cursor.index, modifiers)
            return
        if not 1 <= cursor.index <= len(self.filtered):
            return
        entry = self.filtered[cursor.index - 1]
        if cursor.subfocus is SubFocus.PIN_TOGGLE:
            self.toggle_pin(entry)
        elif cursor.subfocus is SubFocus.INFO_ACTION:
            self.show_info(entry)
        else:
            self.launch(entry.launch_command, self._elevated(modifiers))

    def launch(self, command: str, elevated: bool = False) -> None:
        if elevated:
            action = {"type": "elevated", "value": command,
                      "template": self.launcher_config.elevate_command}
        else:
            action = {"type": "exec", "value": command}
        logger.info(f"Launching {command!r}{' elevated' if elevated else ''}")
        try:
            self.run_action(action)
        except Exception as e:
            logger.error(f"Launch of {command!r} failed: {e}")
        self.hide()

    def _elevated(self, modifiers: Set[str]) -> bool:
        return self.launcher_config.secondary_modifier in modifiers

    def _on_entry_click(self, entry: CatalogEntry, modifiers: Set[str]) -> None:
        self.launch(entry.launch_command, self._elevated(modifiers))

    def _launch_pinned(self, index: int, modifiers: Set[str]) -> None:
        if 1 <= index <= len(self.store):
            self.launch(self.store[index - 1].exec, self._elevated(modifiers))

    def show_info(self, entry: CatalogEntry) -> None:
        try:
            self.run_action({"type": "info", "value": entry.source_path})
        except Exception as e:
            logger.error(f"Info action for {entry.display_name} failed: {e}")

    def toggle_pin(self, entry: CatalogEntry) -> bool:
        pinned = self.store.toggle(PinnedEntry(
            name=entry.display_name,
            exec=entry.launch_command,
            icon=entry.icon_path or "",
        ))
        self._after_pinned_change()
        return pinned

    def unpin_at(self, index: int) -> None:
        """Drop the pinned entry at 1-based ``index``."""
        if self.store.unpin_at(index - 1) is None:
            return
        self._after_pinned_change()

    def _clicked_toggle_pin(self, entry: CatalogEntry) -> None:
        self.toggle_pin(entry)
        # Rows may have shifted under a pointer that did not move.
        self.list_view.schedule_hover_resync()

    def _clicked_unpin(self, index: int) -> None:
        self.unpin_at(index)
        self.schedule(self.config.hover_resync_ms, self._resync_pinned_hover)

    def _resync_pinned_hover(self) -> None:
        if self.state is PopupState.VISIBLE and self.pinned_items:
            hover_under_pointer(self.pinned_row)

    def _after_pinned_change(self) -> None:
        self._rebuild_pinned_row()
        if self.cursor.zone is Zone.PINNED_ROW:
            if len(self.store):
                self.cursor.index = min(self.cursor.index, len(self.store))
            else:
                self.cursor = FocusCursor(Zone.LIST_ROW, 1 if self.filtered else 0)
        # Pin labels changed on the rendered rows.
        self._syncing = True
        try:
            self.list_view.refresh()
        finally:
            self._syncing = False
        self._apply_cursor()

    def move_pinned(self, index: int, direction: int) -> int:
        """Swap pinned entry ``index`` (1-based) with its neighbour; focus follows."""
        new_index = self.store.move(index - 1, direction) + 1
        if new_index != index:
            self._sync_pinned_row()
            self.set_cursor(Zone.PINNED_ROW, new_index)
        return new_index

    # ------------------------------------------------------------ pointer drag

    def pin_drag_press(self, index: int, x: int, modifiers: Optional[Set[str]] = None) -> None:
        self._press_modifiers = set(modifiers or ())
        self.drag.press(index, x)
        self.set_cursor(Zone.PINNED_ROW, index)

    def pin_drag_move(self, x: int) -> None:
        direction = self.drag.move(x)
        if direction:
            self.drag.index = self.move_pinned(self.drag.index, direction)

    def pin_drag_release(self) -> None:
        index = self.drag.index
        if self.drag.release():
            self._launch_pinned(index, self._press_modifiers)

    # ------------------------------------------------------------------ filter

    def _on_filter_change(self, text: str) -> None:
        self.filtered = filter_entries(self.entries, text)
        self.list_view.set_data(self.filtered)
        self.set_cursor(Zone.LIST_ROW, 1 if self.filtered else 0)
        if self.search_field is not None:
            self.search_field.sync(self.search)

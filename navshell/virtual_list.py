"""
Virtualized list: holds the full backing array, renders one page of it.

Every render pass rebuilds the focus registry from scratch, so the only
focus state that survives scrolling or filtering is the remembered global
index kept in ``ListWindow.focused``.
"""
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from PyQt6.QtCore import QTimer
from PyQt6.QtWidgets import QSizePolicy, QVBoxLayout, QWidget

from navshell.focus import FocusRegistry
from navshell.navigable_item import NavigableItem, hover_under_pointer, invoke

logger = logging.getLogger(__name__)

Schedule = Callable[[int, Callable[[], None]], None]
ItemFactory = Callable[[Any, int], Optional[NavigableItem]]


def compute_page_size(container_height: int, item_height: int, fixed_chrome: int = 0) -> int:
    """How many rows fit; always at least one."""
    if item_height <= 0:
        return 1
    return max(1, (container_height - fixed_chrome) // item_height)


class ListWindow:
    """Scroll window over a data array. Indices are 1-based, 0 = none."""

    def __init__(self, page_size: int = 10):
        self.data: List[Any] = []
        self.start = 1
        self.focused = 0
        self.page_size = max(1, page_size)

    @property
    def count(self) -> int:
        return len(self.data)

    @property
    def max_start(self) -> int:
        return max(1, self.count - self.page_size + 1)

    @property
    def end(self) -> int:
        return min(self.start + self.page_size - 1, self.count)

    def visible_range(self) -> range:
        return range(self.start, self.end + 1)

    def set_data(self, data: Sequence[Any]) -> None:
        self.data = list(data)
        self.start = 1
        self.focused = 0

    def set_page_size(self, page_size: int) -> bool:
        page_size = max(1, page_size)
        if page_size == self.page_size:
            return False
        self.page_size = page_size
        self.start = min(self.start, self.max_start)
        return True

    def scroll(self, step: int) -> bool:
        start = max(1, min(self.max_start, self.start + step))
        if start == self.start:
            return False
        self.start = start
        return True

    def ensure_visible(self, index: int) -> bool:
        if index < 1 or index > self.count:
            return False
        if index < self.start:
            self.start = index
            return True
        if index >= self.start + self.page_size:
            self.start = index - self.page_size + 1
            return True
        return False


class VirtualizedList(QWidget):

    def __init__(self, registry: FocusRegistry, create_item: ItemFactory,
                 on_item_select: Optional[Callable[[Any, int], None]] = None,
                 on_item_focus: Optional[Callable[[Any, int], None]] = None,
                 on_scroll: Optional[Callable[[int, int], None]] = None,
                 page_size: Optional[int] = None,
                 item_height: int = 44,
                 item_spacing: int = 4,
                 fixed_chrome: int = 0,
                 scroll_step: int = 1,
                 wrap: bool = False,
                 hover_resync_ms: int = 10,
                 schedule: Optional[Schedule] = None,
                 is_active: Optional[Callable[[], bool]] = None,
                 parent=None):
        super().__init__(parent)
        self.registry = registry
        self.create_item = create_item
        self.on_item_select = on_item_select
        self.on_item_focus = on_item_focus
        self.on_scroll = on_scroll
        self.item_height = item_height
        self.item_spacing = item_spacing
        self.fixed_chrome = fixed_chrome
        self.scroll_step = scroll_step
        self.wrap = wrap
        self.hover_resync_ms = hover_resync_ms
        self.schedule = schedule or QTimer.singleShot
        self.is_active = is_active or self.isVisible

        self._auto_page = page_size is None
        self.window = ListWindow(page_size or 10)
        self._rendered: List[Tuple[int, NavigableItem]] = []
        self._local_to_global: Dict[int, int] = {}
        self._rendering = False

        self._layout = QVBoxLayout(self)
        self._layout.setContentsMargins(0, 0, 0, 0)
        self._layout.setSpacing(item_spacing)
        self._layout.addStretch()
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)

        registry.add_listener(self._on_registry_focus)

    # ================================================================== data

    def set_data(self, data: Sequence[Any], keep_position: bool = False) -> None:
        """Replace the backing array.

        With ``keep_position`` the scroll offset and focused index survive,
        clamped to the new length; otherwise both start over.
        """
        start, focused = self.window.start, self.window.focused
        self.window.set_data(data)
        if keep_position:
            self.window.start = min(start, self.window.max_start)
            self.window.focused = min(focused, self.window.count)
        self.refresh()

    def get_count(self) -> int:
        return self.window.count

    @property
    def start(self) -> int:
        return self.window.start

    @property
    def page_size(self) -> int:
        return self.window.page_size

    def visible_data(self) -> List[Any]:
        return [self.window.data[i - 1] for i in self.window.visible_range()]

    def rendered_items(self) -> List[Tuple[int, NavigableItem]]:
        return list(self._rendered)

    def item_for(self, index: int) -> Optional[NavigableItem]:
        for global_index, item in self._rendered:
            if global_index == index:
                return item
        return None

    def get_focused_index(self) -> int:
        return self.window.focused

    def get_focused_data(self) -> Any:
        if 1 <= self.window.focused <= self.window.count:
            return self.window.data[self.window.focused - 1]
        return None

    # ============================================================= geometry

    def set_container_height(self, height: int) -> None:
        if not self._auto_page:
            return
        pitch = self.item_height + self.item_spacing
        if self.window.set_page_size(compute_page_size(height + self.item_spacing, pitch, self.fixed_chrome)):
            logger.debug(f"Page size now {self.window.page_size}")
            self.refresh()

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self.set_container_height(event.size().height())

    # ============================================================= scrolling

    def scroll_up(self, step: Optional[int] = None) -> None:
        self._scroll(-(step or self.scroll_step))

    def scroll_down(self, step: Optional[int] = None) -> None:
        self._scroll(step or self.scroll_step)

    def _scroll(self, step: int) -> None:
        if self.window.scroll(step):
            self.refresh()
            invoke(self.on_scroll, self.window.start, self.window.page_size, what="Scroll listener")

    def ensure_visible(self, index: int) -> None:
        if self.window.ensure_visible(index):
            self.refresh()

    def wheelEvent(self, event):
        delta = event.angleDelta().y()
        if delta > 0:
            self.scroll_up()
        elif delta < 0:
            self.scroll_down()
        event.accept()
        self.schedule_hover_resync()

    def schedule_hover_resync(self) -> None:
        """Re-hover the row under a still pointer once a re-render has landed."""
        self.schedule(self.hover_resync_ms, self.resync_hover)

    def resync_hover(self) -> None:
        if not self.is_active():
            return
        hover_under_pointer(self)

    # ================================================================= focus

    def focus_item(self, index: int) -> None:
        if index < 1 or index > self.window.count:
            return
        self.ensure_visible(index)
        self.window.focused = index
        local = self._global_to_local(index)
        if local:
            self.registry.focus(local)

    def navigate_next(self) -> None:
        if not self.window.count:
            return
        index = self.window.focused + 1
        if index > self.window.count:
            index = 1 if self.wrap else self.window.count
        self.focus_item(index)

    def navigate_prev(self) -> None:
        if not self.window.count:
            return
        index = self.window.focused - 1
        if index < 1:
            index = self.window.count if self.wrap else 1
        self.focus_item(index)

    def blur(self) -> None:
        self.window.focused = 0
        self.registry.blur()

    def select_current(self) -> None:
        data = self.get_focused_data()
        if data is not None:
            self._commit(data, self.window.focused)

    def _commit(self, data: Any, index: int) -> None:
        if self.on_item_select is None:
            return
        try:
            self.on_item_select(data, index)
        except Exception:
            logger.exception(f"Selecting list item {index} failed")

    def _global_to_local(self, index: int) -> int:
        for local, global_index in self._local_to_global.items():
            if global_index == index:
                return local
        return 0

    def _on_registry_focus(self, local: int) -> None:
        if self._rendering:
            return
        if local == 0:
            self.window.focused = 0
            return
        index = self._local_to_global.get(local)
        if index is None:
            return
        self.window.focused = index
        invoke(self.on_item_focus, self.window.data[index - 1], index, what="Item focus listener")

    # ================================================================ render

    def refresh(self) -> None:
        self._rendering = True
        try:
            self._render_visible_items()
        finally:
            self._rendering = False

    def _clear_rendered(self) -> None:
        self.registry.clear()
        self._rendered = []
        self._local_to_global = {}
        while self._layout.count() > 1:  # keep the stretch
            widget = self._layout.takeAt(0).widget()
            if widget is not None:
                widget.hide()
                widget.setParent(None)
                widget.deleteLater()

    def _render_visible_items(self) -> None:
        self._clear_rendered()
        for i in self.window.visible_range():
            data = self.window.data[i - 1]
            try:
                item = self.create_item(data, i)
            except Exception:
                logger.exception(f"Building list item {i} failed")
                continue
            if item is None:
                continue

            item.setFixedHeight(self.item_height)
            self._layout.insertWidget(len(self._rendered), item)
            self._rendered.append((i, item))

            local = self.registry.register(
                item, data, lambda _data, _local, d=data, g=i: self._commit(d, g)
            )
            self._local_to_global[local] = i
            if i == self.window.focused:
                self.registry.focus(local)

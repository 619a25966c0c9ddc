"""Focus tracking for the items a popup currently renders.

The registry only ever knows about the item set of the latest render pass:
virtualized views clear it and register again every time they redraw.
Indices are 1-based, 0 meaning "nothing selected".
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Protocol

logger = logging.getLogger(__name__)

ActivateCallback = Callable[[Any, int], None]


class FocusTarget(Protocol):
    """What a registered content handle has to offer."""

    def on_focus(self) -> None: ...

    def on_unfocus(self) -> None: ...

    def bind_hover(self, callback: Callable[[], None]) -> None: ...


@dataclass
class FocusItem:
    handle: Any
    data: Any = None
    on_activate: Optional[ActivateCallback] = None
    focused: bool = False


class FocusRegistry:
    """Authoritative "currently selected item" tracker."""

    def __init__(self, wrap: bool = True):
        self.wrap = wrap
        self._items: List[FocusItem] = []
        self._current = 0
        self._listeners: List[Callable[[int], None]] = []

    # ------------------------------------------------------------------ items

    def register(self, handle: Any, data: Any = None,
                 on_activate: Optional[ActivateCallback] = None) -> int:
        self._items.append(FocusItem(handle=handle, data=data, on_activate=on_activate))
        index = len(self._items)

        bind = getattr(handle, "bind_hover", None)
        if bind is not None:
            items = self._items

            def on_hover():
                # Stale handles from a previous render pass must not steal focus.
                if self._items is items:
                    self.focus(index)

            bind(on_hover)
        return index

    def clear(self) -> None:
        self._items = []
        self._current = 0

    def __len__(self) -> int:
        return len(self._items)

    @property
    def items(self) -> List[FocusItem]:
        return list(self._items)

    @property
    def current_index(self) -> int:
        return self._current

    def focused_item(self) -> Optional[FocusItem]:
        if 1 <= self._current <= len(self._items):
            return self._items[self._current - 1]
        return None

    def add_listener(self, callback: Callable[[int], None]) -> None:
        """Call ``callback(index)`` whenever the selection changes."""
        self._listeners.append(callback)

    # ------------------------------------------------------------------ focus

    def focus(self, index: int) -> None:
        if index < 1 or index > len(self._items):
            return

        item = self._items[index - 1]
        if index == self._current and item.focused:
            return

        self._drop_current()
        self._current = index
        item.focused = True
        self._emit(item.handle, "on_focus")
        self._notify(index)

    def blur(self) -> None:
        """Drop the selection but keep the registered items."""
        if self._current == 0:
            return
        self._drop_current()
        self._current = 0
        self._notify(0)

    def reset(self) -> None:
        """Select the first item, or nothing when the set is empty."""
        if self._items:
            self.focus(1)
        else:
            self._current = 0

    def navigate_next(self) -> None:
        if not self._items:
            return
        index = self._current + 1
        if index > len(self._items):
            index = 1 if self.wrap else len(self._items)
        self.focus(index)

    def navigate_prev(self) -> None:
        if not self._items:
            return
        index = self._current - 1
        if index < 1:
            index = len(self._items) if self.wrap else 1
        self.focus(index)

    def navigate_first(self) -> None:
        self.focus(1)

    def navigate_last(self) -> None:
        self.focus(len(self._items))

    def activate_current(self) -> bool:
        item = self.focused_item()
        if item is None or item.on_activate is None:
            return False
        try:
            item.on_activate(item.data, self._current)
        except Exception:
            logger.exception(f"Activation of item {self._current} failed")
        return True

    # --------------------------------------------------------------- internal

    def _drop_current(self) -> None:
        prev = self.focused_item()
        if prev is not None and prev.focused:
            prev.focused = False
            self._emit(prev.handle, "on_unfocus")

    @staticmethod
    def _emit(handle: Any, name: str) -> None:
        method = getattr(handle, name, None)
        if method is None:
            return
        try:
            method()
        except Exception:
            logger.exception(f"{name} handler of {handle!r} failed")

    def _notify(self, index: int) -> None:
        for callback in list(self._listeners):
            try:
                callback(index)
            except Exception:
                logger.exception("Focus listener failed")

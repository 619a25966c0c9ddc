"""
Popup surface controller.

Lifecycle::

    HIDDEN --show()--> POSITIONING --settle--> VISIBLE --hide()--> HIDDEN

While POSITIONING the surface is laid out off-screen so it can reach its
natural size without flicker. One deferred callback then moves it into
place, takes the keyboard grab and resets the selection. A hide() that
lands before the callback fires turns the callback into a no-op.
"""
import logging
from enum import Enum, auto
from typing import Callable, Iterable, Optional, Set

from PyQt6.QtCore import Qt, QTimer
from PyQt6.QtGui import QColor, QPainter
from PyQt6.QtWidgets import QFrame, QVBoxLayout, QWidget

from navshell.config import PopupConfig
from navshell.focus import FocusRegistry
from navshell.keys import translate_key_event
from navshell.navigable_item import invoke
from navshell.placement import Placement, centered
from navshell.window_manager import HostWindowManager, Rect, ScreenInfo, Size

logger = logging.getLogger(__name__)

OFFSCREEN_Y = -10000

Hook = Optional[Callable[["PopupController"], None]]

STYLES = {
    "surface": """
        QFrame#popupContainer {
            background-color: rgba(20, 24, 33, 0.98);
            border: 1px solid #333333;
            border-radius: 16px;
        }
    """,
}


class PopupState(Enum):
    HIDDEN = auto()
    POSITIONING = auto()
    VISIBLE = auto()

# ══════════════════════════════════════════════════════════════════════════════
# WIDGETS
# ══════════════════════════════════════════════════════════════════════════════

class PopupSurface(QWidget):
    """Frameless, always-on-top window that forwards keys to its controller."""

    def __init__(self, controller: "PopupController", margin: int = 12):
        super().__init__()
        self.controller = controller
        self.setWindowFlags(
            Qt.WindowType.FramelessWindowHint |
            Qt.WindowType.WindowStaysOnTopHint |
            Qt.WindowType.Tool
        )
        self.setAttribute(Qt.WidgetAttribute.WA_TranslucentBackground)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)

        root = QVBoxLayout(self)
        root.setContentsMargins(0, 0, 0, 0)
        self.container = QFrame(self)
        self.container.setObjectName("popupContainer")
        self.container.setStyleSheet(STYLES["surface"])
        root.addWidget(self.container)

        self.content_layout = QVBoxLayout(self.container)
        self.content_layout.setContentsMargins(margin, margin, margin, margin)
        self.content_layout.setSpacing(0)
        self.content: Optional[QWidget] = None

    def set_content(self, widget: QWidget) -> None:
        if self.content is not None:
            self.content_layout.removeWidget(self.content)
            self.content.hide()
            self.content.setParent(None)
            self.content.deleteLater()
        self.content = widget
        self.content_layout.addWidget(widget)

    def keyPressEvent(self, event):
        self.controller.key_event(event, pressed=True)
        event.accept()

    def keyReleaseEvent(self, event):
        self.controller.key_event(event, pressed=False)
        event.accept()


class DimOverlay(QWidget):
    """Full-screen translucent layer behind a popup; a click dismisses."""

    def __init__(self, color: str = "#50000000", on_click: Optional[Callable[[], None]] = None):
        super().__init__()
        self.color = QColor(color)
        if not self.color.isValid():
            logger.warning(f"Invalid overlay color {color!r}, using default")
            self.color = QColor(0, 0, 0, 80)
        self.on_click = on_click
        self.setWindowFlags(
            Qt.WindowType.FramelessWindowHint |
            Qt.WindowType.WindowStaysOnTopHint |
            Qt.WindowType.Tool
        )
        self.setAttribute(Qt.WidgetAttribute.WA_TranslucentBackground)
        self.setAttribute(Qt.WidgetAttribute.WA_ShowWithoutActivating)

    def cover(self, area: Rect) -> None:
        self.setGeometry(*area.to_tuple())

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.fillRect(self.rect(), self.color)
        painter.end()

    def mousePressEvent(self, event):
        invoke(self.on_click, what="Overlay click")
        event.accept()


class ModalGrab:
    """Routes every key event to one surface while active.

    Only one popup may hold it at a time; callers make sure of that.
    """

    def __init__(self, widget: QWidget):
        self.widget = widget
        self.active = False

    def start(self) -> None:
        if self.active:
            return
        self.widget.grabKeyboard()
        self.active = True

    def stop(self) -> None:
        if not self.active:
            return
        self.widget.releaseKeyboard()
        self.active = False

# ══════════════════════════════════════════════════════════════════════════════
# CONTROLLER
# ══════════════════════════════════════════════════════════════════════════════

class PopupController:
    """Show/hide lifecycle, modal key handling and flicker-free placement.

    Subclasses override ``create_content`` and, where they need more than
    list-style navigation, ``handle_key``.
    """

    name = "popup"

    def __init__(self, host: HostWindowManager, config: Optional[PopupConfig] = None,
                 placement: Placement = centered,
                 schedule: Optional[Callable[[int, Callable[[], None]], None]] = None,
                 on_before_show: Hook = None, on_show: Hook = None, on_hide: Hook = None):
        self.host = host
        self.config = config or PopupConfig()
        self.placement = placement
        self.schedule = schedule or QTimer.singleShot
        self.registry = FocusRegistry(wrap=self.config.wrap_navigation)

        self.state = PopupState.HIDDEN
        self.geometry: Optional[Rect] = None
        self.surface: Optional[PopupSurface] = None
        self.overlay: Optional[DimOverlay] = None
        self.grab: Optional[ModalGrab] = None

        self._before_show_cb = on_before_show
        self._show_cb = on_show
        self._hide_cb = on_hide
        self._show_token = 0
        self._screen: Optional[ScreenInfo] = None

    # ------------------------------------------------------------- lifecycle

    def init(self) -> "PopupController":
        if self.surface is not None:
            return self
        overlay = None
        if self.config.show_overlay:
            overlay = DimOverlay(self.config.overlay_color, on_click=self.hide)
        self.overlay = overlay
        self.surface = PopupSurface(self, margin=self.config.content_margin)
        self.grab = ModalGrab(self.surface)
        try:
            self.on_init()
        except Exception:
            # Half-built: the next show() starts over.
            self.surface = self.overlay = self.grab = None
            raise
        logger.debug(f"{self.name}: initialized")
        return self

    def is_visible(self) -> bool:
        return self.state is not PopupState.HIDDEN

    def show(self) -> None:
        if self.state is not PopupState.HIDDEN:
            return

        try:
            self.init()
            self.on_before_show()
            if self.config.unfocus_clients:
                self.host.clear_focus()
            content = self.create_content()
            if content is not None:
                self.surface.set_content(content)
            screen = self.host.screen_at_pointer()
        except Exception:
            logger.exception(f"{self.name}: building content failed, staying hidden")
            if self.config.unfocus_clients:
                self.host.restore_focus_under_pointer()
            return

        if self.overlay is not None:
            self.overlay.cover(screen.geometry)
            self.overlay.show()

        # First layout pass happens off-screen.
        self.surface.adjustSize()
        self.surface.move(screen.geometry.x, OFFSCREEN_Y)
        self.surface.show()

        self._screen = screen
        self.state = PopupState.POSITIONING
        self._show_token += 1
        token = self._show_token
        self.schedule(self.config.settle_delay_ms, lambda: self._settle(token, screen))

    def _settle(self, token: int, screen: ScreenInfo) -> None:
        if token != self._show_token or self.state is not PopupState.POSITIONING:
            return
        try:
            self._place(screen)
            self.surface.raise_()
            self.surface.activateWindow()
            self.state = PopupState.VISIBLE
            self.grab.start()
            self.reset_selection()
        except Exception:
            logger.exception(f"{self.name}: settling failed")
            self.hide()
            return
        self._run_hook(self.on_show, "show hook")

    def _place(self, screen: ScreenInfo) -> None:
        size = Size(self.surface.width(), self.surface.height())
        self.geometry = self.placement(screen, size)
        self.surface.move(self.geometry.x, self.geometry.y)

    def hide(self) -> None:
        if self.state is PopupState.HIDDEN:
            return
        self.state = PopupState.HIDDEN
        self.surface.hide()
        if self.overlay is not None:
            self.overlay.hide()
        self.grab.stop()
        self.host.restore_focus_under_pointer()
        self._run_hook(self.clear_selection, "clearing selection")
        self._run_hook(self.on_hide, "hide hook")

    def toggle(self) -> None:
        if self.is_visible():
            self.hide()
        else:
            self.show()

    def refresh(self) -> None:
        """Rebuild the content of a shown popup in place, keeping it open."""
        if self.state is PopupState.HIDDEN:
            return
        try:
            content = self.create_content()
            if content is not None:
                self.surface.set_content(content)
            self.surface.adjustSize()
            if self.state is PopupState.VISIBLE:
                self._place(self._screen)
        except Exception:
            logger.exception(f"{self.name}: refresh failed, hiding")
            self.hide()

    def _run_hook(self, hook: Callable[[], None], what: str) -> None:
        try:
            hook()
        except Exception:
            logger.exception(f"{self.name}: {what} failed")

    # --------------------------------------------------------- overridables

    def create_content(self) -> Optional[QWidget]:
        return None

    def on_init(self) -> None:
        pass

    def on_before_show(self) -> None:
        if self._before_show_cb is not None:
            self._before_show_cb(self)

    def on_show(self) -> None:
        if self._show_cb is not None:
            self._show_cb(self)

    def on_hide(self) -> None:
        if self._hide_cb is not None:
            self._hide_cb(self)

    def reset_selection(self) -> None:
        self.registry.reset()

    def clear_selection(self) -> None:
        self.registry.blur()

    # -------------------------------------------------------------- keyboard

    def handle_key(self, modifiers: Set[str], key: str) -> bool:
        shift = "Shift" in modifiers

        if key == "Escape":
            self.hide()
        elif key == "Tab":
            if shift:
                self.registry.navigate_prev()
            else:
                self.registry.navigate_next()
        elif key == "Down":
            self.registry.navigate_next()
        elif key == "Up":
            self.registry.navigate_prev()
        elif key == "Home":
            self.registry.navigate_first()
        elif key == "End":
            self.registry.navigate_last()
        elif key == "Return":
            self.registry.activate_current()
        else:
            return False
        return True

    def handle_key_release(self, modifiers: Set[str], key: str) -> None:
        pass

    def process_key(self, modifiers: Iterable[str], key: str) -> bool:
        """Run a key press through the popup, passing it on if unconsumed."""
        modifiers = set(modifiers)
        try:
            handled = self.handle_key(modifiers, key)
        except Exception:
            logger.exception(f"{self.name}: key {key!r} handler failed")
            return True
        if not handled and self.config.passthrough_keys and key:
            self.host.execute_keybind(modifiers, key)
        return handled

    def process_key_release(self, modifiers: Iterable[str], key: str) -> None:
        try:
            self.handle_key_release(set(modifiers), key)
        except Exception:
            logger.exception(f"{self.name}: key release {key!r} handler failed")

    def key_event(self, event, pressed: bool = True) -> None:
        modifiers, key = translate_key_event(event)
        if pressed:
            self.process_key(modifiers, key)
        else:
            self.process_key_release(modifiers, key)

"""Power menu: a dimmed-overlay row of action buttons."""
import logging
from dataclasses import replace
from typing import Callable, Dict, Optional, Set

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QHBoxLayout, QLabel, QVBoxLayout, QWidget

from navshell.actions import execute_action
from navshell.config import PopupConfig, ShutdownConfig
from navshell.icons import load_icon
from navshell.navigable_item import NavigableItem
from navshell.placement import Placement, centered
from navshell.popup import PopupController
from navshell.window_manager import HostWindowManager

logger = logging.getLogger(__name__)

BUTTON_SIZE = 96
ICON_SIZE = 30


class ActionButtonItem(NavigableItem):
    """Square button with an icon over its label."""

    def __init__(self, action: Dict[str, str], on_click=None, parent=None):
        super().__init__(data=action, on_click=on_click, parent=parent)
        box = QWidget()
        box.setStyleSheet("background: transparent;")
        layout = QVBoxLayout(box)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(6)

        icon = QLabel()
        icon.setAlignment(Qt.AlignmentFlag.AlignCenter)
        icon.setPixmap(load_icon(action.get("icon"), ICON_SIZE, action.get("name", "")))
        layout.addWidget(icon)

        label = QLabel(action.get("name", ""))
        label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        label.setStyleSheet("background: transparent; color: #e6e6eb; font-size: 12px;")
        layout.addWidget(label)

        self.set_content(box)
        self.setFixedSize(BUTTON_SIZE, BUTTON_SIZE)


class ShutdownDialog(PopupController):
    name = "shutdown"

    def __init__(self, host: HostWindowManager, config: Optional[ShutdownConfig] = None,
                 popup_config: Optional[PopupConfig] = None,
                 placement: Placement = centered,
                 schedule: Optional[Callable[[int, Callable[[], None]], None]] = None,
                 run_action: Optional[Callable[[dict], None]] = None):
        popup_config = replace(popup_config or PopupConfig(), show_overlay=True, wrap_navigation=True)
        super().__init__(host, popup_config, placement=placement, schedule=schedule)
        self.shutdown_config = config or ShutdownConfig()
        self.run_action = run_action or execute_action
        self.buttons = []

    def create_content(self) -> QWidget:
        self.registry.clear()
        self.buttons = []

        root = QWidget()
        root.setStyleSheet("background: transparent;")
        layout = QHBoxLayout(root)
        layout.setContentsMargins(4, 4, 4, 4)
        layout.setSpacing(16)

        for action in self.shutdown_config.actions:
            if not action.get("command"):
                logger.warning(f"Skipping power action without command: {action!r}")
                continue
            button = ActionButtonItem(action, on_click=self.run)
            layout.addWidget(button)
            self.buttons.append(button)
            self.registry.register(button, action, lambda data, _index: self.run(data))
        return root

    def run(self, action: Dict[str, str]) -> None:
        logger.info(f"Power action: {action.get('name')}")
        try:
            self.run_action({"type": "exec", "value": action["command"]})
        except Exception as e:
            logger.error(f"Power action {action.get('name')!r} failed: {e}")
        self.hide()

    def handle_key(self, modifiers: Set[str], key: str) -> bool:
        if key == "Left":
            self.registry.navigate_prev()
            return True
        if key == "Right":
            self.registry.navigate_next()
            return True
        return super().handle_key(modifiers, key)

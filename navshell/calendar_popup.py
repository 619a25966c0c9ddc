"""Month calendar. Left/Right move a day, Up/Down a week, Page Up/Down a month."""
import calendar
import logging
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional, Set

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QGridLayout, QLabel, QVBoxLayout, QWidget

from navshell.actions import execute_action
from navshell.config import CalendarConfig, PopupConfig
from navshell.navigable_item import ItemStyle, NavigableItem
from navshell.placement import Placement, anchored
from navshell.popup import PopupController
from navshell.window_manager import HostWindowManager

logger = logging.getLogger(__name__)

CELL_SIZE = 38

WEEKDAY_NAMES = ("Mo", "Tu", "We", "Th", "Fr", "Sa", "Su")

STYLES = {
    "today": """
        QFrame#navItem {
            background-color: rgba(94, 156, 255, 0.35);
            border-radius: 6px;
            border: 1px solid rgba(94, 156, 255, 0.35);
            color: #ffffff;
        }
    """,
    "header": "background: transparent; color: #ffffff; font-size: 15px; font-weight: 600;",
    "weekday": "background: transparent; color: #9ca3af; font-size: 11px;",
    "day": "background: transparent; font-size: 13px;",
}


def month_grid(year: int, month: int, first_weekday: int = 6) -> List[List[int]]:
    """Weeks of day numbers, 0 where a cell belongs to another month."""
    return calendar.Calendar(first_weekday).monthdayscalendar(year, month)


def weekday_header(first_weekday: int = 6) -> List[str]:
    return [WEEKDAY_NAMES[(first_weekday + i) % 7] for i in range(7)]


def shift_month(day: date, months: int) -> date:
    """Same day-of-month ``months`` away, clamped to that month's length."""
    index = day.year * 12 + day.month - 1 + months
    year, month = divmod(index, 12)
    month += 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


class DayCell(NavigableItem):
    def __init__(self, day: date, is_today: bool = False, on_click=None, parent=None):
        style = ItemStyle(normal=STYLES["today"]) if is_today else None
        label = QLabel(str(day.day))
        label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        label.setStyleSheet(STYLES["day"])
        super().__init__(content=label, data=day, style=style, on_click=on_click, parent=parent)
        self._layout.setContentsMargins(2, 2, 2, 2)
        self.setFixedSize(CELL_SIZE, CELL_SIZE)


class CalendarPopup(PopupController):
    name = "calendar"

    def __init__(self, host: HostWindowManager, config: Optional[CalendarConfig] = None,
                 popup_config: Optional[PopupConfig] = None,
                 placement: Optional[Placement] = None,
                 schedule: Optional[Callable[[int, Callable[[], None]], None]] = None,
                 today: Callable[[], date] = date.today,
                 run_action: Optional[Callable[[dict], None]] = None):
        self.calendar_config = config or CalendarConfig()
        super().__init__(host, popup_config,
                         placement=placement or anchored(self.calendar_config.position),
                         schedule=schedule)
        self.today = today
        self.run_action = run_action or execute_action
        self.selected = today()
        self.cells: Dict[date, DayCell] = {}
        self.header: Optional[QLabel] = None
        self.registry.add_listener(self._on_focus)

    def on_before_show(self) -> None:
        self.selected = self.today()
        super().on_before_show()

    def create_content(self) -> QWidget:
        cfg = self.calendar_config
        year, month = self.selected.year, self.selected.month
        today = self.today()

        self.registry.clear()
        self.cells = {}

        root = QWidget()
        root.setStyleSheet("background: transparent;")
        layout = QVBoxLayout(root)
        layout.setContentsMargins(4, 4, 4, 4)
        layout.setSpacing(8)

        self.header = QLabel(self.selected.strftime("%B %Y"))
        self.header.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.header.setStyleSheet(STYLES["header"])
        layout.addWidget(self.header)

        grid = QGridLayout()
        grid.setSpacing(4)
        for column, name in enumerate(weekday_header(cfg.first_weekday)):
            label = QLabel(name)
            label.setAlignment(Qt.AlignmentFlag.AlignCenter)
            label.setStyleSheet(STYLES["weekday"])
            grid.addWidget(label, 0, column)

        for row, week in enumerate(month_grid(year, month, cfg.first_weekday), start=1):
            for column, number in enumerate(week):
                if not number:
                    continue
                day = date(year, month, number)
                cell = DayCell(day, is_today=day == today, on_click=self.choose)
                grid.addWidget(cell, row, column)
                self.cells[day] = cell
        layout.addLayout(grid)

        # Registered in day order, so a day's registry index is its number.
        for day in sorted(self.cells):
            self.registry.register(self.cells[day], day, lambda data, _index: self.choose(data))
        return root

    # ------------------------------------------------------------------ focus

    def reset_selection(self) -> None:
        self.registry.focus(self.selected.day)

    def _on_focus(self, index: int) -> None:
        if index:
            self.selected = self.selected.replace(day=index)

    def select(self, day: date) -> None:
        """Move the selection, switching months when ``day`` lies outside this one."""
        if (day.year, day.month) != (self.selected.year, self.selected.month):
            self.selected = day
            self.refresh()
        self.registry.focus(day.day)

    # --------------------------------------------------------------- keyboard

    def handle_key(self, modifiers: Set[str], key: str) -> bool:
        steps = {"Left": -1, "Right": 1, "Up": -7, "Down": 7}
        if key in steps:
            self.select(self.selected + timedelta(days=steps[key]))
        elif key == "Prior":
            self.select(shift_month(self.selected, -1))
        elif key == "Next":
            self.select(shift_month(self.selected, 1))
        elif key == "Home":
            self.select(self.today())
        else:
            return super().handle_key(modifiers, key)
        return True

    def choose(self, day: date) -> None:
        """Copy the ISO date to the clipboard and close."""
        logger.info(f"Calendar picked {day.isoformat()}")
        try:
            self.run_action({"type": "copy", "value": day.isoformat()})
        except Exception as e:
            logger.error(f"Copying {day.isoformat()} failed: {e}")
        self.hide()

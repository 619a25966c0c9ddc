"""Placement strategies: pure functions of screen geometry and popup size."""
from typing import Callable

from navshell.window_manager import Rect, ScreenInfo, Size

Placement = Callable[[ScreenInfo, Size], Rect]


def centered(screen: ScreenInfo, size: Size) -> Rect:
    """Center inside the workarea, never spilling past its top-left corner."""
    area = screen.workarea
    x = area.x + max(0, (area.width - size.width) // 2)
    y = area.y + max(0, (area.height - size.height) // 2)
    return Rect(x, y, size.width, size.height)


def anchored(position: str = "top_right", margin: int = 10) -> Placement:
    """Pin to a screen corner, ``margin`` pixels in from the workarea edges."""

    def place(screen: ScreenInfo, size: Size) -> Rect:
        area = screen.workarea
        left = area.x + margin
        right = area.x + area.width - size.width - margin
        top = area.y + margin
        bottom = area.y + area.height - size.height - margin

        corners = {
            "top_left": (left, top),
            "top_right": (right, top),
            "bottom_left": (left, bottom),
            "bottom_right": (right, bottom),
        }
        x, y = corners.get(position, corners["top_right"])
        return Rect(x, y, size.width, size.height)

    return place

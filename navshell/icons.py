import io
import logging
import os
from functools import lru_cache
from typing import Optional

from PIL import Image, ImageDraw, ImageFont
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QPixmap

logger = logging.getLogger(__name__)

PLACEHOLDER_BG = "#1e1e2e"
PLACEHOLDER_FG = "#5e9cff"


@lru_cache(maxsize=64)
def placeholder_png(glyph: str, size: int) -> bytes:
    """Rounded square with a glyph in it, rendered to PNG bytes."""
    image = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    dc = ImageDraw.Draw(image)
    dc.rounded_rectangle((0, 0, size - 1, size - 1), radius=max(2, size // 5), fill=PLACEHOLDER_BG)

    font = ImageFont.load_default()
    left, top, right, bottom = dc.textbbox((0, 0), glyph, font=font)
    x = (size - (right - left)) / 2 - left
    y = (size - (bottom - top)) / 2 - top
    dc.text((x, y), glyph, fill=PLACEHOLDER_FG, font=font)

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def placeholder_pixmap(name: str, size: int) -> QPixmap:
    glyph = (name.strip()[:1] or "?").upper()
    pixmap = QPixmap()
    pixmap.loadFromData(placeholder_png(glyph, size), "PNG")
    return pixmap


def load_icon(path: Optional[str], size: int, name: str = "") -> QPixmap:
    """Scaled icon from ``path``, or a placeholder glyph when it can't be read."""
    if path and os.path.isfile(path):
        pixmap = QPixmap(path)
        if not pixmap.isNull():
            return pixmap.scaled(
                size, size,
                Qt.AspectRatioMode.KeepAspectRatio,
                Qt.TransformationMode.SmoothTransformation,
            )
        logger.debug(f"Unreadable icon {path}, using placeholder")
    return placeholder_pixmap(name, size)

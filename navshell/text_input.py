"""Editable single-line text driven by (modifiers, key) events."""
import logging
from typing import Callable, Iterable, Optional

import pyperclip
from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QLineEdit

logger = logging.getLogger(__name__)


class TextInput:
    def __init__(self, on_change: Optional[Callable[[str], None]] = None,
                 disable_arrows: bool = False):
        self.text = ""
        self.cursor = 0
        self.selected_all = False
        self.on_change = on_change
        self.disable_arrows = disable_arrows

    def set_text(self, text: str, notify: bool = True) -> None:
        self.text = text or ""
        self.cursor = len(self.text)
        self.selected_all = False
        if notify:
            self._changed()

    def insert(self, chunk: str) -> None:
        if self.selected_all:
            self.text, self.cursor = "", 0
            self.selected_all = False
        self.text = self.text[:self.cursor] + chunk + self.text[self.cursor:]
        self.cursor += len(chunk)
        self._changed()

    def backspace(self) -> None:
        if self.selected_all:
            self._delete_all()
        elif self.cursor > 0:
            self.text = self.text[:self.cursor - 1] + self.text[self.cursor:]
            self.cursor -= 1
            self._changed()

    def delete(self) -> None:
        if self.selected_all:
            self._delete_all()
        elif self.cursor < len(self.text):
            self.text = self.text[:self.cursor] + self.text[self.cursor + 1:]
            self._changed()

    def paste(self) -> None:
        try:
            clip = pyperclip.paste() or ""
        except Exception as e:
            logger.warning(f"Clipboard unavailable: {e}")
            return
        clip = clip.replace("\r", "").replace("\n", "")
        if clip:
            self.insert(clip)

    def move_cursor(self, step: int) -> None:
        self.selected_all = False
        self.cursor = max(0, min(len(self.text), self.cursor + step))

    def handle_key(self, modifiers: Iterable[str], key: str) -> bool:
        mods = set(modifiers)
        if "Control" in mods:
            if key == "a":
                self.selected_all = bool(self.text)
                return True
            if key == "v":
                self.paste()
                return True
            return False
        if "Mod1" in mods or "Mod4" in mods:
            return False

        if key in ("Left", "Right"):
            if self.disable_arrows:
                return False
            self.move_cursor(-1 if key == "Left" else 1)
            return True
        if key == "BackSpace":
            self.backspace()
            return True
        if key == "Delete":
            self.delete()
            return True
        if key == "space":
            self.insert(" ")
            return True
        if len(key) == 1:
            self.insert(key)
            return True
        return False

    def _delete_all(self) -> None:
        self.selected_all = False
        self.text, self.cursor = "", 0
        self._changed()

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change(self.text)


class SearchField(QLineEdit):
    """Read-only display of a TextInput; keys arrive through the popup's grab."""

    def __init__(self, placeholder: str = "Search applications...", parent=None):
        super().__init__(parent)
        self.setObjectName("searchInput")
        self.setPlaceholderText(placeholder)
        self.setReadOnly(True)
        self.setFocusPolicy(Qt.FocusPolicy.NoFocus)

    def sync(self, model: TextInput) -> None:
        if self.text() != model.text:
            self.setText(model.text)
        self.setCursorPosition(model.cursor)
        if model.selected_all:
            self.selectAll()
        else:
            self.deselect()

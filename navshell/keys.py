from typing import Set, Tuple

from PyQt6.QtCore import Qt

MODIFIER_NAMES = (
    (Qt.KeyboardModifier.ShiftModifier, "Shift"),
    (Qt.KeyboardModifier.ControlModifier, "Control"),
    (Qt.KeyboardModifier.AltModifier, "Mod1"),
    (Qt.KeyboardModifier.MetaModifier, "Mod4"),
)

_KEY_NAMES = {
    Qt.Key.Key_Escape: "Escape",
    Qt.Key.Key_Tab: "Tab",
    Qt.Key.Key_Return: "Return",
    Qt.Key.Key_Enter: "Return",
    Qt.Key.Key_Up: "Up",
    Qt.Key.Key_Down: "Down",
    Qt.Key.Key_Left: "Left",
    Qt.Key.Key_Right: "Right",
    Qt.Key.Key_Home: "Home",
    Qt.Key.Key_End: "End",
    Qt.Key.Key_PageUp: "Prior",
    Qt.Key.Key_PageDown: "Next",
    Qt.Key.Key_Backspace: "BackSpace",
    Qt.Key.Key_Delete: "Delete",
    Qt.Key.Key_Space: "space",
    Qt.Key.Key_Control: "Control_L",
    Qt.Key.Key_Shift: "Shift_L",
    Qt.Key.Key_Alt: "Alt_L",
    Qt.Key.Key_Meta: "Super_L",
    Qt.Key.Key_Super_L: "Super_L",
    Qt.Key.Key_Super_R: "Super_R",
}
KEY_NAMES = {k.value: name for k, name in _KEY_NAMES.items()}


def modifier_names(modifiers) -> Set[str]:
    return {name for flag, name in MODIFIER_NAMES if modifiers & flag}


def _code(key) -> int:
    return getattr(key, "value", key)


def translate_key_event(event) -> Tuple[Set[str], str]:
    """Map a QKeyEvent onto (modifiers, key name)."""
    mods = modifier_names(event.modifiers())
    key = _code(event.key())

    # Qt reports Shift+Tab as its own key.
    if key == Qt.Key.Key_Backtab.value:
        mods.add("Shift")
        return mods, "Tab"

    if key in KEY_NAMES:
        return mods, KEY_NAMES[key]

    # Control+letter delivers a control character as text, so use the key code.
    if Qt.Key.Key_A.value <= key <= Qt.Key.Key_Z.value and "Control" in mods:
        return mods, chr(key).lower()

    text = event.text()
    if len(text) == 1 and text.isprintable():
        return mods, text
    return mods, ""


# Key names reported when a modifier is pressed on its own.
MODIFIER_KEY_NAMES = {
    "Control": ("Control_L", "Control_R"),
    "Shift": ("Shift_L", "Shift_R"),
    "Mod1": ("Alt_L", "Alt_R"),
    "Mod4": ("Super_L", "Super_R"),
}

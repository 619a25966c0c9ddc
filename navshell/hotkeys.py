import logging
from dataclasses import dataclass
from typing import Callable, FrozenSet, Iterable, List, Set, Tuple

import keyboard

from navshell.actions import execute_action

logger = logging.getLogger(__name__)

MODIFIER_ALIASES = {
    "ctrl": "Control",
    "control": "Control",
    "shift": "Shift",
    "alt": "Mod1",
    "mod1": "Mod1",
    "win": "Mod4",
    "windows": "Mod4",
    "super": "Mod4",
    "cmd": "Mod4",
    "mod4": "Mod4",
}

KEY_ALIASES = {
    "esc": "Escape",
    "escape": "Escape",
    "enter": "Return",
    "return": "Return",
    "tab": "Tab",
    "space": "space",
    "up": "Up",
    "down": "Down",
    "left": "Left",
    "right": "Right",
    "home": "Home",
    "end": "End",
    "backspace": "BackSpace",
    "delete": "Delete",
    "page up": "Prior",
    "page down": "Next",
}


def normalize_key(key: str) -> str:
    if len(key) == 1:
        return key.lower()
    return KEY_ALIASES.get(key.lower(), key)


@dataclass(frozen=True)
class KeyBinding:
    modifiers: FrozenSet[str]
    key: str

    @classmethod
    def parse(cls, combo: str) -> "KeyBinding":
        """Parse a ``keyboard``-style combo such as ``ctrl+alt+t``."""
        parts = [p.strip() for p in combo.split("+") if p.strip()]
        if not parts:
            raise ValueError(f"Empty key combination: {combo!r}")
        mods = set()
        for part in parts[:-1]:
            name = MODIFIER_ALIASES.get(part.lower())
            if name is None:
                raise ValueError(f"Unknown modifier {part!r} in {combo!r}")
            mods.add(name)
        return cls(frozenset(mods), normalize_key(parts[-1]))

    def matches(self, modifiers: Iterable[str], key: str) -> bool:
        return frozenset(modifiers) == self.modifiers and normalize_key(key) == self.key


class KeyDispatcher:
    """Global binding table consulted for keys a popup passes through."""

    def __init__(self):
        self._bindings: List[Tuple[KeyBinding, Callable[[], None]]] = []

    def bind(self, combo: str, action: Callable[[], None]) -> KeyBinding:
        binding = KeyBinding.parse(combo)
        self._bindings.append((binding, action))
        return binding

    def dispatch(self, modifiers: Set[str], key: str) -> bool:
        for binding, action in self._bindings:
            if binding.matches(modifiers, key):
                try:
                    action()
                except Exception:
                    logger.exception(f"Binding {binding} failed")
                return True
        return False

    def __len__(self) -> int:
        return len(self._bindings)


def register_hotkey(dispatcher: KeyDispatcher, combo: str, emit: Callable[[], None],
                    suppress: bool = True) -> None:
    """Bind ``combo`` at OS level and in the pass-through table.

    ``emit`` must be thread-safe (a signal emit): ``keyboard`` calls it from
    its hook thread.
    """
    try:
        dispatcher.bind(combo, emit)
    except ValueError as e:
        logger.warning(f"Skipping hotkey: {e}")
        return
    try:
        keyboard.add_hotkey(combo, emit, suppress=suppress)
        logger.info(f"[+] Registered: {combo}")
    except Exception as e:
        # Unprivileged sessions can't hook the keyboard; pass-through still works.
        logger.warning(f"Could not hook {combo} globally: {e}")


def register_hotkeys(config, dispatcher: KeyDispatcher, run_action: Callable[[dict], None] = None) -> None:
    """
    Iterates through config and registers the user's action hotkeys.
    """
    run_action = run_action or execute_action
    hotkeys = config.hotkeys or {}

    logger.info("--- Registering Shortcuts ---")
    for key_combo, action_data in hotkeys.items():
        register_hotkey(dispatcher, key_combo, lambda d=action_data: run_action(d), suppress=False)

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = os.environ.get("NAVSHELL_CONFIG", "config.json")

# ══════════════════════════════════════════════════════════════════════════════
# SECTIONS
# ══════════════════════════════════════════════════════════════════════════════


def _from_dict(cls, data: Dict[str, Any]):
    """Build a dataclass from a dict, ignoring keys it does not know."""
    known = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class PopupConfig:
    settle_delay_ms: int = 10
    hover_resync_ms: int = 10
    wrap_navigation: bool = True
    passthrough_keys: bool = True
    unfocus_clients: bool = True
    show_overlay: bool = False
    overlay_color: str = "#50000000"
    content_margin: int = 12


@dataclass
class LauncherConfig:
    width: int = 500
    list_height: int = 480
    item_height: int = 44
    item_spacing: int = 6
    scroll_step: int = 1
    max_pinned: int = 8
    pin_cell_width: int = 52
    pinned_path: str = "~/.config/navshell/pinned_apps.json"
    wrap_navigation: bool = False
    secondary_modifier: str = "Control"
    reorder_modifier: str = "Control"
    elevate_command: str = "pkexec sh -c {command}"


def _default_shutdown_actions() -> List[Dict[str, str]]:
    return [
        {"name": "Shut Down", "command": "systemctl poweroff"},
        {"name": "Restart", "command": "systemctl reboot"},
        {"name": "Sleep", "command": "systemctl suspend"},
    ]


@dataclass
class ShutdownConfig:
    actions: List[Dict[str, str]] = field(default_factory=_default_shutdown_actions)


@dataclass
class NotificationConfig:
    width: int = 420
    list_height: int = 400
    item_height: int = 64
    item_spacing: int = 6
    max_history: int = 100
    title_length: int = 50
    message_length: int = 42
    position: str = "top_left"


@dataclass
class CalendarConfig:
    first_weekday: int = 6
    position: str = "top_right"


@dataclass
class MixerConfig:
    width: int = 360
    volume_step: int = 5
    max_volume: int = 150
    position: str = "top_right"


@dataclass
class ShellConfig:
    popup: PopupConfig = field(default_factory=PopupConfig)
    launcher: LauncherConfig = field(default_factory=LauncherConfig)
    shutdown: ShutdownConfig = field(default_factory=ShutdownConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    calendar: CalendarConfig = field(default_factory=CalendarConfig)
    mixer: MixerConfig = field(default_factory=MixerConfig)
    launcher_hotkey: str = "windows+space"
    shutdown_hotkey: str = "windows+escape"
    notifications_hotkey: str = "windows+n"
    calendar_hotkey: str = "windows+c"
    mixer_hotkey: str = "windows+v"
    hotkeys: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ShellConfig":
        config = _from_dict(cls, {k: v for k, v in data.items() if k not in SECTIONS})
        for name, section in SECTIONS.items():
            setattr(config, name, _from_dict(section, data.get(name) or {}))
        return config

    @classmethod
    def load(cls, path: str = DEFAULT_CONFIG_PATH) -> "ShellConfig":
        try:
            with open(path, "r") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("top-level value is not an object")
            return cls.from_dict(data)
        except FileNotFoundError:
            config = cls()
            config.save(path)
            return config
        except Exception as e:
            logger.warning(f"Failed to load config: {e}, using defaults")
            return cls()

    def save(self, path: str = DEFAULT_CONFIG_PATH) -> None:
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w") as f:
                json.dump(asdict(self), f, indent=2)
        except OSError as e:
            logger.warning(f"Could not write config to {path}: {e}")


SECTIONS = {
    "popup": PopupConfig,
    "launcher": LauncherConfig,
    "shutdown": ShutdownConfig,
    "notifications": NotificationConfig,
    "calendar": CalendarConfig,
    "mixer": MixerConfig,
}

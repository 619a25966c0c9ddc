"""
Volume mixer: the default output plus one row per playing application.

Audio is reached through an ``AudioControlService``; ``PactlAudioService``
talks to PulseAudio/PipeWire through the ``pactl`` command.
"""
import logging
import re
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional, Set

from PyQt6.QtWidgets import QHBoxLayout, QLabel, QProgressBar, QVBoxLayout, QWidget

from navshell.config import MixerConfig, PopupConfig
from navshell.icons import load_icon
from navshell.navigable_item import NavigableItem, invoke
from navshell.placement import Placement, anchored
from navshell.popup import PopupController
from navshell.window_manager import HostWindowManager

logger = logging.getLogger(__name__)

MASTER_ID = "@DEFAULT_SINK@"
ICON_SIZE = 24

STYLES = {
    "name": "background: transparent; color: #e6e6eb; font-size: 13px;",
    "percent": "background: transparent; color: #9ca3af; font-size: 11px;",
    "bar": """
        QProgressBar {
            background-color: rgba(255, 255, 255, 0.08);
            border: none;
            border-radius: 3px;
        }
        QProgressBar::chunk {
            background-color: #5e9cff;
            border-radius: 3px;
        }
    """,
    "bar_muted": """
        QProgressBar {
            background-color: rgba(255, 255, 255, 0.08);
            border: none;
            border-radius: 3px;
        }
        QProgressBar::chunk {
            background-color: #555a66;
            border-radius: 3px;
        }
    """,
}


@dataclass
class AudioStream:
    id: str
    name: str
    volume: int = 100
    muted: bool = False
    icon: str = ""

    @property
    def is_master(self) -> bool:
        return self.id == MASTER_ID


class AudioControlService(ABC):
    @abstractmethod
    def streams(self) -> List[AudioStream]:
        """Master output first, then application streams."""

    @abstractmethod
    def set_volume(self, stream: AudioStream, volume: int) -> None: ...

    @abstractmethod
    def toggle_mute(self, stream: AudioStream) -> None: ...


_PERCENT = re.compile(r"(\d+)%")
_PROPERTY = re.compile(r'^\s*([\w.]+)\s*=\s*"(.*)"\s*$')


def parse_sink_inputs(text: str) -> List[AudioStream]:
    """Streams from ``pactl list sink-inputs`` output; unnamed ones are skipped."""
    streams = []
    for block in text.split("Sink Input #")[1:]:
        lines = block.splitlines()
        stream_id = lines[0].strip() if lines else ""
        name, icon, volume, muted = "", "", 100, False
        for line in lines[1:]:
            stripped = line.strip()
            prop = _PROPERTY.match(line)
            if prop:
                if prop.group(1) == "application.name":
                    name = prop.group(2)
                elif prop.group(1) == "application.icon_name":
                    icon = prop.group(2)
            elif stripped.startswith("Volume:"):
                match = _PERCENT.search(stripped)
                if match:
                    volume = int(match.group(1))
            elif stripped.startswith("Mute:"):
                muted = stripped.split(":", 1)[1].strip() == "yes"
        if stream_id.isdigit() and name:
            streams.append(AudioStream(stream_id, name, volume, muted, icon))
    return streams


class PactlAudioService(AudioControlService):
    def __init__(self, max_volume: int = 150, timeout: float = 2.0):
        self.max_volume = max_volume
        self.timeout = timeout

    def _run(self, *args: str) -> str:
        result = subprocess.run(
            ["pactl", *args],
            capture_output=True,
            text=True,
            timeout=self.timeout,
            check=True,
        )
        return result.stdout

    def streams(self) -> List[AudioStream]:
        match = _PERCENT.search(self._run("get-sink-volume", MASTER_ID))
        muted = "yes" in self._run("get-sink-mute", MASTER_ID)
        master = AudioStream(MASTER_ID, "Output", int(match.group(1)) if match else 100, muted)
        try:
            apps = parse_sink_inputs(self._run("list", "sink-inputs"))
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning(f"Could not list application streams: {e}")
            apps = []
        return [master] + apps

    def set_volume(self, stream: AudioStream, volume: int) -> None:
        volume = max(0, min(self.max_volume, volume))
        command = "set-sink-volume" if stream.is_master else "set-sink-input-volume"
        self._run(command, stream.id, f"{volume}%")

    def toggle_mute(self, stream: AudioStream) -> None:
        command = "set-sink-mute" if stream.is_master else "set-sink-input-mute"
        self._run(command, stream.id, "toggle")


class StreamItem(NavigableItem):
    """Name, level bar and percentage; the wheel nudges the level."""

    def __init__(self, stream: AudioStream, max_volume: int = 150,
                 on_click=None, on_wheel: Optional[Callable[[AudioStream, int], None]] = None,
                 parent=None):
        super().__init__(data=stream, on_click=on_click, parent=parent)
        self.on_wheel = on_wheel

        box = QWidget()
        box.setStyleSheet("background: transparent;")
        column = QVBoxLayout(box)
        column.setContentsMargins(0, 0, 0, 0)
        column.setSpacing(4)

        top = QHBoxLayout()
        icon = QLabel()
        icon.setFixedSize(ICON_SIZE, ICON_SIZE)
        icon.setPixmap(load_icon(stream.icon, ICON_SIZE, stream.name))
        top.addWidget(icon)
        name = QLabel(stream.name)
        name.setStyleSheet(STYLES["name"])
        top.addWidget(name, 1)
        self.percent = QLabel()
        self.percent.setStyleSheet(STYLES["percent"])
        top.addWidget(self.percent)
        column.addLayout(top)

        self.bar = QProgressBar()
        self.bar.setRange(0, max_volume)
        self.bar.setTextVisible(False)
        self.bar.setFixedHeight(6)
        column.addWidget(self.bar)

        self.set_content(box)
        self.update_stream(stream)

    def update_stream(self, stream: AudioStream) -> None:
        self.data = stream
        self.bar.setValue(min(stream.volume, self.bar.maximum()))
        self.bar.setStyleSheet(STYLES["bar_muted" if stream.muted else "bar"])
        self.percent.setText("Muted" if stream.muted else f"{stream.volume}%")

    def wheelEvent(self, event):
        delta = event.angleDelta().y()
        if delta:
            invoke(self.on_wheel, self.data, 1 if delta > 0 else -1, what="Volume wheel")
        event.accept()


class MixerPopup(PopupController):
    name = "mixer"

    def __init__(self, host: HostWindowManager, service: AudioControlService,
                 config: Optional[MixerConfig] = None,
                 popup_config: Optional[PopupConfig] = None,
                 placement: Optional[Placement] = None,
                 schedule: Optional[Callable[[int, Callable[[], None]], None]] = None):
        self.mixer_config = config or MixerConfig()
        super().__init__(host, popup_config,
                         placement=placement or anchored(self.mixer_config.position),
                         schedule=schedule)
        self.service = service
        self.items: List[StreamItem] = []

    def create_content(self) -> QWidget:
        cfg = self.mixer_config
        streams = self.service.streams()
        self.registry.clear()
        self.items = []

        root = QWidget()
        root.setStyleSheet("background: transparent;")
        root.setFixedWidth(cfg.width)
        layout = QVBoxLayout(root)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(6)

        for stream in streams:
            item = StreamItem(
                stream, cfg.max_volume,
                on_click=self.toggle_mute,
                on_wheel=lambda s, direction: self.adjust(s, direction * self.mixer_config.volume_step),
            )
            layout.addWidget(item)
            self.items.append(item)
            self.registry.register(item, stream, lambda data, _index: self.toggle_mute(data))
        logger.debug(f"Mixer shows {len(streams)} streams")
        return root

    def _item_for(self, stream: AudioStream) -> Optional[StreamItem]:
        for item in self.items:
            if item.data is stream:
                return item
        return None

    def focused_stream(self) -> Optional[AudioStream]:
        item = self.registry.focused_item()
        return item.data if item is not None else None

    def adjust(self, stream: AudioStream, delta: int) -> None:
        volume = max(0, min(self.mixer_config.max_volume, stream.volume + delta))
        if volume == stream.volume:
            return
        try:
            self.service.set_volume(stream, volume)
        except Exception as e:
            logger.error(f"Setting volume of {stream.name!r} failed: {e}")
            return
        stream.volume = volume
        item = self._item_for(stream)
        if item is not None:
            item.update_stream(stream)

    def toggle_mute(self, stream: AudioStream) -> None:
        try:
            self.service.toggle_mute(stream)
        except Exception as e:
            logger.error(f"Muting {stream.name!r} failed: {e}")
            return
        stream.muted = not stream.muted
        item = self._item_for(stream)
        if item is not None:
            item.update_stream(stream)

    def handle_key(self, modifiers: Set[str], key: str) -> bool:
        stream = self.focused_stream()
        step = self.mixer_config.volume_step
        if key in ("Left", "Right"):
            if stream is not None:
                self.adjust(stream, step if key == "Right" else -step)
            return True
        if key == "m" and not modifiers:
            if stream is not None:
                self.toggle_mute(stream)
            return True
        return super().handle_key(modifiers, key)

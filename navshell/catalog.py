import configparser
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Protocol

logger = logging.getLogger(__name__)


@dataclass
class CatalogEntry:
    display_name: str
    launch_command: str
    icon_path: Optional[str] = None
    source_path: str = ""


class ApplicationCatalog(Protocol):
    def entries(self) -> List[CatalogEntry]: ...


def filter_entries(entries: Iterable[CatalogEntry], query: str) -> List[CatalogEntry]:
    """Case-insensitive substring match on the display name, order preserved."""
    needle = (query or "").lower()
    if not needle:
        return list(entries)
    return [e for e in entries if needle in e.display_name.lower()]

# ══════════════════════════════════════════════════════════════════════════════
# DESKTOP ENTRIES
# ══════════════════════════════════════════════════════════════════════════════

_FIELD_CODE = re.compile(r"%[A-Za-z]")
_ICON_EXTENSIONS = (".png", ".svg", ".xpm", "")


def _default_application_dirs() -> List[Path]:
    home = Path.home()
    return [
        Path("/usr/share/applications"),
        Path("/usr/local/share/applications"),
        home / ".local/share/applications",
        home / ".local/share/flatpak/exports/share/applications",
        Path("/var/lib/flatpak/exports/share/applications"),
    ]


def _default_icon_dirs() -> List[Path]:
    home = Path.home()
    base = Path("/usr/share/icons")
    return [
        base / "hicolor/scalable/apps",
        base / "hicolor/256x256/apps",
        base / "hicolor/64x64/apps",
        base / "hicolor/48x48/apps",
        base / "hicolor/16x16/apps",
        base,
        Path("/usr/share/pixmaps"),
        home / ".local/share/icons/hicolor/48x48/apps",
        home / ".local/share/icons/hicolor/scalable/apps",
    ]


def process_exec_command(exec_line: str, desktop_path: str) -> str:
    """Drop field codes from an Exec= line, substituting %k."""
    command = _FIELD_CODE.sub(
        lambda m: desktop_path if m.group() == "%k" else "",
        exec_line.replace("%%", "\0"),
    ).replace("\0", "%")
    return re.sub(r" {2,}", " ", command).strip()


class DesktopEntryCatalog:
    """Catalog backed by freedesktop .desktop files."""

    def __init__(self, application_dirs: Optional[List[Path]] = None,
                 icon_dirs: Optional[List[Path]] = None):
        self.application_dirs = application_dirs if application_dirs is not None else _default_application_dirs()
        self.icon_dirs = icon_dirs if icon_dirs is not None else _default_icon_dirs()

    def entries(self) -> List[CatalogEntry]:
        found: List[CatalogEntry] = []
        for directory in self.application_dirs:
            if not directory.is_dir():
                continue
            for path in sorted(directory.rglob("*.desktop")):
                entry = self._read_entry(path)
                if entry is not None:
                    found.append(entry)
        found.sort(key=lambda e: e.display_name.lower())
        return found

    def resolve_icon(self, icon_name: Optional[str]) -> Optional[str]:
        if not icon_name:
            return None
        if os.path.isabs(icon_name):
            return icon_name if os.path.isfile(icon_name) else None
        for directory in self.icon_dirs:
            for ext in _ICON_EXTENSIONS:
                candidate = directory / f"{icon_name}{ext}"
                if candidate.is_file():
                    return str(candidate)
        return None

    def _read_entry(self, path: Path) -> Optional[CatalogEntry]:
        parser = configparser.ConfigParser(interpolation=None, strict=False)
        parser.optionxform = str
        try:
            parser.read(path, encoding="utf-8")
        except (configparser.Error, OSError, UnicodeDecodeError) as e:
            logger.debug(f"Skipping unreadable desktop file {path}: {e}")
            return None

        if not parser.has_section("Desktop Entry"):
            return None
        section = parser["Desktop Entry"]

        name = section.get("Name")
        exec_line = section.get("Exec")
        if not name or not exec_line:
            return None
        if section.get("NoDisplay", "").lower() == "true" or section.get("Hidden", "").lower() == "true":
            return None

        command = process_exec_command(exec_line, str(path))
        if not command:
            return None
        return CatalogEntry(
            display_name=name,
            launch_command=command,
            icon_path=self.resolve_icon(section.get("Icon")),
            source_path=str(path),
        )

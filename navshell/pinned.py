import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)


@dataclass
class PinnedEntry:
    name: str
    exec: str
    icon: str = ""


class PinnedStore:
    """User-curated, ordered pinned applications, flushed on every change."""

    def __init__(self, path: str, max_pinned: int = 8):
        self.path = Path(path).expanduser()
        self.max_pinned = max_pinned
        self.entries: List[PinnedEntry] = []

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, index: int) -> PinnedEntry:
        return self.entries[index]

    def load(self) -> List[PinnedEntry]:
        self.entries = []
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except FileNotFoundError:
            return self.entries
        except Exception as e:
            logger.warning(f"Failed to load pinned apps from {self.path}: {e}")
            return self.entries

        if not isinstance(data, list):
            logger.warning(f"Ignoring pinned apps file {self.path}: not a list")
            return self.entries

        for record in data:
            if not isinstance(record, dict) or not record.get("name") or not record.get("exec"):
                continue
            self.entries.append(PinnedEntry(
                name=str(record["name"]),
                exec=str(record["exec"]),
                icon=str(record.get("icon") or ""),
            ))
        del self.entries[self.max_pinned:]
        return self.entries

    def save(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w") as f:
                json.dump([asdict(e) for e in self.entries], f, indent=2)
        except OSError as e:
            logger.error(f"Failed to save pinned apps: {e}")

    # ------------------------------------------------------------------ queries

    def index_of(self, name: str) -> Optional[int]:
        for i, entry in enumerate(self.entries):
            if entry.name == name:
                return i
        return None

    def is_pinned(self, name: str) -> bool:
        return self.index_of(name) is not None

    # ---------------------------------------------------------------- mutations

    def pin(self, entry: PinnedEntry) -> bool:
        if self.is_pinned(entry.name):
            return False
        if len(self.entries) >= self.max_pinned:
            logger.info(f"Not pinning {entry.name}: limit of {self.max_pinned} reached")
            return False
        self.entries.append(entry)
        self.save()
        return True

    def unpin_at(self, index: int) -> Optional[PinnedEntry]:
        if not 0 <= index < len(self.entries):
            return None
        removed = self.entries.pop(index)
        self.save()
        return removed

    def toggle(self, entry: PinnedEntry) -> bool:
        """Pin or unpin ``entry``; returns whether it ends up pinned."""
        index = self.index_of(entry.name)
        if index is not None:
            self.unpin_at(index)
            return False
        return self.pin(entry)

    def move(self, index: int, direction: int) -> int:
        """Swap the entry at ``index`` with its neighbour; returns its new index."""
        target = index + direction
        if not 0 <= index < len(self.entries) or not 0 <= target < len(self.entries):
            return index
        self.entries[index], self.entries[target] = self.entries[target], self.entries[index]
        self.save()
        return target

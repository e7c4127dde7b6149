from dataclasses import dataclass, replace
from datetime import date, datetime
from enum import Enum
from pathlib import Path


class ImageKind(Enum):
    """Image formats that carry a capture timestamp we can read."""

    JPG = (".jpg", ".jpeg")
    CR2 = (".cr2",)

    @classmethod
    def from_path(cls, path: Path) -> "ImageKind | None":
        suffix = path.suffix.lower()
        for kind in cls:
            if suffix in kind.value:
                return kind
        return None


@dataclass(frozen=True)
class ImageFile:
    path: Path
    kind: ImageKind
    timestamp: datetime | None = None  # None until read from the file's metadata

    @property
    def name(self) -> str:
        return self.path.name

    def with_timestamp(self, timestamp: datetime) -> "ImageFile":
        return replace(self, timestamp=timestamp)


@dataclass(frozen=True)
class PlannedRename:
    """A single entry of a rename plan."""

    source: Path
    target: Path
    date: date
    sequence: int

    @property
    def is_noop(self) -> bool:
        return self.source == self.target


@dataclass
class RenameOptions:
    """Options for renaming files."""

    deep: bool = False
    dry_run: bool = False


@dataclass
class CliOptions:
    log_actions: bool
    rename_options: RenameOptions

"""Errors reported while renaming a directory.

Only DirectoryError ends a run. The other kinds concern a single file: the
file is skipped and the error is collected into the run's report.
"""

from pathlib import Path


class DatierError(Exception):
    """Base class for errors tied to a path."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class DirectoryError(DatierError):
    """The input directory is missing or cannot be listed."""


class MissingMetadataError(DatierError):
    """The file has no readable capture timestamp."""


class CollisionError(DatierError):
    """The target name is taken by a file that is not part of the run."""

    def __init__(self, path: Path, target: Path, reason: str | None = None):
        self.target = target
        super().__init__(path, reason or f"would rename, but {target} already exists")


class PlanCollisionError(CollisionError):
    """Two entries of one plan computed the same target name."""

    def __init__(self, path: Path, target: Path, other: Path):
        self.other = other
        super().__init__(path, target, f"target {target.name} is also planned for {other}")


class RenameIOError(DatierError):
    """The filesystem refused the rename."""

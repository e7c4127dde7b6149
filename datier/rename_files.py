import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from .errors import (
    CollisionError,
    DatierError,
    MissingMetadataError,
    PlanCollisionError,
    RenameIOError,
)
from .generators import generate_filename
from .list_files import scan
from .types import ImageFile, PlannedRename, RenameOptions
from .utils import TimestampReader, read_exif_datetime

TEMP_PREFIX = ".datier-"


@dataclass
class RenameReport:
    """Outcome of executing a rename plan."""

    dry_run: bool = False
    renamed: list[PlannedRename] = field(default_factory=list)
    unchanged: list[PlannedRename] = field(default_factory=list)
    skipped: list[DatierError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.skipped

    def summary(self) -> str:
        verb = "Would rename" if self.dry_run else "Renamed"
        return (
            f"{verb} {len(self.renamed)} files, "
            f"{len(self.unchanged)} unchanged, {len(self.skipped)} skipped"
        )


def extract_timestamps(
    files: Iterable[ImageFile],
    reader: TimestampReader = read_exif_datetime,
    *,
    progress: Progress | None = None,
) -> tuple[list[ImageFile], list[MissingMetadataError]]:
    """Read the capture timestamp of each file.

    Files whose metadata cannot be read are left out of the first list and
    reported in the second one instead.
    """
    files = list(files)
    task_id = progress.add_task("Reading metadata...", total=len(files)) if progress is not None else None
    dated: list[ImageFile] = []
    missing: list[MissingMetadataError] = []
    for image in files:
        try:
            dated.append(image.with_timestamp(reader(image.path)))
        except MissingMetadataError as e:
            logging.debug(f"{image.path} skipped ({e.reason})")
            missing.append(e)
        if progress is not None and task_id is not None:
            progress.advance(task_id)
    return dated, missing


def sort_key(image: ImageFile):
    # equal timestamps are ordered by filename so repeated runs agree
    return (image.timestamp, image.name, str(image.path))


def group_by_date(files: Iterable[ImageFile]) -> dict[date, list[ImageFile]]:
    """Group files by capture date, each group in chronological order.

    The returned dict iterates in ascending date order.
    """
    groups: defaultdict[date, list[ImageFile]] = defaultdict(list)
    for image in files:
        if image.timestamp is None:
            raise ValueError(f"{image.path} has no timestamp")
        groups[image.timestamp.date()].append(image)
    return {day: sorted(groups[day], key=sort_key) for day in sorted(groups)}


def build_plan(groups: dict[date, Sequence[ImageFile]], directory: Path) -> list[PlannedRename]:
    """Assign each file its target name inside directory.

    Sequence numbers restart at 1 for every date. The plan is ordered by
    target name.

    Raises:
        PlanCollisionError: if two files were given the same target name
    """
    plan: list[PlannedRename] = []
    claimed: dict[str, Path] = {}
    for day, images in groups.items():
        for sequence, image in enumerate(images, start=1):
            target = directory / generate_filename(image.path, day, sequence)
            key = target.name.casefold()
            if key in claimed:
                raise PlanCollisionError(image.path, target, claimed[key])
            claimed[key] = image.path
            plan.append(PlannedRename(source=image.path, target=target, date=day, sequence=sequence))
    plan.sort(key=lambda entry: entry.target.name)
    return plan


def _temp_path(entry: PlannedRename) -> Path:
    index = 0
    while True:
        candidate = entry.target.parent / f"{TEMP_PREFIX}{index}-{entry.source.name}"
        if not candidate.exists():
            return candidate
        index += 1


def _skip_collisions(pending: list[PlannedRename], report: RenameReport) -> list[PlannedRename]:
    """Skip the entries whose target is held by a file that will not move.

    A skipped entry keeps its file in place, which may block further entries.
    """
    active = list(pending)
    while True:
        movable = {entry.source for entry in active}
        blocked = [entry for entry in active if entry.target.exists() and entry.target not in movable]
        if not blocked:
            return active
        for entry in blocked:
            report.skipped.append(CollisionError(entry.source, entry.target))
        active = [entry for entry in active if entry not in blocked]


def _stage(
    active: list[PlannedRename], report: RenameReport
) -> tuple[list[PlannedRename], dict[PlannedRename, Path]]:
    """Move aside the files that sit on another entry's target name.

    Returns the entries that can still be renamed, and where each moved file
    now is. Entries aimed at a file that could not be moved are skipped and
    their own file is put back.
    """
    targets = {entry.target for entry in active}
    staged: dict[PlannedRename, Path] = {}
    # files that stay where they are, with the reason why
    stuck: dict[Path, str] = {}
    for entry in active:
        if entry.source not in targets:
            continue
        temp = _temp_path(entry)
        logging.debug(f"Moving {entry.source} aside to {temp}")
        try:
            entry.source.rename(temp)
        except OSError as e:
            reason = f"rename failed: {e.strerror or e}"
            report.skipped.append(RenameIOError(entry.source, reason))
            stuck[entry.source] = reason
            continue
        staged[entry] = temp

    active = [entry for entry in active if entry.source not in stuck]
    while True:
        blocked = [entry for entry in active if entry.target in stuck]
        if not blocked:
            return active, staged
        for entry in blocked:
            reason = f"{entry.target.name} could not be moved aside ({stuck[entry.target]})"
            temp = staged.pop(entry, None)
            if temp is None:
                stuck[entry.source] = reason
            else:
                try:
                    temp.rename(entry.source)
                except OSError:
                    reason += f" (file left as {temp})"
                else:
                    stuck[entry.source] = reason
            report.skipped.append(RenameIOError(entry.source, reason))
        active = [entry for entry in active if entry not in blocked]


def execute_plan(plan: Sequence[PlannedRename], *, dry_run: bool = False) -> RenameReport:
    """Apply a rename plan, one entry at a time.

    A failed entry is recorded in the report and does not stop the others.
    Existing files that are not part of the plan are never overwritten, and
    a skipped entry's file keeps its name.
    """
    report = RenameReport(dry_run=dry_run)
    pending: list[PlannedRename] = []
    for entry in plan:
        if entry.is_noop:
            report.unchanged.append(entry)
        else:
            pending.append(entry)

    active = _skip_collisions(pending, report)
    if dry_run:
        report.renamed.extend(active)
        return report

    active, staged = _stage(active, report)
    for entry in active:
        source = staged.get(entry, entry.source)
        if entry.target.exists():
            # appeared since the plan was checked
            reason = f"would rename, but {entry.target} already exists"
            if source != entry.source:
                reason += f" (file left as {source})"
            report.skipped.append(CollisionError(entry.source, entry.target, reason))
            continue
        try:
            source.rename(entry.target)
        except OSError as e:
            reason = f"rename failed: {e.strerror or e}"
            if source != entry.source:
                reason += f" (file left as {source})"
            report.skipped.append(RenameIOError(entry.source, reason))
            continue
        logging.debug(f"{entry.source} -> {entry.target}")
        report.renamed.append(entry)
    return report


def rename_directory(
    directory: Path,
    *,
    options: RenameOptions,
    reader: TimestampReader = read_exif_datetime,
    show_progress: bool = False,
) -> RenameReport:
    """Rename the images in directory after their capture date.

    Args:
        directory: The folder in which to rename images
        options: Rename options
        reader: Returns the capture timestamp of a file
        show_progress: Whether to show a progress bar while metadata is read

    Raises:
        DirectoryError: if the directory cannot be read
    """
    files = scan(directory, deep=options.deep)

    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=Console(stderr=True),
        transient=True,
        disable=not show_progress,
    )
    with progress:
        dated, missing = extract_timestamps(files, reader, progress=progress)

    plan = build_plan(group_by_date(dated), directory)
    report = execute_plan(plan, dry_run=options.dry_run)
    report.skipped[:0] = missing
    return report

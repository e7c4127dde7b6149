import logging
from pathlib import Path

from .errors import DirectoryError
from .types import ImageFile, ImageKind


def _list_directory(directory: Path) -> list[Path]:
    try:
        entries = list(directory.iterdir())
    except OSError as e:
        raise DirectoryError(directory, f"could not list directory: {e.strerror or e}") from e
    entries.sort()
    return entries


def list_image_files(directory: Path, *, deep: bool = False) -> list[ImageFile]:
    """List image files in directory, and in its sub-directories if deep."""
    all_files = _list_directory(directory)
    image_files = [
        ImageFile(path=f, kind=kind)
        for f in all_files
        if (kind := ImageKind.from_path(f)) is not None and f.is_file()
    ]
    if not deep:
        return image_files
    for child in all_files:
        if not child.is_dir() or child.is_symlink():
            continue
        try:
            image_files.extend(list_image_files(child, deep=True))
        except DirectoryError as e:
            logging.warning(f"Skipping sub-directory {e.path}: {e.reason}")
    return image_files


def scan(directory: Path, *, deep: bool = False) -> list[ImageFile]:
    """Find the JPG and CR2 files to rename.

    Args:
        directory: The directory in which to rename images
        deep: Whether to also search sub-directories

    Returns:
        The image files, with the top-level directory's files first, each
        directory's files sorted by name

    Raises:
        DirectoryError: if the directory does not exist, is not a directory, or cannot be read
    """
    if not directory.exists():
        raise DirectoryError(directory, "no such directory")
    if not directory.is_dir():
        raise DirectoryError(directory, "input path is not a directory")
    files = list_image_files(directory, deep=deep)
    logging.debug(f"Found {len(files)} image files in {directory}")
    return files

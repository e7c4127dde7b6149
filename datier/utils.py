"""Utility functions for datier."""

import logging
import re
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Final

import exifread

from .errors import MissingMetadataError

EXIF_DATETIME_FORMAT: Final = "%Y:%m:%d %H:%M:%S"

# Capture timestamp tags in order of preference, each with its sub-second tag
DATETIME_TAGS: Final = (
    ("EXIF DateTimeOriginal", "EXIF SubSecTimeOriginal"),
    ("Image DateTime", "EXIF SubSecTime"),
)

SUBSEC_PATTERN: Final = re.compile(r"^\d+$")

# Anything that maps a file to its capture timestamp, raising
# MissingMetadataError when there is none
TimestampReader = Callable[[Path], datetime]


def parse_subsec(value: str) -> int | None:
    """Convert an EXIF SubSecTime string into microseconds.

    The tag holds the decimal digits of the fraction of a second, so "5" is
    half a second and "045" is 45 milliseconds. Returns None for values that
    are not purely digits.
    """
    value = value.strip().strip("\x00").strip()
    if not SUBSEC_PATTERN.match(value):
        return None
    return int(value[:6].ljust(6, "0"))


def parse_exif_datetime(value: str, subsec: str | None = None) -> datetime:
    """Parse an EXIF DateTime value, refined by an optional SubSecTime value.

    Raises:
        ValueError: if the value is empty or is not a valid date and time
    """
    value = value.strip().strip("\x00").strip()
    if not value:
        raise ValueError("empty DateTime value")
    timestamp = datetime.strptime(value, EXIF_DATETIME_FORMAT)
    if subsec is not None:
        # an unparseable sub-second value does not invalidate the timestamp
        microseconds = parse_subsec(subsec)
        if microseconds is not None:
            timestamp = timestamp.replace(microsecond=microseconds)
    return timestamp


def read_exif_datetime(image_path: Path) -> datetime:
    """Read the capture timestamp from image EXIF metadata.

    Prefers EXIF DateTimeOriginal and falls back to the IFD0 DateTime tag.
    Timezone offset tags are ignored, so the result is a naive datetime.

    Args:
        image_path: Path to a JPEG or CR2 file

    Returns:
        The capture timestamp

    Raises:
        MissingMetadataError: if the file cannot be read or has no usable timestamp
    """
    try:
        with open(image_path, "rb") as f:
            logging.debug(f"Reading EXIF from {image_path}")
            tags = exifread.process_file(f, details=False)
    except OSError as e:
        raise MissingMetadataError(image_path, f"could not open file: {e.strerror or e}") from e
    except Exception as e:
        logging.debug(f"exifread failed on {image_path}", exc_info=True)
        raise MissingMetadataError(image_path, f"could not read EXIF data: {e}") from e

    if not tags:
        raise MissingMetadataError(image_path, "no EXIF data")
    logging.debug(f"Found EXIF tags: {list(tags.keys())}")

    error: MissingMetadataError | None = None
    for datetime_tag, subsec_tag in DATETIME_TAGS:
        if datetime_tag not in tags:
            continue
        subsec = str(tags[subsec_tag]) if subsec_tag in tags else None
        try:
            return parse_exif_datetime(str(tags[datetime_tag]), subsec)
        except ValueError as e:
            # cameras write "0000:00:00 00:00:00" for unset clocks; try the next tag
            logging.debug(f"{image_path}: {datetime_tag} {str(tags[datetime_tag])!r} is invalid: {e}")
            error = error or MissingMetadataError(image_path, f"{datetime_tag} could not be parsed: {e}")

    raise error or MissingMetadataError(image_path, "DateTime field is missing")

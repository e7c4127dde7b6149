"""Tests for utility functions."""

from datetime import datetime
from pathlib import Path

import pytest
from PIL import Image

from datier import utils
from datier.errors import MissingMetadataError
from datier.utils import parse_exif_datetime, parse_subsec, read_exif_datetime

EXIF_DATETIME_TAG = 0x0132  # IFD0 DateTime


def save_jpeg(path: Path, timestamp: str | None = None) -> Path:
    """Write a 1x1 JPEG, with an EXIF DateTime tag if timestamp is given."""
    img = Image.new("RGB", (1, 1), color="black")
    if timestamp is None:
        img.save(path)
    else:
        exif = Image.Exif()
        exif[EXIF_DATETIME_TAG] = timestamp
        img.save(path, exif=exif)
    return path


def test_parse_subsec() -> None:
    """Test sub-second parsing."""
    assert parse_subsec("5") == 500000
    assert parse_subsec("045") == 45000
    assert parse_subsec("123456789") == 123456
    assert parse_subsec(" 12\x00") == 120000

    # Test values that are not digits
    assert parse_subsec("") is None
    assert parse_subsec("abc") is None
    assert parse_subsec("-1") is None


def test_parse_exif_datetime() -> None:
    """Test EXIF DateTime parsing."""
    assert parse_exif_datetime("2020:01:01 10:00:00") == datetime(2020, 1, 1, 10, 0, 0)
    assert parse_exif_datetime("2020:01:01 10:00:00\x00") == datetime(2020, 1, 1, 10, 0, 0)

    # Test sub-second refinement
    assert parse_exif_datetime("2020:01:01 10:00:00", "25") == datetime(2020, 1, 1, 10, 0, 0, 250000)
    # A bad sub-second value is ignored
    assert parse_exif_datetime("2020:01:01 10:00:00", "xx") == datetime(2020, 1, 1, 10, 0, 0)

    # Test invalid values
    with pytest.raises(ValueError):
        parse_exif_datetime("")
    with pytest.raises(ValueError):
        parse_exif_datetime("0000:00:00 00:00:00")
    with pytest.raises(ValueError):
        parse_exif_datetime("2020-01-01 10:00:00")


def test_read_exif_datetime(tmp_path: Path) -> None:
    """Test that read_exif_datetime reads the DateTime tag of a JPEG."""
    image_path = save_jpeg(tmp_path / "photo.jpg", "2021:06:15 08:30:05")
    assert read_exif_datetime(image_path) == datetime(2021, 6, 15, 8, 30, 5)


def test_read_exif_datetime_without_exif(tmp_path: Path) -> None:
    """Test that a JPEG without EXIF data has no timestamp."""
    image_path = save_jpeg(tmp_path / "plain.jpg")
    with pytest.raises(MissingMetadataError) as exc_info:
        read_exif_datetime(image_path)
    assert exc_info.value.path == image_path


def test_read_exif_datetime_unreadable_files(tmp_path: Path) -> None:
    """Test files that are not images, and files that do not exist."""
    garbage = tmp_path / "broken.cr2"
    garbage.write_bytes(b"this is not a raw file")
    with pytest.raises(MissingMetadataError):
        read_exif_datetime(garbage)

    with pytest.raises(MissingMetadataError) as exc_info:
        read_exif_datetime(tmp_path / "missing.jpg")
    assert "could not open file" in exc_info.value.reason


def test_read_exif_datetime_tag_preference(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that DateTimeOriginal wins, and that an invalid one falls back to DateTime."""
    image_path = tmp_path / "photo.jpg"
    image_path.write_bytes(b"")

    tags = {
        "EXIF DateTimeOriginal": "2020:01:01 09:00:00",
        "EXIF SubSecTimeOriginal": "5",
        "Image DateTime": "2020:02:02 12:00:00",
    }
    monkeypatch.setattr(utils.exifread, "process_file", lambda f, details=True: dict(tags))
    assert read_exif_datetime(image_path) == datetime(2020, 1, 1, 9, 0, 0, 500000)

    tags["EXIF DateTimeOriginal"] = "0000:00:00 00:00:00"
    assert read_exif_datetime(image_path) == datetime(2020, 2, 2, 12, 0, 0)

    del tags["Image DateTime"]
    with pytest.raises(MissingMetadataError) as exc_info:
        read_exif_datetime(image_path)
    assert "DateTimeOriginal" in exc_info.value.reason

    tags.clear()
    tags["Image Make"] = "Canon"
    with pytest.raises(MissingMetadataError) as exc_info:
        read_exif_datetime(image_path)
    assert exc_info.value.reason == "DateTime field is missing"


def test_read_exif_datetime_parser_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that errors raised by the EXIF parser become MissingMetadataError."""
    image_path = tmp_path / "photo.jpg"
    image_path.write_bytes(b"")

    def fail(f, details=True):
        raise IndexError("truncated IFD")

    monkeypatch.setattr(utils.exifread, "process_file", fail)
    with pytest.raises(MissingMetadataError) as exc_info:
        read_exif_datetime(image_path)
    assert "truncated IFD" in exc_info.value.reason

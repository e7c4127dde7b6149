from datetime import date
from pathlib import Path

SEQUENCE_DIGITS = 4  # zero-padded width of the per-day counter


def generate_stem(day: date, sequence: int) -> str:
    """Name a file by its capture date and its position within that day.

    >>> generate_stem(date(2020, 1, 1), 2)
    '2020_01_01-0002'
    """
    if sequence < 1:
        raise ValueError(f"sequence numbers start at 1, got {sequence}")
    return f"{day.year:04d}_{day.month:02d}_{day.day:02d}-{sequence:0{SEQUENCE_DIGITS}d}"


def generate_filename(original: Path, day: date, sequence: int) -> str:
    # Keep original extension, including its case
    return f"{generate_stem(day, sequence)}{original.suffix}"

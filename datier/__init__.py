"""A command-line tool that renames images after the date they were taken."""

from .generators import generate_filename
from .list_files import scan
from .rename_files import RenameReport, build_plan, execute_plan, group_by_date, rename_directory
from .utils import read_exif_datetime

__all__ = [
    "RenameReport",
    "build_plan",
    "execute_plan",
    "generate_filename",
    "group_by_date",
    "read_exif_datetime",
    "rename_directory",
    "scan",
]

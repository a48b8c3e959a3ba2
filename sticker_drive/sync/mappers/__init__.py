"""Mappers for converting Drive API JSON and filenames to catalogue data."""

from sticker_drive.sync.mappers.drive import (
    ChangePage,
    DriveChange,
    DriveFile,
    DriveFolder,
    map_change,
    map_change_page,
    map_file,
    map_folder,
)
from sticker_drive.sync.mappers.naming import (
    DerivedName,
    build_caption,
    derive,
    disambiguate_slug,
    slugify,
)
from sticker_drive.sync.mappers.sticker import map_sticker_fields

__all__ = [
    "ChangePage",
    "DerivedName",
    "DriveChange",
    "DriveFile",
    "DriveFolder",
    "build_caption",
    "derive",
    "disambiguate_slug",
    "map_change",
    "map_change_page",
    "map_file",
    "map_folder",
    "map_sticker_fields",
    "slugify",
]

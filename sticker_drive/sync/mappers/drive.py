"""Drive API JSON to typed descriptors.

The Drive v3 REST API returns loosely-typed JSON; these mappers pin down
the handful of fields the reconciler relies on.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"


def is_folder_mime(mime_type: str | None) -> bool:
    return mime_type == FOLDER_MIME_TYPE


def is_image_mime(mime_type: str | None) -> bool:
    return bool(mime_type) and mime_type.startswith("image/")


@dataclass(frozen=True)
class DriveFolder:
    """A folder-typed Drive entry."""

    id: str
    name: str


@dataclass(frozen=True)
class DriveFile:
    """A Drive file or folder descriptor as reported by listings and changes."""

    id: str
    name: str
    mime_type: str
    parents: list[str] = field(default_factory=list)
    trashed: bool = False
    size: int | None = None
    width: int | None = None
    height: int | None = None

    @property
    def is_folder(self) -> bool:
        return is_folder_mime(self.mime_type)

    @property
    def is_image(self) -> bool:
        return is_image_mime(self.mime_type)

    @property
    def parent_id(self) -> str | None:
        return self.parents[0] if self.parents else None


@dataclass(frozen=True)
class DriveChange:
    """One entry of the Drive change feed."""

    file_id: str | None
    removed: bool = False
    file: DriveFile | None = None

    @property
    def is_deletion(self) -> bool:
        """Removed and trashed are both treated as deletions."""
        return self.removed or bool(self.file and self.file.trashed)


@dataclass(frozen=True)
class ChangePage:
    """One page of the change feed.

    ``next_token`` is the ``nextPageToken`` (None once the feed is exhausted);
    ``new_start_token`` is only present on the final page.
    """

    changes: list[DriveChange]
    next_token: str | None
    new_start_token: str | None = None


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


def map_folder(data: dict[str, Any]) -> DriveFolder:
    return DriveFolder(id=data["id"], name=data.get("name", ""))


def map_file(data: dict[str, Any]) -> DriveFile:
    """Convert a Drive ``files`` resource to a DriveFile."""
    media = data.get("imageMediaMetadata") or {}
    return DriveFile(
        id=data["id"],
        name=data.get("name", ""),
        mime_type=data.get("mimeType", ""),
        parents=list(data.get("parents") or []),
        trashed=bool(data.get("trashed", False)),
        size=_optional_int(data.get("size")),
        width=_optional_int(media.get("width")),
        height=_optional_int(media.get("height")),
    )


def map_change(data: dict[str, Any]) -> DriveChange:
    """Convert a Drive ``changes`` entry to a DriveChange."""
    file_data = data.get("file")
    return DriveChange(
        file_id=data.get("fileId"),
        removed=bool(data.get("removed", False)),
        file=map_file(file_data) if file_data else None,
    )


def map_change_page(data: dict[str, Any]) -> ChangePage:
    return ChangePage(
        changes=[map_change(c) for c in data.get("changes") or []],
        next_token=data.get("nextPageToken"),
        new_start_token=data.get("newStartPageToken"),
    )

"""Shared helpers for repository upserts."""

from __future__ import annotations

from typing import Any


def assign_changed(obj: Any, values: dict[str, Any]) -> bool:
    """Set only attributes whose value differs; return True if any changed.

    Leaving equal values untouched keeps ``updated_at`` stable, so repeated
    syncs of unchanged data produce no writes at all.
    """
    changed = False
    for key, value in values.items():
        if getattr(obj, key) != value:
            setattr(obj, key, value)
            changed = True
    return changed

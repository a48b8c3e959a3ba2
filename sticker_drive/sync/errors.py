"""Exception types shared across the sync pipeline."""

from __future__ import annotations


class ConfigurationError(Exception):
    """Raised when a required credential or setting is missing.

    Never retried: the condition will not fix itself between attempts.
    """


class MissingBaselineError(Exception):
    """Raised when incremental sync has no stored change-feed cursor."""

    def __init__(self) -> None:
        super().__init__("No sync baseline: run a full sync first")

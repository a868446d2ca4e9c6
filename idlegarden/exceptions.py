from __future__ import annotations


class SnapshotError(Exception):
    """Base class for save data problems."""


class SnapshotDecodeError(SnapshotError):
    """Save data could not be parsed into a valid snapshot."""


class SnapshotVersionError(SnapshotDecodeError):
    """Save data was written by a newer, incompatible format version."""

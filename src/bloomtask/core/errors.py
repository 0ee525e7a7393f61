"""
Error types.

The proximity core never raises; these are used at the fetch boundary
(store/location/weather) and translated to empty results by the service layer.
"""

from __future__ import annotations


class BloomTaskError(Exception):
    """Base class for BloomTask errors."""


class StoreError(BloomTaskError):
    """The remote data store could not be queried or written."""


class InvalidOwnerIdError(BloomTaskError, ValueError):
    """An owner id is not a valid UUID; no query is issued."""

    def __init__(self, owner_id: object):
        super().__init__(f"owner id {owner_id!r} is not a valid UUID")
        self.owner_id = owner_id


class LocationUnavailableError(BloomTaskError):
    """The device location provider could not supply a reading (e.g. permission denied)."""

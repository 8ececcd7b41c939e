"""
repositories/errors.py
----------------------
Errors raised by the data access layer.
"""


class ParcelStoreError(Exception):
    """Base class for everything the parcel repository raises."""


class ParcelNotFoundError(ParcelStoreError, LookupError):
    """No parcel row matches the requested number."""

    def __init__(self, number: int):
        super().__init__(f"parcel with number {number} not found")
        self.number = number


class StoreError(ParcelStoreError):
    """
    The store failed: connectivity, constraint violation, or a row that
    could not be mapped to a Parcel. The driver exception is kept as
    ``__cause__``.
    """

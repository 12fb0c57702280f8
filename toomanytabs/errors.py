from __future__ import annotations


class StorageError(Exception):
    """Base class for every data-access failure; unclassified failures map to 500."""

    status_code = 500


class ConnectivityError(StorageError):
    """The store could not be reached or initialized."""


class NotFound(StorageError):
    status_code = 404


class ConstraintViolation(StorageError):
    """Input to a write operation was rejected by the store."""

    status_code = 400


InvalidInput = ConstraintViolation


class DecodeError(StorageError):
    """A stored row does not have the expected columns or types."""


class InvariantViolation(StorageError):
    """A write touched more than one row for a single id."""


def status_for(exc: Exception) -> int:
    if isinstance(exc, StorageError):
        return exc.status_code
    return 500

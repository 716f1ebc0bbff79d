"""Exception types shared across the df12 CMS editing core."""

from __future__ import annotations


class MutationError(ValueError):
    """Raised when a document path cannot be applied to the document."""


class PersistenceError(RuntimeError):
    """Raised when a document, or part of it, could not be persisted."""


class ConcurrentSaveRejected(RuntimeError):
    """Raised when a save is triggered while another save is in flight."""


__all__ = ["ConcurrentSaveRejected", "MutationError", "PersistenceError"]

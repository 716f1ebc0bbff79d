"""Dirty-state tracking for an editing session.

The tracker is a small state machine owned by the controller. Every applied
mutation drives it to ``dirty``; the save orchestrator drives it through
``saving`` into ``saved`` or ``error``. Both of those are transient: after a
display interval ``saved`` falls back to ``clean`` and ``error`` falls back
to ``dirty``, because the failed edits are still only in memory.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import typing as typ

from .._constants import ERROR_DISPLAY_SECONDS, SAVED_DISPLAY_SECONDS
from ..errors import ConcurrentSaveRejected

logger = logging.getLogger(__name__)

StatusListener = typ.Callable[["SaveStatus", "SaveStatus"], None]


class SaveStatus(enum.StrEnum):
    """States an editing session moves through."""

    CLEAN = "clean"
    DIRTY = "dirty"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


class DirtyStateTracker:
    """Track whether the in-memory document holds unpersisted edits.

    Invariant: the status never reads ``clean`` or ``saved`` while a mutation
    exists that was not part of a successful save. Every mutation bumps
    :attr:`mutation_count`; a save that read the document before a later
    mutation ends in ``dirty`` instead of ``saved``.

    Thread safety: Not thread-safe (all operations expected on the event
    loop thread).
    """

    def __init__(
        self,
        *,
        saved_display_seconds: float | None = SAVED_DISPLAY_SECONDS,
        error_display_seconds: float | None = ERROR_DISPLAY_SECONDS,
    ) -> None:
        """Create a tracker in the ``clean`` state.

        Parameters
        ----------
        saved_display_seconds : float or None, optional
            Delay before ``saved`` reverts to ``clean``. ``None`` keeps the
            state until :meth:`expire_transient` is called.
        error_display_seconds : float or None, optional
            Delay before ``error`` reverts to ``dirty``. ``None`` keeps the
            state until :meth:`expire_transient` is called.
        """
        self._status = SaveStatus.CLEAN
        self._mutations = 0
        self._save_baseline = 0
        self._generation = 0
        self._revert_handle: asyncio.TimerHandle | None = None
        self._listeners: list[StatusListener] = []
        self.saved_display_seconds = saved_display_seconds
        self.error_display_seconds = error_display_seconds
        self.last_error: BaseException | None = None

    @property
    def status(self) -> SaveStatus:
        return self._status

    @property
    def mutation_count(self) -> int:
        """Number of mutations recorded so far; read it when taking a snapshot."""
        return self._mutations

    @property
    def is_saving(self) -> bool:
        return self._status is SaveStatus.SAVING

    @property
    def has_unsaved_changes(self) -> bool:
        """Whether edits exist that no successful save has covered yet."""
        return self._status in (SaveStatus.DIRTY, SaveStatus.SAVING, SaveStatus.ERROR)

    @property
    def save_enabled(self) -> bool:
        """Whether the operator-facing save trigger should be enabled."""
        return self._status in (SaveStatus.DIRTY, SaveStatus.ERROR)

    def add_listener(self, listener: StatusListener) -> None:
        """Subscribe to status transitions as ``(old, new)`` pairs."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: StatusListener) -> None:
        """Unsubscribe from status transitions."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def reset(self) -> None:
        """Return to ``clean``; used when a freshly loaded document replaces the old one."""
        self.last_error = None
        self._transition(SaveStatus.CLEAN)

    def mark_dirty(self) -> None:
        """Record that a mutation was applied to the in-memory document."""
        self._mutations += 1
        if self._status is SaveStatus.SAVING:
            return
        self._transition(SaveStatus.DIRTY)

    def begin_save(self) -> None:
        """Enter ``saving``.

        Raises
        ------
        ConcurrentSaveRejected
            If a save is already in flight.
        """
        if self._status is SaveStatus.SAVING:
            msg = "A save is already in progress."
            raise ConcurrentSaveRejected(msg)
        self._save_baseline = self._mutations
        self.last_error = None
        self._transition(SaveStatus.SAVING)

    def complete_save(self, *, persisted_through: int | None = None) -> None:
        """Leave ``saving`` after every persistence stage succeeded.

        Parameters
        ----------
        persisted_through : int or None, optional
            :attr:`mutation_count` at the moment the last persisting stage
            read the document. Defaults to the count when the save began.
            Mutations recorded after it leave the session ``dirty``.
        """
        self._require_saving("complete")
        covered = self._save_baseline if persisted_through is None else persisted_through
        if self._mutations > covered:
            self._transition(SaveStatus.DIRTY)
            return
        self._transition(SaveStatus.SAVED)
        self._schedule_revert(self.saved_display_seconds)

    def fail_save(self, error: BaseException) -> None:
        """Leave ``saving`` after a persistence stage failed."""
        self._require_saving("fail")
        self.last_error = error
        self._transition(SaveStatus.ERROR)
        self._schedule_revert(self.error_display_seconds)

    def expire_transient(self) -> None:
        """Revert a ``saved`` or ``error`` status immediately."""
        if self._status is SaveStatus.SAVED:
            self._transition(SaveStatus.CLEAN)
        elif self._status is SaveStatus.ERROR:
            self._transition(SaveStatus.DIRTY)

    def _require_saving(self, action: str) -> None:
        if self._status is not SaveStatus.SAVING:
            msg = f"Cannot {action} a save while the session is {self._status}."
            raise RuntimeError(msg)

    def _transition(self, new: SaveStatus) -> None:
        old = self._status
        self._cancel_revert()
        self._generation += 1
        if old is new:
            return
        self._status = new
        logger.debug(f"Save status: {old} -> {new}")
        for listener in list(self._listeners):
            try:
                listener(old, new)
            except Exception as e:
                logger.warning(f"Error in save status listener: {e}")

    def _schedule_revert(self, delay: float | None) -> None:
        if delay is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; transient status kept until expired")
            return
        generation = self._generation
        self._revert_handle = loop.call_later(delay, self._revert, generation)

    def _revert(self, generation: int) -> None:
        self._revert_handle = None
        if generation == self._generation:
            self.expire_transient()

    def _cancel_revert(self) -> None:
        if self._revert_handle is not None:
            self._revert_handle.cancel()
            self._revert_handle = None


__all__ = ["DirtyStateTracker", "SaveStatus", "StatusListener"]

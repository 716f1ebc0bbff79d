"""Coordinate every persistence step behind a single save trigger.

When the operator saves, the active section decides which editor callbacks
must flush their local state first (see :class:`SavePlan`). The orchestrator
invokes those callbacks one at a time, each with the current document, and
then persists the whole document through the generic routine unless the
section's callbacks already did so. Failures never escape :meth:`save`; they
end up in the dirty-state tracker and in the returned :class:`SaveReport`.

Examples
--------
>>> import asyncio
>>> from df12_cms.save import CallbackRegistry, DirtyStateTracker, SaveOrchestrator
>>> written = []
>>> async def persist(document):
...     written.append(document)
>>> orchestrator = SaveOrchestrator(
...     registry=CallbackRegistry(),
...     tracker=DirtyStateTracker(),
...     persist=persist,
...     document=lambda: {"hero": {"title": "Welcome"}},
... )
>>> asyncio.run(orchestrator.save("content")).status
<SaveStatus.SAVED: 'saved'>
>>> written
[{'hero': {'title': 'Welcome'}}]
"""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import dataclasses as dc
import inspect
import logging
import typing as typ

from .._constants import DEFAULT_SECTION_CALLBACKS, DEFAULT_SELF_PERSISTING_SECTIONS
from ..errors import ConcurrentSaveRejected, PersistenceError
from .state import SaveStatus

if typ.TYPE_CHECKING:
    from ..document import Document
    from .registry import CallbackRegistry
    from .state import DirtyStateTracker

logger = logging.getLogger(__name__)

PersistFn = typ.Callable[["Document"], typ.Awaitable[None]]
DocumentGetter = typ.Callable[[], "Document"]


@dc.dataclass(frozen=True, slots=True)
class SavePlan:
    """Static wiring from sections to the callbacks a save must run.

    Attributes
    ----------
    section_callbacks : Mapping[str, tuple[str, ...]]
        Callback names per section, in invocation order.
    self_persisting : frozenset[str]
        Sections whose callbacks write the whole document themselves, so the
        generic persistence routine is skipped after they ran.
    """

    section_callbacks: cabc.Mapping[str, tuple[str, ...]] = dc.field(
        default_factory=lambda: dict(DEFAULT_SECTION_CALLBACKS)
    )
    self_persisting: frozenset[str] = DEFAULT_SELF_PERSISTING_SECTIONS

    def callbacks_for(self, section: str) -> tuple[str, ...]:
        return tuple(self.section_callbacks.get(section, ()))

    def is_self_persisting(self, section: str) -> bool:
        return section in self.self_persisting

    def with_section(
        self,
        section: str,
        callbacks: cabc.Sequence[str],
        *,
        self_persisting: bool = False,
    ) -> SavePlan:
        """Return a copy with ``section`` wired to ``callbacks``."""
        section_callbacks = dict(self.section_callbacks)
        section_callbacks[section] = tuple(callbacks)
        persisting = set(self.self_persisting)
        if self_persisting:
            persisting.add(section)
        else:
            persisting.discard(section)
        return SavePlan(
            section_callbacks=section_callbacks, self_persisting=frozenset(persisting)
        )


@dc.dataclass(slots=True)
class SaveReport:
    """Outcome of one :meth:`SaveOrchestrator.save` call.

    Attributes
    ----------
    section : str
        Active section the save was triggered from.
    status : SaveStatus or None
        Tracker status when the save finished; ``None`` for rejected saves.
    callbacks : list[str]
        Callback names that ran to completion, in order.
    persisted : bool
        Whether the generic persistence routine ran successfully.
    rejected : bool
        ``True`` when another save was already in flight.
    error : PersistenceError or None
        Failure that ended the save, if any.
    """

    section: str
    status: SaveStatus | None = None
    callbacks: list[str] = dc.field(default_factory=list)
    persisted: bool = False
    rejected: bool = False
    error: PersistenceError | None = None

    @property
    def ok(self) -> bool:
        return not self.rejected and self.error is None


class SaveOrchestrator:
    """Run section callbacks and generic persistence strictly in sequence."""

    def __init__(
        self,
        *,
        registry: CallbackRegistry,
        tracker: DirtyStateTracker,
        persist: PersistFn,
        document: DocumentGetter,
        plan: SavePlan | None = None,
    ) -> None:
        """Wire the orchestrator to the controller's collaborators.

        Parameters
        ----------
        registry : CallbackRegistry
            Where editors publish their save callbacks.
        tracker : DirtyStateTracker
            Session state driven through ``saving`` into ``saved``/``error``.
        persist : PersistFn
            Generic whole-document persistence routine.
        document : DocumentGetter
            Returns the controller's current document. It is read again
            before every stage so callbacks see each other's updates.
        plan : SavePlan, optional
            Section wiring; defaults to :class:`SavePlan()`.
        """
        self._registry = registry
        self._tracker = tracker
        self._persist = persist
        self._document = document
        self.plan = plan if plan is not None else SavePlan()

    async def save(self, active_section: str) -> SaveReport:
        """Persist every pending edit relevant to ``active_section``.

        A call made while another save is in flight returns immediately with
        ``rejected=True`` and invokes nothing. Errors from any stage are
        recorded on the tracker and the report; the in-memory document keeps
        all of its edits so the operator can retry.
        """
        try:
            self._tracker.begin_save()
        except ConcurrentSaveRejected:
            logger.debug(f"Save for section '{active_section}' rejected: already saving")
            return SaveReport(section=active_section, rejected=True)

        report = SaveReport(section=active_section, status=SaveStatus.SAVING)
        try:
            persisted_through = await self._run_callbacks(active_section, report)
            if self._needs_generic_persist(active_section, report):
                await self._settle()
                persisted_through = self._tracker.mutation_count
                await self._persist(self._document())
                report.persisted = True
        except Exception as exc:
            error = _as_persistence_error(exc, active_section)
            logger.error(f"Saving section '{active_section}' failed: {error}")
            report.error = error
            self._tracker.fail_save(error)
        else:
            self._registry.clear_unsaved(report.callbacks)
            self._tracker.complete_save(persisted_through=persisted_through)
            logger.info(
                f"Saved section '{active_section}' "
                f"(callbacks={report.callbacks}, persisted={report.persisted})"
            )
        finally:
            if self._tracker.is_saving:
                msg = f"Saving section '{active_section}' was interrupted."
                self._tracker.fail_save(PersistenceError(msg))
        report.status = self._tracker.status
        return report

    async def _run_callbacks(self, section: str, report: SaveReport) -> int | None:
        """Run the section's callbacks; return the mutation count at the last read."""
        read_at: int | None = None
        for name in self.plan.callbacks_for(section):
            await self._settle()
            if name not in self._registry:
                logger.debug(f"No save callback registered for '{name}'; skipping")
                continue
            read_at = self._tracker.mutation_count
            result = self._registry.invoke(name, self._document())
            if inspect.isawaitable(result):
                await result
            report.callbacks.append(name)
        return read_at

    def _needs_generic_persist(self, section: str, report: SaveReport) -> bool:
        if not self.plan.is_self_persisting(section):
            return True
        if report.callbacks:
            return False
        logger.warning(
            f"No callback ran for self-persisting section '{section}'; "
            "falling back to generic persistence"
        )
        return True

    @staticmethod
    async def _settle() -> None:
        # Updates scheduled by editors must land before the document is read.
        await asyncio.sleep(0)


def _as_persistence_error(exc: Exception, section: str) -> PersistenceError:
    if isinstance(exc, PersistenceError):
        return exc
    msg = f"Saving section '{section}' failed: {exc}"
    error = PersistenceError(msg)
    error.__cause__ = exc
    return error


__all__ = ["DocumentGetter", "PersistFn", "SaveOrchestrator", "SavePlan", "SaveReport"]

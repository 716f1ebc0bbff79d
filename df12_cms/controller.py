"""The editing-session controller that owns the page document.

Editors never change the document themselves. They call
:meth:`ContentController.update_content` (or one of the style helpers) with
a path and a value; the controller produces a new document, stores it, and
marks the session dirty. A save delegates to the :class:`SaveOrchestrator`
with the active section.

Examples
--------
>>> import asyncio
>>> from df12_cms.controller import ContentController
>>> from df12_cms.store import InMemoryDocumentStore
>>> async def edit() -> str:
...     controller = ContentController(InMemoryDocumentStore())
...     await controller.load("home")
...     controller.update_content("hero.title", "Welcome")
...     report = await controller.save()
...     return report.status
>>> asyncio.run(edit())
<SaveStatus.SAVED: 'saved'>
"""

from __future__ import annotations

import collections.abc as cabc
import logging
import typing as typ

from ._constants import DEFAULT_ACTIVE_SECTION
from .document import merge_button_style, merge_style, mutate, normalize_document
from .errors import MutationError, PersistenceError
from .save import (
    CallbackRegistry,
    DirtyStateTracker,
    SaveOrchestrator,
    SavePlan,
    SaveReport,
    SaveStatus,
)

if typ.TYPE_CHECKING:
    from .document import Document, PathLike
    from .save import RegistrationToken, SaveCallback

logger = logging.getLogger(__name__)


class DocumentSource(typ.Protocol):
    """Backend that loads and persists whole page documents."""

    async def load(self, page: str) -> Document:
        """Return the stored document for ``page``."""
        ...

    async def persist(self, page: str, document: Document) -> None:
        """Store ``document`` as the new version of ``page``.

        Raises
        ------
        PersistenceError
            If the backend rejects or cannot store the document.
        """
        ...


class ContentController:
    """Own the page document, its dirty state, and the save wiring."""

    def __init__(
        self,
        source: DocumentSource,
        *,
        registry: CallbackRegistry | None = None,
        tracker: DirtyStateTracker | None = None,
        plan: SavePlan | None = None,
        active_section: str = DEFAULT_ACTIVE_SECTION,
    ) -> None:
        self._source = source
        self._registry = registry if registry is not None else CallbackRegistry()
        self._tracker = tracker if tracker is not None else DirtyStateTracker()
        self._document: Document = {}
        self._page: str | None = None
        self._active_section = active_section
        self._orchestrator = SaveOrchestrator(
            registry=self._registry,
            tracker=self._tracker,
            persist=self._persist_document,
            document=lambda: self._document,
            plan=plan,
        )

    @property
    def document(self) -> Document:
        """Latest document snapshot; treat it as read-only."""
        return self._document

    @property
    def page(self) -> str | None:
        return self._page

    @property
    def active_section(self) -> str:
        return self._active_section

    @property
    def registry(self) -> CallbackRegistry:
        return self._registry

    @property
    def tracker(self) -> DirtyStateTracker:
        return self._tracker

    @property
    def plan(self) -> SavePlan:
        return self._orchestrator.plan

    @property
    def status(self) -> SaveStatus:
        return self._tracker.status

    @property
    def save_enabled(self) -> bool:
        return self._tracker.save_enabled

    async def load(self, page: str) -> Document:
        """Replace the document with the stored version of ``page``.

        Raises
        ------
        RuntimeError
            If a save is in flight.
        PersistenceError
            If the source cannot load the page.
        """
        if self._tracker.is_saving:
            msg = f"Cannot load page '{page}' while a save is in progress."
            raise RuntimeError(msg)
        loaded = await self._source.load(page)
        self._document = normalize_document(loaded)
        self._page = page
        self._tracker.reset()
        logger.info(f"Loaded page '{page}'")
        return self._document

    def select_section(self, section: str) -> None:
        """Switch the active tab that decides which callbacks a save runs."""
        if not section:
            msg = "Section name cannot be empty."
            raise ValueError(msg)
        self._active_section = section

    def mount(self, name: str, callback: SaveCallback) -> RegistrationToken:
        """Publish an editor's save callback; release the token on unmount."""
        return self._registry.register(name, callback)

    def update_content(self, path: PathLike, value: object) -> Document:
        """Write ``value`` at ``path``; malformed paths keep the current document."""
        try:
            updated = mutate(self._document, path, value)
        except MutationError as exc:
            logger.warning(f"Ignoring update to {str(path)!r}: {exc}")
            return self._document
        return self._apply(updated)

    def update_text_style(self, section: str, field: str, mode: str, value: object) -> Document:
        """Merge one per-mode style field; dropped for sections that do not exist."""
        updated = merge_style(self._document, section, field, mode, value)
        if updated is self._document:
            return self._document
        return self._apply(updated)

    def update_button_style(
        self, mode: str, button_type: str, style: cabc.Mapping[str, object]
    ) -> Document:
        """Merge a theme button style; dropped when the document has no theme."""
        updated = merge_button_style(self._document, mode, button_type, style)
        if updated is self._document:
            return self._document
        return self._apply(updated)

    async def save(self) -> SaveReport:
        """Save through the orchestrator using the active section."""
        return await self._orchestrator.save(self._active_section)

    def _apply(self, updated: cabc.Mapping[str, typ.Any]) -> Document:
        self._document = typ.cast("Document", updated)
        self._tracker.mark_dirty()
        return self._document

    async def _persist_document(self, document: Document) -> None:
        if self._page is None:
            msg = "No page is loaded; nothing to persist."
            raise PersistenceError(msg)
        await self._source.persist(self._page, document)


__all__ = ["ContentController", "DocumentSource"]

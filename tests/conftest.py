"""Shared fixtures for the df12 CMS test suite."""

from __future__ import annotations

import typing as typ

import pytest

from df12_cms.controller import ContentController
from df12_cms.save import CallbackRegistry, DirtyStateTracker
from df12_cms.store import InMemoryDocumentStore

if typ.TYPE_CHECKING:
    from df12_cms.save import SavePlan


@pytest.fixture
def store() -> InMemoryDocumentStore:
    """Return an empty in-memory document store."""
    return InMemoryDocumentStore()


@pytest.fixture
def tracker() -> DirtyStateTracker:
    """Return a tracker whose transient states only expire when asked to."""
    return DirtyStateTracker(saved_display_seconds=None, error_display_seconds=None)


@pytest.fixture
def make_controller(
    store: InMemoryDocumentStore, tracker: DirtyStateTracker
) -> typ.Callable[..., ContentController]:
    """Build controllers sharing the test store and tracker.

    Returns
    -------
    Callable[..., ContentController]
        Factory accepting an optional ``plan`` and ``active_section``.
    """

    def factory(
        *, plan: SavePlan | None = None, active_section: str = "content"
    ) -> ContentController:
        return ContentController(
            store,
            registry=CallbackRegistry(),
            tracker=tracker,
            plan=plan,
            active_section=active_section,
        )

    return factory

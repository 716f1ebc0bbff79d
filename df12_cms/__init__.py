"""Editing core for df12 CMS page documents.

This package holds the pieces the admin panels share when they edit one page
document: copy-on-write path updates, per-mode style merges, dirty-state
tracking, and the save orchestrator that runs editor-published callbacks
before persisting the whole document. The ``cms`` console script exposes the
same controller for scripted edits.

Exports
-------
- ``ContentController``: owns the document and routes edits and saves.
- ``mutate`` / ``merge_style``: pure document updates.
- ``app`` / ``main``: Cyclopts application for the ``cms`` command.

Examples
--------
>>> from df12_cms import mutate
>>> mutate({}, "hero.title", "Welcome")
{'hero': {'title': 'Welcome'}}
"""

from __future__ import annotations

from .cli import app, main
from .controller import ContentController, DocumentSource
from .document import DocumentPath, merge_button_style, merge_style, mutate, read_path
from .errors import ConcurrentSaveRejected, MutationError, PersistenceError
from .save import CallbackRegistry, DirtyStateTracker, SaveOrchestrator, SavePlan, SaveStatus

__all__ = [
    "CallbackRegistry",
    "ConcurrentSaveRejected",
    "ContentController",
    "DirtyStateTracker",
    "DocumentPath",
    "DocumentSource",
    "MutationError",
    "PersistenceError",
    "SaveOrchestrator",
    "SavePlan",
    "SaveStatus",
    "app",
    "main",
    "merge_button_style",
    "merge_style",
    "mutate",
    "read_path",
]

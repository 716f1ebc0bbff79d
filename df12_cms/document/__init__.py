"""Copy-on-write editing primitives for CMS page documents.

This subpackage holds the pure functions editors use to change a page
document: :func:`mutate` writes a value at a dot-separated path,
:func:`merge_style` and :func:`merge_button_style` merge per-mode style
overrides, and :func:`normalize_document` upgrades legacy shapes when a page
is loaded. None of them modify their input.

Examples
--------
>>> from df12_cms.document import merge_style, mutate
>>> page = mutate({}, "hero.title", "Welcome")
>>> merge_style(page, "hero", "titleColor", "light", "#112233")["hero"]
{'title': 'Welcome', 'styles': {'light': {'titleColor': '#112233'}}}
"""

from .normalize import normalize_document
from .paths import (
    Document,
    DocumentPath,
    PathLike,
    migrate_legacy_scalar,
    mutate,
    parse_path,
    read_path,
)
from .styles import merge_button_style, merge_style

__all__ = [
    "Document",
    "DocumentPath",
    "PathLike",
    "merge_button_style",
    "merge_style",
    "migrate_legacy_scalar",
    "mutate",
    "normalize_document",
    "parse_path",
    "read_path",
]

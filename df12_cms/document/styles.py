"""Per-appearance-mode style merges for page sections and theme buttons."""

from __future__ import annotations

import collections.abc as cabc
import copy
import logging
import typing as typ

if typ.TYPE_CHECKING:
    from .paths import Document

logger = logging.getLogger(__name__)


def merge_style(
    document: cabc.Mapping[str, typ.Any],
    section: str,
    field: str,
    mode: str,
    value: object,
) -> cabc.Mapping[str, typ.Any]:
    """Set ``document[section].styles[mode][field]`` without touching siblings.

    Parameters
    ----------
    document : Mapping
        The current page document. It is never modified.
    section : str
        Top-level section owning the styles, for example ``"hero"``.
    field : str
        Style field name, for example ``"titleColor"``.
    mode : str
        Appearance mode, for example ``"light"`` or ``"dark"``.
    value : object
        New value for the field.

    Returns
    -------
    Mapping
        ``document`` itself when ``section`` does not exist (the write is
        dropped), otherwise a new document whose section is a deep copy with
        the field merged in. Every other field under ``styles[mode]`` and
        every other mode under ``styles`` is preserved.
    """
    current = document.get(section)
    if not isinstance(current, cabc.Mapping):
        logger.debug(f"Dropping style write for missing section '{section}'")
        return document

    updated_section = copy.deepcopy(current)
    styles = _child_mapping(updated_section, "styles")
    mode_styles = _child_mapping(styles, mode)
    mode_styles[field] = copy.deepcopy(value)
    return _replace_section(document, section, updated_section)


def merge_button_style(
    document: cabc.Mapping[str, typ.Any],
    mode: str,
    button_type: str,
    style: cabc.Mapping[str, object],
) -> cabc.Mapping[str, typ.Any]:
    """Merge ``style`` into ``theme[mode].buttons[button_type]``.

    Keys absent from ``style`` keep their previous values. Like
    :func:`merge_style`, the write is dropped when the document has no
    ``theme`` section.
    """
    theme = document.get("theme")
    if not isinstance(theme, cabc.Mapping):
        logger.debug("Dropping button style write: document has no theme section")
        return document

    updated_theme = copy.deepcopy(theme)
    buttons = _child_mapping(_child_mapping(updated_theme, mode), "buttons")
    button = _child_mapping(buttons, button_type)
    button.update(copy.deepcopy(dict(style)))
    return _replace_section(document, "theme", updated_theme)


def _child_mapping(parent: cabc.MutableMapping[str, typ.Any], key: str) -> typ.Any:
    child = parent.get(key)
    if not isinstance(child, cabc.MutableMapping):
        child = {}
        parent[key] = child
    return child


def _replace_section(
    document: cabc.Mapping[str, typ.Any], section: str, value: object
) -> Document:
    # Sibling sections are shared with the previous snapshot; both are
    # treated as read-only once handed out.
    updated = document.copy() if isinstance(document, dict) else dict(document)
    updated[section] = value
    return updated


__all__ = ["merge_button_style", "merge_style"]

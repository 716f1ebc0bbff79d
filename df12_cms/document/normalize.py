"""Bring freshly loaded page documents up to the current shape.

Pages stored before per-mode background images and styles existed are
upgraded once, when they are loaded, so editors can always address
``hero.backgroundImage.light`` or ``hero.styles.dark.titleColor``.
"""

from __future__ import annotations

import collections.abc as cabc
import copy
import logging
import typing as typ

from .._constants import (
    LEGACY_SCALAR_FIELDS,
    STYLE_MODES,
    STYLED_SECTIONS,
    THEME_BUTTON_DEFAULTS,
)
from .paths import migrate_legacy_scalar

if typ.TYPE_CHECKING:
    from .paths import Document

logger = logging.getLogger(__name__)


def normalize_document(document: cabc.Mapping[str, typ.Any]) -> Document:
    """Return a normalized deep copy of a loaded page document.

    Only sections that already exist are touched; absent sections stay
    absent so they can be created on first write.
    """
    normalized = copy.deepcopy(document)
    for section, style_fields in STYLED_SECTIONS.items():
        payload = normalized.get(section)
        if not isinstance(payload, cabc.MutableMapping):
            continue
        _migrate_legacy_fields(section, payload)
        _ensure_styles(payload, style_fields)

    theme = normalized.get("theme")
    if isinstance(theme, cabc.MutableMapping):
        _ensure_theme_buttons(theme)
    return normalized


def _migrate_legacy_fields(section: str, payload: cabc.MutableMapping[str, typ.Any]) -> None:
    for field in LEGACY_SCALAR_FIELDS:
        value = payload.get(field)
        if isinstance(value, str):
            logger.debug(f"Migrating legacy '{section}.{field}' on load")
            payload[field] = migrate_legacy_scalar(value)


def _ensure_styles(
    payload: cabc.MutableMapping[str, typ.Any], style_fields: tuple[str, ...]
) -> None:
    if isinstance(payload.get("styles"), cabc.Mapping):
        return
    payload["styles"] = {mode: dict.fromkeys(style_fields, "") for mode in STYLE_MODES}


def _ensure_theme_buttons(theme: cabc.MutableMapping[str, typ.Any]) -> None:
    for mode, defaults in THEME_BUTTON_DEFAULTS.items():
        mode_payload = theme.get(mode)
        if not isinstance(mode_payload, cabc.MutableMapping):
            continue
        buttons = mode_payload.get("buttons")
        if not isinstance(buttons, cabc.MutableMapping):
            buttons = {}
            mode_payload["buttons"] = buttons
        for button_type, style in defaults.items():
            if not buttons.get(button_type):
                buttons[button_type] = dict(style)


__all__ = ["normalize_document"]

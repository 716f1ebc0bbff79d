"""Common literal values used across df12_cms.

These constants keep field names, mode names, and save wiring centralized so
the mutator, the normalizer, the orchestrator, and tests can import the same
values without drifting. Intended for internal use within the df12_cms
package.

Examples
--------
>>> from df12_cms import _constants
>>> "backgroundImage" in _constants.LEGACY_SCALAR_FIELDS
True
>>> _constants.DEFAULT_SECTION_CALLBACKS["cards"]
('cardsDesign', 'valueAddedCardDesign')
"""

from __future__ import annotations

import types

LEGACY_SCALAR_FIELDS: frozenset[str] = frozenset({"backgroundImage"})
# The pre-variant scalar always lands in this slot.
LEGACY_SCALAR_SLOT = "dark"
LEGACY_VARIANT_SLOTS: tuple[str, ...] = ("light", "dark")

STYLE_MODES: tuple[str, ...] = ("light", "dark")
THEME_MODES: tuple[str, ...] = ("lightMode", "darkMode")

DEFAULT_SECTION_CALLBACKS: types.MappingProxyType[str, tuple[str, ...]] = (
    types.MappingProxyType(
        {
            "cards": ("cardsDesign", "valueAddedCardDesign"),
            "content": ("logosBarDesign", "clientLogosDesign"),
        }
    )
)
DEFAULT_SELF_PERSISTING_SECTIONS: frozenset[str] = frozenset({"cards"})
DEFAULT_ACTIVE_SECTION = "content"

SAVED_DISPLAY_SECONDS = 2.0
ERROR_DISPLAY_SECONDS = 3.0

STYLED_SECTIONS: types.MappingProxyType[str, tuple[str, ...]] = (
    types.MappingProxyType(
        {
            "hero": ("titleColor", "subtitleColor", "descriptionColor"),
            "solutions": ("titleColor", "descriptionColor"),
        }
    )
)

THEME_BUTTON_DEFAULTS: types.MappingProxyType[str, dict[str, dict[str, str]]] = (
    types.MappingProxyType(
        {
            "lightMode": {
                "ctaPrimary": {
                    "background": "linear-gradient(135deg, #8B5CF6, #06B6D4)",
                    "textColor": "#FFFFFF",
                    "borderColor": "transparent",
                },
                "contact": {
                    "background": "transparent",
                    "textColor": "#8B5CF6",
                    "borderColor": "linear-gradient(90deg, #8B5CF6, #06B6D4)",
                },
                "dashboard": {
                    "background": "linear-gradient(135deg, #06B6D4, #3B82F6)",
                    "textColor": "#FFFFFF",
                    "borderColor": "transparent",
                },
            },
            "darkMode": {
                "ctaPrimary": {
                    "background": "linear-gradient(135deg, #A78BFA, #22D3EE)",
                    "textColor": "#111827",
                    "borderColor": "transparent",
                },
                "contact": {
                    "background": "transparent",
                    "textColor": "#A78BFA",
                    "borderColor": "linear-gradient(90deg, #A78BFA, #22D3EE)",
                },
                "dashboard": {
                    "background": "linear-gradient(135deg, #22D3EE, #60A5FA)",
                    "textColor": "#111827",
                    "borderColor": "transparent",
                },
            },
        }
    )
)

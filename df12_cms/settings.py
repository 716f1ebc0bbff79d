"""Load editor settings from ``~/.config/df12-cms/config.toml``.

The file is optional; every value has a default. Recognised tables:

.. code-block:: toml

    [store]
    pages_dir = "content/pages"

    [api]
    url = "https://cms.example.com/api"
    token = "..."
    timeout = 10.0

    [display]
    saved_seconds = 2.0
    error_seconds = 3.0

    [save.sections.cards]
    callbacks = ["cardsDesign", "valueAddedCardDesign"]
    self_persisting = true

Sections listed under ``[save.sections]`` replace the built-in wiring for
that section; the other built-in sections are kept.
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import os
import typing as typ
from pathlib import Path

import tomlkit
import tomlkit.exceptions

from ._constants import ERROR_DISPLAY_SECONDS, SAVED_DISPLAY_SECONDS
from .save import DirtyStateTracker, SavePlan

DEFAULT_SETTINGS_PATH = Path(
    os.getenv(
        "DF12_CMS_CONFIG",
        Path.home() / ".config" / "df12-cms" / "config.toml",
    )
)
DEFAULT_PAGES_DIR = Path("content/pages")


class SettingsError(ValueError):
    """Raised when the settings file exists but cannot be used."""


@dc.dataclass(slots=True)
class ApiSettings:
    """Connection details for the remote CMS API, persisted under ``[api]``."""

    url: str | None = None
    token: str | None = None
    timeout: float = 10.0


@dc.dataclass(slots=True)
class AdminSettings:
    """Aggregate settings loaded from ``config.toml``."""

    pages_dir: Path = DEFAULT_PAGES_DIR
    api: ApiSettings = dc.field(default_factory=ApiSettings)
    saved_display_seconds: float = SAVED_DISPLAY_SECONDS
    error_display_seconds: float = ERROR_DISPLAY_SECONDS
    plan: SavePlan = dc.field(default_factory=SavePlan)

    def build_tracker(self) -> DirtyStateTracker:
        """Return a tracker using the configured display intervals."""
        return DirtyStateTracker(
            saved_display_seconds=self.saved_display_seconds,
            error_display_seconds=self.error_display_seconds,
        )


def load_settings(path: Path | None = None) -> AdminSettings:
    """Load settings from ``path`` or from :data:`DEFAULT_SETTINGS_PATH`.

    Parameters
    ----------
    path : Path or None, optional
        Explicit settings file. When omitted, the default location is used
        and a missing file simply yields the defaults.

    Returns
    -------
    AdminSettings
        Settings with defaults filled in for anything the file leaves out.

    Raises
    ------
    FileNotFoundError
        If an explicit ``path`` does not exist.
    SettingsError
        If the file is not valid TOML or a value has the wrong type.
    """
    target = path if path is not None else DEFAULT_SETTINGS_PATH
    if not target.exists():
        if path is not None:
            msg = f"Settings file not found: {target}"
            raise FileNotFoundError(msg)
        return AdminSettings()

    try:
        data = tomlkit.parse(target.read_text(encoding="utf-8")).unwrap()
    except tomlkit.exceptions.ParseError as exc:
        msg = f"Settings file '{target}' is not valid TOML: {exc}"
        raise SettingsError(msg) from exc

    store = _table(data, "store", target)
    api = _table(data, "api", target)
    display = _table(data, "display", target)
    save = _table(data, "save", target)

    return AdminSettings(
        pages_dir=Path(store.get("pages_dir", DEFAULT_PAGES_DIR)),
        api=ApiSettings(
            url=_optional_str(api.get("url")),
            token=_optional_str(api.get("token")),
            timeout=_number(api.get("timeout", 10.0), "api.timeout", target),
        ),
        saved_display_seconds=_number(
            display.get("saved_seconds", SAVED_DISPLAY_SECONDS), "display.saved_seconds", target
        ),
        error_display_seconds=_number(
            display.get("error_seconds", ERROR_DISPLAY_SECONDS), "display.error_seconds", target
        ),
        plan=_build_plan(_table(save, "sections", target), target),
    )


def _build_plan(sections: cabc.Mapping[str, typ.Any], path: Path) -> SavePlan:
    plan = SavePlan()
    for section, payload in sections.items():
        match payload:
            case {"callbacks": list() as callbacks, **rest} if all(
                isinstance(name, str) and name for name in callbacks
            ):
                plan = plan.with_section(
                    section, callbacks, self_persisting=bool(rest.get("self_persisting", False))
                )
            case _:
                msg = (
                    f"Section 'save.sections.{section}' in {path} needs a "
                    "'callbacks' list of names."
                )
                raise SettingsError(msg)
    return plan


def _table(data: cabc.Mapping[str, typ.Any], key: str, path: Path) -> dict[str, typ.Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, cabc.Mapping):
        msg = f"'{key}' in {path} must be a table."
        raise SettingsError(msg)
    return dict(value)


def _number(value: object, key: str, path: Path) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        msg = f"'{key}' in {path} must be a number."
        raise SettingsError(msg)
    return float(value)


def _optional_str(value: object | None) -> str | None:
    """Return a stripped string value or None when empty."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


__all__ = [
    "DEFAULT_SETTINGS_PATH",
    "AdminSettings",
    "ApiSettings",
    "SettingsError",
    "load_settings",
]

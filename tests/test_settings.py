"""Unit tests for settings loading."""

from __future__ import annotations

import typing as typ
from pathlib import Path
from textwrap import dedent

import pytest

from df12_cms import settings as settings_module
from df12_cms.settings import AdminSettings, SettingsError, load_settings

if typ.TYPE_CHECKING:
    from pytest_mock import MockerFixture


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "config.toml"
    path.write_text(dedent(text).lstrip(), encoding="utf-8")
    return path


def test_load_settings_reads_every_table(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        """
        [store]
        pages_dir = "site/pages"

        [api]
        url = "https://cms.example.invalid/api"
        token = "  secret  "
        timeout = 5

        [display]
        saved_seconds = 1.5
        error_seconds = 4

        [save.sections.home]
        callbacks = ["heroDesign"]
        self_persisting = true
        """,
    )

    loaded = load_settings(path)

    assert loaded.pages_dir == Path("site/pages"), f"unexpected pages dir {loaded.pages_dir}"
    assert loaded.api.url == "https://cms.example.invalid/api", f"unexpected url {loaded.api.url!r}"
    assert loaded.api.token == "secret", "expected surrounding whitespace to be stripped"
    assert loaded.api.timeout == 5.0, "expected an integer timeout to become a float"
    assert loaded.saved_display_seconds == 1.5, "unexpected saved interval"
    assert loaded.error_display_seconds == 4.0, "unexpected error interval"
    assert loaded.plan.callbacks_for("home") == ("heroDesign",), "expected the configured callbacks"
    assert loaded.plan.is_self_persisting("home"), "expected the section to self-persist"
    assert loaded.plan.callbacks_for("cards") == ("cardsDesign", "valueAddedCardDesign"), (
        "expected built-in sections to be kept"
    )


def test_missing_default_file_yields_defaults(
    tmp_path: Path, mocker: MockerFixture
) -> None:
    mocker.patch.object(settings_module, "DEFAULT_SETTINGS_PATH", tmp_path / "absent.toml")

    loaded = load_settings()

    assert loaded == AdminSettings(), f"expected defaults, got {loaded!r}"


def test_missing_explicit_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_settings(tmp_path / "absent.toml")


def test_invalid_toml_raises_settings_error(tmp_path: Path) -> None:
    path = _write(tmp_path, "[store\n")

    with pytest.raises(SettingsError, match="not valid TOML"):
        load_settings(path)


@pytest.mark.parametrize(
    "text",
    [
        "store = 3\n",
        "[display]\nsaved_seconds = 'soon'\n",
        "[display]\nerror_seconds = true\n",
        "[save.sections.home]\ncallbacks = 'heroDesign'\n",
        "[save.sections.home]\ncallbacks = ['']\n",
    ],
)
def test_wrongly_typed_values_raise_settings_error(tmp_path: Path, text: str) -> None:
    with pytest.raises(SettingsError):
        load_settings(_write(tmp_path, text))


def test_build_tracker_uses_display_intervals() -> None:
    tracker = AdminSettings(saved_display_seconds=0.5, error_display_seconds=0.25).build_tracker()

    assert tracker.saved_display_seconds == 0.5, "unexpected saved interval"
    assert tracker.error_display_seconds == 0.25, "unexpected error interval"

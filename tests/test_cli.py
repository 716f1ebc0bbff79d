"""Tests for the ``cms`` command functions."""

from __future__ import annotations

import typing as typ
from textwrap import dedent

import pytest
from ruamel.yaml import YAML

from df12_cms import cli

if typ.TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def settings_path(tmp_path: Path) -> Path:
    """Write an empty settings file so the user's own config is never read."""
    path = tmp_path / "config.toml"
    path.write_text("", encoding="utf-8")
    return path


@pytest.fixture
def pages_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "pages"
    directory.mkdir()
    (directory / "home.yaml").write_text(
        dedent(
            """
            hero:
              title: Old
              backgroundImage: bg.png
            theme:
              lightMode:
                buttons: {}
            """
        ).lstrip(),
        encoding="utf-8",
    )
    return directory


def _load(path: Path) -> dict[str, typ.Any]:
    return YAML(typ="safe").load(path.read_text(encoding="utf-8"))


def test_set_writes_value_and_reports_status(
    pages_dir: Path, settings_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    cli.set_value("hero.title", "Welcome", pages_dir=pages_dir, settings=settings_path)

    stored = _load(pages_dir / "home.yaml")
    assert stored["hero"]["title"] == "Welcome", f"unexpected hero {stored['hero']!r}"
    assert stored["hero"]["backgroundImage"] == {"light": "", "dark": "bg.png"}, (
        "expected the legacy background image to be upgraded on save"
    )
    assert capsys.readouterr().out.strip() == "home: saved", "expected the final status on stdout"


def test_set_parses_yaml_values(pages_dir: Path, settings_path: Path) -> None:
    cli.set_value(
        "solutions.items",
        "[{title: One}, {title: Two}]",
        as_yaml=True,
        pages_dir=pages_dir,
        settings=settings_path,
    )

    assert _load(pages_dir / "home.yaml")["solutions"]["items"] == [
        {"title": "One"},
        {"title": "Two"},
    ], "expected YAML input to be parsed into a list"


def test_set_rejects_malformed_path(pages_dir: Path, settings_path: Path) -> None:
    with pytest.raises(ValueError, match="invalid path"):
        cli.set_value("hero..title", "x", pages_dir=pages_dir, settings=settings_path)

    assert _load(pages_dir / "home.yaml")["hero"]["title"] == "Old", "a rejected path must not be saved"


def test_style_merges_mode_field(pages_dir: Path, settings_path: Path) -> None:
    cli.style("hero", "titleColor", "dark", "#112233", pages_dir=pages_dir, settings=settings_path)

    styles = _load(pages_dir / "home.yaml")["hero"]["styles"]
    assert styles["dark"]["titleColor"] == "#112233", f"unexpected styles {styles!r}"
    assert styles["light"]["titleColor"] == "", "expected the other fields to keep their defaults"


def test_style_refuses_missing_section(pages_dir: Path, settings_path: Path) -> None:
    with pytest.raises(ValueError, match="does not exist"):
        cli.style("pricing", "titleColor", "dark", "#fff", pages_dir=pages_dir, settings=settings_path)


def test_button_merges_assignments(pages_dir: Path, settings_path: Path) -> None:
    cli.button(
        "lightMode",
        "contact",
        ["textColor=#000000", "borderColor=none"],
        pages_dir=pages_dir,
        settings=settings_path,
    )

    contact = _load(pages_dir / "home.yaml")["theme"]["lightMode"]["buttons"]["contact"]
    assert contact["textColor"] == "#000000", f"unexpected button {contact!r}"
    assert contact["borderColor"] == "none", f"unexpected button {contact!r}"
    assert contact["background"] == "transparent", "expected default palette keys to remain"


def test_button_rejects_bad_assignment(pages_dir: Path, settings_path: Path) -> None:
    with pytest.raises(ValueError, match="KEY=VALUE"):
        cli.button("lightMode", "contact", ["textColor"], pages_dir=pages_dir, settings=settings_path)


def test_show_prints_scalar_and_mapping(
    pages_dir: Path, settings_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    cli.show(path="hero.title", pages_dir=pages_dir, settings=settings_path)
    assert capsys.readouterr().out.strip() == "Old", "expected the scalar to be printed"

    cli.show(path="theme", pages_dir=pages_dir, settings=settings_path)
    shown = YAML(typ="safe").load(capsys.readouterr().out)
    assert shown == {"lightMode": {"buttons": {}}}, "expected the stored shape, not a normalized one"


def test_show_missing_path_raises(pages_dir: Path, settings_path: Path) -> None:
    with pytest.raises(KeyError):
        cli.show(path="contact.email", pages_dir=pages_dir, settings=settings_path)


def test_save_rewrites_legacy_fields(
    pages_dir: Path, settings_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    cli.save(pages_dir=pages_dir, settings=settings_path)

    stored = _load(pages_dir / "home.yaml")
    assert stored["hero"]["backgroundImage"] == {"light": "", "dark": "bg.png"}, (
        "expected the legacy background image to be upgraded"
    )
    assert "ctaPrimary" in stored["theme"]["lightMode"]["buttons"], "expected default buttons to be stored"
    assert capsys.readouterr().out.strip() == "home: saved", "expected the final status on stdout"


def test_remote_mode_requires_api_url(pages_dir: Path, settings_path: Path) -> None:
    with pytest.raises(ValueError, match=r"\[api\] url"):
        cli.save(remote=True, settings=settings_path)


def test_failed_save_exits_non_zero(
    tmp_path: Path, settings_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """A backend failure is reported on stderr with exit status 1."""
    blocked = tmp_path / "blocked"
    blocked.write_text("not a directory", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli.set_value("hero.title", "x", pages_dir=blocked, settings=settings_path)

    assert excinfo.value.code == 1, f"unexpected exit code {excinfo.value.code}"
    assert "home: error" in capsys.readouterr().err, "expected the failure on stderr"

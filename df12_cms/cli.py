"""Cyclopts CLI entrypoint for editing df12 CMS page documents.

The ``cms`` console script defined here loads a page document, applies one
edit through the same controller the admin panels use, and saves it through
the save orchestrator with the chosen section as the active tab. Pages come
from YAML files under the configured pages directory, or from the remote CMS
API when ``--remote`` is given.

Examples
--------
Set the hero title of the home page:

>>> from df12_cms.cli import app
>>> app.run(["set", "hero.title", "Welcome", "--page", "home"])  # doctest: +SKIP

Change a per-mode text colour:

>>> app.run(["style", "hero", "titleColor", "light", "#112233"])  # doctest: +SKIP
"""

from __future__ import annotations

import asyncio
import logging
import sys
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter
from ruamel.yaml import YAML

from ._constants import DEFAULT_ACTIVE_SECTION
from .api import ApiDocumentSource, CmsApiClient
from .controller import ContentController
from .document import read_path
from .settings import AdminSettings, load_settings
from .store import YamlDocumentStore

if typ.TYPE_CHECKING:
    from .controller import DocumentSource
    from .save import SaveReport

DEFAULT_PAGE = "home"

app = App(name="cms", config=cyclopts.config.Env("INPUT_", command=False))  # type: ignore[unknown-argument]

PageOption = typ.Annotated[str, Parameter(help="Page slug", env_var="INPUT_PAGE")]
SectionOption = typ.Annotated[
    str, Parameter(help="Active section (tab) used to plan the save", env_var="INPUT_SECTION")
]
SettingsOption = typ.Annotated[
    Path | None,
    Parameter(help="Path to settings TOML", env_var="DF12_CMS_CONFIG"),
]
PagesDirOption = typ.Annotated[
    Path | None, Parameter(help="Override the pages directory", env_var="INPUT_PAGES_DIR")
]
RemoteOption = typ.Annotated[bool, Parameter(help="Use the remote CMS API instead of files")]
VerboseOption = typ.Annotated[bool, Parameter(help="Log debug output to stderr")]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _build_source(
    settings: AdminSettings, *, pages_dir: Path | None, remote: bool
) -> DocumentSource:
    """Return the document source selected by the command-line options."""
    if remote:
        if not settings.api.url:
            msg = "Remote mode needs '[api] url' in the settings file."
            raise ValueError(msg)
        client = CmsApiClient(
            api_base=settings.api.url, token=settings.api.token, timeout=settings.api.timeout
        )
        return ApiDocumentSource(client)
    return YamlDocumentStore(pages_dir or settings.pages_dir)


def _parse_value(text: str, *, as_yaml: bool) -> object:
    if not as_yaml:
        return text
    return YAML(typ="safe").load(text)


async def _edit_and_save(
    source: DocumentSource,
    settings: AdminSettings,
    *,
    page: str,
    section: str,
    edit: typ.Callable[[ContentController], object],
    describe: str,
) -> SaveReport:
    controller = ContentController(
        source, tracker=settings.build_tracker(), plan=settings.plan, active_section=section
    )
    await controller.load(page)
    before = controller.document
    edit(controller)
    if controller.document is before:
        msg = f"No change applied to page '{page}': {describe}"
        raise ValueError(msg)
    return await controller.save()


def _run_edit(
    *,
    page: str,
    section: str,
    settings_path: Path | None,
    pages_dir: Path | None,
    remote: bool,
    verbose: bool,
    edit: typ.Callable[[ContentController], object],
    describe: str,
) -> None:
    _configure_logging(verbose)
    settings = load_settings(settings_path)
    source = _build_source(settings, pages_dir=pages_dir, remote=remote)
    report = asyncio.run(
        _edit_and_save(
            source, settings, page=page, section=section, edit=edit, describe=describe
        )
    )
    _report(page, report)


def _report(page: str, report: SaveReport) -> None:
    if report.error is not None:
        print(f"{page}: {report.status} ({report.error})", file=sys.stderr)
        raise SystemExit(1)
    print(f"{page}: {report.status}")


@app.command(help="Print a page document, or the value at one path inside it.")
def show(
    *,
    page: PageOption = DEFAULT_PAGE,
    path: typ.Annotated[str | None, Parameter(help="Dot-separated path to print")] = None,
    settings: SettingsOption = None,
    pages_dir: PagesDirOption = None,
    remote: RemoteOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Print the stored document for ``page`` as YAML.

    Parameters
    ----------
    page : str, optional
        Page slug to read; defaults to ``home``.
    path : str or None, optional
        When given, only the value at this path is printed.
    settings : Path or None, optional
        Settings file overriding the default location.
    pages_dir : Path or None, optional
        Directory of page YAML files overriding the settings value.
    remote : bool, optional
        Read through the CMS API instead of local files.
    verbose : bool, optional
        Enable debug logging.

    Raises
    ------
    KeyError
        If ``path`` does not exist in the document.
    """
    _configure_logging(verbose)
    admin_settings = load_settings(settings)
    source = _build_source(admin_settings, pages_dir=pages_dir, remote=remote)
    document = asyncio.run(source.load(page))
    value: object = document
    if path is not None:
        missing = object()
        value = read_path(document, path, missing)
        if value is missing:
            msg = f"Path '{path}' not found in page '{page}'."
            raise KeyError(msg)
    if isinstance(value, (dict, list)):
        yaml = YAML()
        yaml.indent(mapping=2, sequence=4, offset=2)
        yaml.dump(value, sys.stdout)
    else:
        print(value)


@app.command(name="set", help="Write a value at a dot-separated path and save.")
def set_value(
    path: str,
    value: str,
    *,
    page: PageOption = DEFAULT_PAGE,
    section: SectionOption = DEFAULT_ACTIVE_SECTION,
    as_yaml: typ.Annotated[
        bool, Parameter(name="--yaml", help="Parse VALUE as YAML instead of text")
    ] = False,
    settings: SettingsOption = None,
    pages_dir: PagesDirOption = None,
    remote: RemoteOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Apply ``path = value`` to ``page`` and save it.

    Parameters
    ----------
    path : str
        Dot-separated location, for example ``hero.title``.
    value : str
        New value, stored as text unless ``--yaml`` is given.
    page : str, optional
        Page slug to edit; defaults to ``home``.
    section : str, optional
        Active section deciding which save callbacks run.
    as_yaml : bool, optional
        Parse ``value`` as YAML (numbers, booleans, mappings, lists).

    Raises
    ------
    ValueError
        If the path is malformed or cannot be applied.
    """
    parsed = _parse_value(value, as_yaml=as_yaml)
    _run_edit(
        page=page,
        section=section,
        settings_path=settings,
        pages_dir=pages_dir,
        remote=remote,
        verbose=verbose,
        edit=lambda controller: controller.update_content(path, parsed),
        describe=f"invalid path '{path}'",
    )


@app.command(help="Set a per-mode style field of a section and save.")
def style(
    section_name: typ.Annotated[str, Parameter(name="SECTION")],
    field: str,
    mode: str,
    value: str,
    *,
    page: PageOption = DEFAULT_PAGE,
    section: SectionOption = DEFAULT_ACTIVE_SECTION,
    settings: SettingsOption = None,
    pages_dir: PagesDirOption = None,
    remote: RemoteOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Merge ``styles[mode][field] = value`` into ``section_name`` and save.

    Raises
    ------
    ValueError
        If ``section_name`` does not exist in the page; style writes never
        create sections.
    """
    _run_edit(
        page=page,
        section=section,
        settings_path=settings,
        pages_dir=pages_dir,
        remote=remote,
        verbose=verbose,
        edit=lambda controller: controller.update_text_style(section_name, field, mode, value),
        describe=f"section '{section_name}' does not exist",
    )


@app.command(help="Merge KEY=VALUE pairs into a theme button style and save.")
def button(
    mode: str,
    button_type: str,
    assignments: list[str],
    *,
    page: PageOption = DEFAULT_PAGE,
    section: typ.Annotated[
        str, Parameter(help="Active section (tab) used to plan the save", env_var="INPUT_SECTION")
    ] = "theme",
    settings: SettingsOption = None,
    pages_dir: PagesDirOption = None,
    remote: RemoteOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Merge button style keys such as ``textColor=#FFFFFF`` into the theme."""
    style_update: dict[str, str] = {}
    for assignment in assignments:
        key, sep, raw = assignment.partition("=")
        if not sep or not key:
            msg = f"Expected KEY=VALUE, got {assignment!r}."
            raise ValueError(msg)
        style_update[key] = raw
    _run_edit(
        page=page,
        section=section,
        settings_path=settings,
        pages_dir=pages_dir,
        remote=remote,
        verbose=verbose,
        edit=lambda controller: controller.update_button_style(mode, button_type, style_update),
        describe="the page has no theme section",
    )


@app.command(help="Load a page and save it back, applying load-time upgrades.")
def save(
    *,
    page: PageOption = DEFAULT_PAGE,
    section: SectionOption = DEFAULT_ACTIVE_SECTION,
    settings: SettingsOption = None,
    pages_dir: PagesDirOption = None,
    remote: RemoteOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Re-save ``page`` so legacy fields are stored in their current shape."""
    _configure_logging(verbose)
    admin_settings = load_settings(settings)
    source = _build_source(admin_settings, pages_dir=pages_dir, remote=remote)

    async def _resave() -> SaveReport:
        controller = ContentController(
            source,
            tracker=admin_settings.build_tracker(),
            plan=admin_settings.plan,
            active_section=section,
        )
        await controller.load(page)
        return await controller.save()

    _report(page, asyncio.run(_resave()))


def main() -> None:
    """Invoke the Cyclopts application that powers the ``cms`` console command.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()

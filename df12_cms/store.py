"""Document sources backed by YAML files or plain memory.

:class:`YamlDocumentStore` keeps one ``<page>.yaml`` file per page and uses
ruamel.yaml's round-trip mode so comments and key order written by hand
survive an edit made through the controller. :class:`InMemoryDocumentStore`
keeps pages in a dictionary, which suits embedding and tests.

Example
-------
.. code-block:: python

    from pathlib import Path
    from df12_cms.controller import ContentController
    from df12_cms.store import YamlDocumentStore

    controller = ContentController(YamlDocumentStore(Path("content/pages")))
    await controller.load("home")
    controller.update_content("hero.title", "Welcome")
    await controller.save()
"""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import copy
import logging
import os
import tempfile
import typing as typ
from pathlib import Path

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap
from ruamel.yaml.error import YAMLError

from .errors import PersistenceError

if typ.TYPE_CHECKING:
    from .document import Document

logger = logging.getLogger(__name__)

PAGE_SUFFIX = ".yaml"


def _build_roundtrip_yaml() -> YAML:
    yaml = YAML()
    yaml.preserve_quotes = True
    yaml.width = 120
    yaml.indent(mapping=2, sequence=4, offset=2)
    return yaml


class YamlDocumentStore:
    """Load and persist page documents as YAML files under ``root``."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def path_for(self, page: str) -> Path:
        """Return the file backing ``page``.

        Raises
        ------
        ValueError
            If ``page`` is empty or would escape ``root``.
        """
        slug = page.strip()
        if not slug or slug in {".", ".."} or "/" in slug or "\\" in slug:
            msg = f"Invalid page name {page!r}."
            raise ValueError(msg)
        return self.root / f"{slug}{PAGE_SUFFIX}"

    async def load(self, page: str) -> Document:
        """Read ``page``; a missing file yields an empty document."""
        return await asyncio.to_thread(self._read, self.path_for(page))

    async def persist(self, page: str, document: Document) -> None:
        """Write ``document`` to ``page``'s file, replacing it atomically."""
        await asyncio.to_thread(self._write, self.path_for(page), document)

    def _read(self, path: Path) -> Document:
        if not path.exists():
            logger.debug(f"No stored document at {path}; starting empty")
            return CommentedMap()
        yaml = _build_roundtrip_yaml()
        try:
            with path.open("r", encoding="utf-8") as handle:
                loaded = yaml.load(handle)
        except (OSError, YAMLError) as exc:
            msg = f"Failed to read page document '{path}': {exc}"
            raise PersistenceError(msg) from exc
        if loaded is None:
            return CommentedMap()
        if not isinstance(loaded, cabc.MutableMapping):
            msg = f"Top-level structure of '{path}' must be a mapping."
            raise PersistenceError(msg)
        return typ.cast("Document", loaded)

    def _write(self, path: Path, document: Document) -> None:
        yaml = _build_roundtrip_yaml()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.stem}-", suffix=PAGE_SUFFIX, dir=path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    yaml.dump(document, handle)
                Path(tmp_name).replace(path)
            finally:
                Path(tmp_name).unlink(missing_ok=True)
        except (OSError, YAMLError) as exc:
            msg = f"Failed to write page document '{path}': {exc}"
            raise PersistenceError(msg) from exc
        logger.debug(f"Wrote page document {path}")


class InMemoryDocumentStore:
    """Keep page documents in memory and record every persisted snapshot."""

    def __init__(self, pages: cabc.Mapping[str, Document] | None = None) -> None:
        self._pages: dict[str, Document] = {
            key: copy.deepcopy(value) for key, value in (pages or {}).items()
        }
        self.history: list[tuple[str, Document]] = []

    def get(self, page: str) -> Document | None:
        stored = self._pages.get(page)
        return copy.deepcopy(stored) if stored is not None else None

    async def load(self, page: str) -> Document:
        return copy.deepcopy(self._pages.get(page, {}))

    async def persist(self, page: str, document: Document) -> None:
        snapshot = copy.deepcopy(document)
        self._pages[page] = snapshot
        self.history.append((page, snapshot))


__all__ = ["InMemoryDocumentStore", "YamlDocumentStore"]

"""Path-addressed, copy-on-write updates for CMS page documents.

Editors address values inside a page document with dot-separated paths such
as ``hero.styles.light.titleColor`` or ``solutions.items.0.title``. The
:func:`mutate` helper returns a fresh deep copy of the document with the value
written at that path, creating any missing intermediate mappings on the way.
The input document is never modified.

Fields listed in :data:`df12_cms._constants.LEGACY_SCALAR_FIELDS` used to hold
a bare string instead of a ``{"light": ..., "dark": ...}`` variant object.
When a write descends through such a field and finds a string, the string is
migrated into the variant object first.

Examples
--------
>>> from df12_cms.document.paths import mutate
>>> mutate({}, "a.b.c", 5)
{'a': {'b': {'c': 5}}}
>>> mutate({"hero": {"backgroundImage": "old.png"}}, "hero.backgroundImage.light", "new.png")
{'hero': {'backgroundImage': {'light': 'new.png', 'dark': 'old.png'}}}
"""

from __future__ import annotations

import collections.abc as cabc
import copy
import dataclasses as dc
import logging
import typing as typ

from .._constants import LEGACY_SCALAR_FIELDS, LEGACY_SCALAR_SLOT, LEGACY_VARIANT_SLOTS
from ..errors import MutationError

logger = logging.getLogger(__name__)

Document: typ.TypeAlias = dict[str, typ.Any]
PathLike: typ.TypeAlias = "str | DocumentPath"


@dc.dataclass(frozen=True, slots=True)
class DocumentPath:
    """Validated sequence of keys addressing a node inside a document.

    Attributes
    ----------
    segments : tuple[str, ...]
        Mapping keys or decimal sequence indices, outermost first.
    """

    segments: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.segments:
            msg = "Document path cannot be empty."
            raise MutationError(msg)
        for segment in self.segments:
            _check_segment(segment, ".".join(self.segments))

    @classmethod
    def parse(cls, text: str) -> DocumentPath:
        """Build a path from its dot-separated text form."""
        return cls(parse_path(text))

    def child(self, key: str | int) -> DocumentPath:
        """Return a new path extended by ``key``.

        Integer keys address sequence items and must not be negative.
        """
        if isinstance(key, int):
            if key < 0:
                msg = f"Sequence index {key} under '{self}' must not be negative."
                raise MutationError(msg)
            key = str(key)
        return DocumentPath((*self.segments, key))

    def __str__(self) -> str:
        return ".".join(self.segments)


def parse_path(path: object) -> tuple[str, ...]:
    """Split a dot-separated path into its segments.

    Parameters
    ----------
    path : str or DocumentPath
        Path text such as ``"hero.title"``, or an already parsed path.

    Returns
    -------
    tuple[str, ...]
        The path segments in traversal order.

    Raises
    ------
    MutationError
        If ``path`` is not a string, is empty, or contains an empty segment
        (``"a..b"``, ``".a"``, ``"a."``).
    """
    if isinstance(path, DocumentPath):
        return path.segments
    if not isinstance(path, str):
        msg = f"Document paths must be strings, got {type(path).__name__}."
        raise MutationError(msg)
    if not path:
        msg = "Document path cannot be empty."
        raise MutationError(msg)
    segments = tuple(path.split("."))
    for segment in segments:
        _check_segment(segment, path)
    return segments


def _check_segment(segment: object, path: str) -> None:
    if not isinstance(segment, str):
        msg = f"Path '{path}' contains a non-string segment {segment!r}."
        raise MutationError(msg)
    if not segment:
        msg = f"Path '{path}' contains an empty segment."
        raise MutationError(msg)
    if "." in segment:
        msg = f"Path segment '{segment}' must not contain '.'."
        raise MutationError(msg)


def mutate(document: cabc.Mapping[str, typ.Any], path: PathLike, value: object) -> Document:
    """Return a deep copy of ``document`` with ``value`` written at ``path``.

    Parameters
    ----------
    document : Mapping
        The current page document. It is never modified.
    path : str or DocumentPath
        Dot-separated location to write. Segments are mapping keys unless the
        node at that position is a sequence, in which case they must be
        decimal indices.
    value : object
        The value to store. It is copied so later changes made by the caller
        do not leak into the returned document.

    Returns
    -------
    dict
        A new document sharing no mutable state with ``document``.

    Raises
    ------
    MutationError
        If the path is malformed, if ``document`` is not a mapping, or if a
        segment addresses a sequence with something other than an index in
        range (the final segment may also equal the length to append).
    """
    keys = parse_path(path)
    if not isinstance(document, cabc.Mapping):
        msg = f"Documents must be mappings, got {type(document).__name__}."
        raise MutationError(msg)

    updated = copy.deepcopy(document)
    node: typ.Any = updated
    for depth, key in enumerate(keys[:-1]):
        node = _descend(node, key, keys[: depth + 1])
    _assign(node, keys[-1], copy.deepcopy(value), keys)
    return updated


def read_path(
    document: cabc.Mapping[str, typ.Any], path: PathLike, default: object = None
) -> typ.Any:
    """Return the value stored at ``path`` or ``default`` when it is absent."""
    node: typ.Any = document
    for key in parse_path(path):
        match node:
            case cabc.Mapping() if key in node:
                node = node[key]
            case cabc.MutableSequence() if _is_index(key) and int(key) < len(node):
                node = node[int(key)]
            case _:
                return default
    return node


def migrate_legacy_scalar(value: object) -> dict[str, object]:
    """Wrap a pre-variant scalar into a variant object.

    The old value is always stored under the ``dark`` slot, whichever slot the
    caller goes on to write.
    """
    variants: dict[str, object] = dict.fromkeys(LEGACY_VARIANT_SLOTS, "")
    variants[LEGACY_SCALAR_SLOT] = value or ""
    return variants


def _descend(node: typ.Any, key: str, trail: tuple[str, ...]) -> typ.Any:
    """Return the container under ``key``, creating or converting it as needed."""
    if isinstance(node, cabc.MutableSequence):
        index = _sequence_index(node, key, trail, allow_append=False)
        child = node[index]
        if _is_container(child):
            return child
        replacement = _replacement_for(key, child, trail)
        node[index] = replacement
        return replacement

    child = node.get(key)
    if _is_container(child):
        return child
    replacement = _replacement_for(key, child, trail)
    node[key] = replacement
    return replacement


def _replacement_for(key: str, current: object, trail: tuple[str, ...]) -> dict[str, object]:
    if key in LEGACY_SCALAR_FIELDS and isinstance(current, str):
        logger.debug(f"Migrating legacy scalar at '{'.'.join(trail)}' to variant object")
        return migrate_legacy_scalar(current)
    if current is not None:
        logger.debug(f"Replacing scalar {current!r} at '{'.'.join(trail)}' with a mapping")
    return {}


def _assign(node: typ.Any, key: str, value: object, keys: tuple[str, ...]) -> None:
    if isinstance(node, cabc.MutableSequence):
        index = _sequence_index(node, key, keys, allow_append=True)
        if index == len(node):
            node.append(value)
        else:
            node[index] = value
        return
    node[key] = value


def _sequence_index(
    node: cabc.MutableSequence[typ.Any],
    key: str,
    trail: tuple[str, ...],
    *,
    allow_append: bool,
) -> int:
    joined = ".".join(trail)
    if not _is_index(key):
        msg = f"Path '{joined}' uses key '{key}' on a sequence; expected a decimal index."
        raise MutationError(msg)
    index = int(key)
    limit = len(node) + 1 if allow_append else len(node)
    if index >= limit:
        msg = f"Path '{joined}' index {index} is out of range for a sequence of {len(node)}."
        raise MutationError(msg)
    return index


def _is_index(key: str) -> bool:
    return key.isascii() and key.isdigit()


def _is_container(value: object) -> bool:
    return isinstance(value, (cabc.MutableMapping, cabc.MutableSequence))


__all__ = [
    "Document",
    "DocumentPath",
    "PathLike",
    "migrate_legacy_scalar",
    "mutate",
    "parse_path",
    "read_path",
]

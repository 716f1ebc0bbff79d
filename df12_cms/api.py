r"""HTTP access to the CMS backend's page endpoints.

This module wraps the two page endpoints the editor needs: fetching a page
by slug and replacing its stored content. Server errors and transport
failures are retried by a urllib3 :class:`~urllib3.util.retry.Retry` policy
mounted on the client's sessions; client errors fail straight away.
:class:`ApiDocumentSource` adapts the client to the controller's
document-source interface.

Example
-------
>>> from df12_cms.api import CmsApiClient
>>> client = CmsApiClient(api_base="https://cms.example.invalid/api")  # doctest: +SKIP
>>> page = client.fetch_page("home")  # doctest: +SKIP
>>> sorted(page)  # doctest: +SKIP
['content', 'isPublished', 'seo', 'theme']
"""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import logging
import typing as typ
from http import HTTPStatus

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .errors import PersistenceError

if typ.TYPE_CHECKING:
    from .document import Document

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "http://localhost:5000/api"
READ_RETRIES = 3
WRITE_RETRIES = 2
RETRY_STATUSES: frozenset[int] = frozenset(range(HTTPStatus.INTERNAL_SERVER_ERROR, 600))
# Keys of the page payload kept beside the content sections.
PAGE_SECTION_KEYS: tuple[str, ...] = ("seo", "theme")


def mount_retries(
    session: requests.Session,
    *,
    retries: int,
    methods: cabc.Collection[str],
    backoff_factor: float,
) -> requests.Session:
    """Mount a retrying adapter for ``methods`` on ``session`` and return it.

    Exhausted status retries hand the last response back instead of raising,
    so callers still see the server's status code and body.
    """
    retry = Retry(
        total=retries,
        connect=retries,
        read=retries,
        backoff_factor=backoff_factor,
        status_forcelist=RETRY_STATUSES,
        allowed_methods=frozenset(methods),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class CmsApiClient:
    """Thin wrapper around the CMS ``/cms/pages`` endpoints."""

    default_api_base = DEFAULT_API_BASE

    def __init__(
        self,
        *,
        api_base: str = DEFAULT_API_BASE,
        token: str | None = None,
        session: requests.Session | None = None,
        write_session: requests.Session | None = None,
        timeout: float = 10.0,
        retry_delay: float = 1.0,
    ) -> None:
        """Initialise the client with optional authentication and transport.

        Parameters
        ----------
        api_base : str, optional
            Base URL of the CMS API. Defaults to ``DEFAULT_API_BASE``.
        token : str | None, optional
            Bearer token sent with every request when provided.
        session : requests.Session, optional
            Session used for reads; it gets a retry policy for ``GET`` with
            ``READ_RETRIES`` attempts. Defaults to a new session.
        write_session : requests.Session, optional
            Session used for writes; it gets a retry policy for ``PUT`` with
            ``WRITE_RETRIES`` attempts. Defaults to a new session.
        timeout : float, optional
            Per-request timeout in seconds. Defaults to ``10.0``.
        retry_delay : float, optional
            Backoff factor handed to the retry policy. Defaults to ``1.0``.
        """
        self._api_base = api_base.rstrip("/") or DEFAULT_API_BASE
        self._read_session = mount_retries(
            session or requests.Session(),
            retries=READ_RETRIES,
            methods=("GET",),
            backoff_factor=retry_delay,
        )
        self._write_session = mount_retries(
            write_session or requests.Session(),
            retries=WRITE_RETRIES,
            methods=("PUT",),
            backoff_factor=retry_delay,
        )
        self.timeout = timeout
        self._headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "User-Agent": "df12-cms/0.1",
        }
        if token:
            self._headers["Authorization"] = f"Bearer {token}"

    def page_url(self, slug: str) -> str:
        normalized = slug.strip()
        if not normalized:
            msg = "Page slug cannot be empty"
            raise ValueError(msg)
        return f"{self._api_base}/cms/pages/{normalized}"

    def fetch_page(self, slug: str) -> dict[str, typ.Any]:
        """Return the stored page payload for ``slug``.

        Raises
        ------
        PersistenceError
            If the request keeps failing, the API answers with an error
            status, or the payload reports ``success: false``.
        """
        action = f"fetch page '{slug}'"
        response = self._request(self._read_session, "GET", self.page_url(slug), action=action)
        return self._unwrap(response, action=action)

    def update_page(self, slug: str, payload: cabc.Mapping[str, typ.Any]) -> dict[str, typ.Any]:
        """Replace the stored page ``slug`` with ``payload``.

        Raises
        ------
        PersistenceError
            If the update is rejected or cannot be delivered.
        """
        action = f"update page '{slug}'"
        response = self._request(
            self._write_session,
            "PUT",
            self.page_url(slug),
            action=action,
            json=clean_payload(payload),
        )
        return self._unwrap(response, action=action)

    def close(self) -> None:
        """Close both underlying sessions."""
        self._read_session.close()
        self._write_session.close()

    def _request(
        self,
        session: requests.Session,
        method: str,
        url: str,
        *,
        action: str,
        **kwargs: typ.Any,
    ) -> requests.Response:
        try:
            return session.request(
                method, url, headers=self._headers, timeout=self.timeout, **kwargs
            )
        except requests.RequestException as exc:
            logger.warning(f"Request to {action} failed after retries: {exc}")
            msg = f"Failed to {action}: {exc}"
            raise PersistenceError(msg) from exc

    @staticmethod
    def _unwrap(response: requests.Response, *, action: str) -> dict[str, typ.Any]:
        if response.status_code >= HTTPStatus.BAD_REQUEST:
            snippet = response.text[:200]
            msg = f"Failed to {action}: status {response.status_code}: {snippet}"
            raise PersistenceError(msg)
        try:
            body = response.json()
        except ValueError as exc:
            msg = f"Response to {action} was not valid JSON"
            raise PersistenceError(msg) from exc
        if not isinstance(body, dict) or not body.get("success"):
            message = body.get("message") if isinstance(body, dict) else None
            msg = f"Failed to {action}: {message or 'the API reported a failure'}"
            raise PersistenceError(msg)
        data = body.get("data")
        return data if isinstance(data, dict) else {}


def clean_payload(value: typ.Any) -> typ.Any:
    """Drop ``_id`` entries holding raw binary ObjectId buffers."""
    if isinstance(value, cabc.Mapping):
        return {
            key: clean_payload(item)
            for key, item in value.items()
            if not (key == "_id" and isinstance(item, cabc.Mapping) and "buffer" in item)
        }
    if isinstance(value, (list, tuple)):
        return [clean_payload(item) for item in value]
    return value


def page_to_document(page: cabc.Mapping[str, typ.Any]) -> Document:
    """Flatten a page payload into a document of sections.

    The ``content`` sections become top-level sections, and ``seo`` and
    ``theme`` sit beside them.
    """
    content = page.get("content") or {}
    document: Document = dict(content) if isinstance(content, cabc.Mapping) else {}
    for key in PAGE_SECTION_KEYS:
        if key in page:
            document[key] = page[key]
    return document


def document_to_page(
    document: cabc.Mapping[str, typ.Any], *, is_published: bool | None = None
) -> dict[str, typ.Any]:
    """Split a document back into the page payload the API expects."""
    payload: dict[str, typ.Any] = {
        "content": {
            key: value for key, value in document.items() if key not in PAGE_SECTION_KEYS
        },
    }
    for key in PAGE_SECTION_KEYS:
        if key in document:
            payload[key] = document[key]
    if is_published is not None:
        payload["isPublished"] = is_published
    return payload


class ApiDocumentSource:
    """Document source backed by :class:`CmsApiClient`.

    Blocking HTTP calls run in a worker thread so the event loop stays free.
    The ``isPublished`` flag of each loaded page is remembered and sent back
    unchanged on persist.
    """

    def __init__(self, client: CmsApiClient) -> None:
        self._client = client
        self._published: dict[str, bool] = {}

    async def load(self, page: str) -> Document:
        payload = await asyncio.to_thread(self._client.fetch_page, page)
        if "isPublished" in payload:
            self._published[page] = bool(payload["isPublished"])
        return page_to_document(payload)

    async def persist(self, page: str, document: Document) -> None:
        payload = document_to_page(document, is_published=self._published.get(page))
        await asyncio.to_thread(self._client.update_page, page, payload)


__all__ = [
    "DEFAULT_API_BASE",
    "ApiDocumentSource",
    "CmsApiClient",
    "clean_payload",
    "document_to_page",
    "mount_retries",
    "page_to_document",
]

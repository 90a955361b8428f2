r"""Client for the Moegirlpedia MediaWiki API.

This module wraps the two API calls the tools need: full-text search
(``action=query&list=search``) and raw wikitext retrieval
(``action=parse&prop=wikitext``). Payloads are normalised into dataclasses;
transport and HTTP failures surface as :class:`MoegirlAPIError`.

Example
-------
>>> from moegirl_pages.client import MoegirlClient
>>> client = MoegirlClient(timeout=5)  # doctest: +SKIP
>>> page = client.fetch_page(title="初音未来")  # doctest: +SKIP
>>> page.content.startswith("{{")  # doctest: +SKIP
True
"""

from __future__ import annotations

import dataclasses as dc
import json
import logging
import typing as typ
from http import HTTPStatus

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ._constants import (
    DEFAULT_API_ENDPOINT,
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_RETRIES,
    DEFAULT_TIMEOUT,
    DEFAULT_USER_AGENT,
    PAGE_URL_TEMPLATE,
)
from .errors import MoegirlAPIError

logger = logging.getLogger(__name__)

_MISSING_PAGE_CODES = frozenset({"missingtitle", "nosuchpageid", "invalidtitle"})
_RETRY_STATUSES = (429, 500, 502, 503, 504)


def retrying_session(
    *, retries: int = DEFAULT_RETRIES, backoff_factor: float = DEFAULT_BACKOFF_FACTOR
) -> requests.Session:
    """Return a session that retries failed GET requests with exponential backoff.

    Connection errors, read errors and the transient statuses in
    ``_RETRY_STATUSES`` are retried up to ``retries`` times; urllib3 sleeps
    ``backoff_factor * 2 ** (attempt - 1)`` seconds between attempts.
    """
    session = requests.Session()
    retry = Retry(
        total=retries,
        read=retries,
        connect=retries,
        backoff_factor=backoff_factor,
        status_forcelist=_RETRY_STATUSES,
        allowed_methods=("GET", "HEAD"),
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


@dc.dataclass(slots=True)
class SearchResult:
    """One hit returned by the wiki search API.

    Attributes
    ----------
    title : str
        Page title.
    pageid : int
        Numeric page id.
    url : str
        Canonical ``index.php?curid=`` link to the page.
    snippet : str
        HTML-highlighted excerpt; may be empty.
    """

    title: str
    pageid: int
    url: str
    snippet: str = ""


@dc.dataclass(slots=True)
class PageContent:
    """Raw wikitext of one page, plus its cleaned rendition when requested."""

    title: str
    pageid: int
    content: str
    cleaned_content: str | None = None

    @property
    def url(self) -> str:
        return PAGE_URL_TEMPLATE.format(pageid=self.pageid)


class MoegirlClient:
    """Thin wrapper around the MediaWiki ``api.php`` endpoint.

    The client centralises the endpoint, headers and timeout. Unless a
    session is supplied, requests go through :func:`retrying_session`, so
    connection errors and transient 5xx answers are retried with backoff.
    """

    def __init__(
        self,
        *,
        api_endpoint: str = DEFAULT_API_ENDPOINT,
        user_agent: str = DEFAULT_USER_AGENT,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        retries: int = DEFAULT_RETRIES,
        backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
    ) -> None:
        """Initialise the client.

        Parameters
        ----------
        api_endpoint : str, optional
            Full URL of ``api.php``. Defaults to the Chinese Moegirlpedia.
        user_agent : str, optional
            ``User-Agent`` header sent with every request.
        session : requests.Session, optional
            Preconfigured session to reuse connections. Defaults to a
            retrying session built from ``retries`` and ``backoff_factor``.
        timeout : float, optional
            Per-request timeout in seconds. Defaults to ``15.0``.
        retries : int, optional
            Transport retries for the default session. Defaults to ``3``.
        backoff_factor : float, optional
            urllib3 backoff factor for the default session. Defaults to
            ``0.5``.
        """
        self._api_endpoint = api_endpoint.strip() or DEFAULT_API_ENDPOINT
        if session is None:
            session = retrying_session(retries=retries, backoff_factor=backoff_factor)
        self._session = session
        self.timeout = timeout
        self._headers = {"Accept": "application/json", "User-Agent": user_agent}

    def _get(self, params: dict[str, typ.Any], *, what: str, timeout: float | None = None) -> dict[str, typ.Any]:
        query = {"format": "json", **params}
        try:
            response = self._session.get(
                self._api_endpoint,
                params=query,
                headers=self._headers,
                timeout=timeout or self.timeout,
            )
        except requests.RequestException as exc:
            msg = f"Failed to reach {self._api_endpoint} for {what}: {exc}"
            raise MoegirlAPIError(msg) from exc

        if response.status_code >= HTTPStatus.BAD_REQUEST:
            snippet = response.text[:200]
            msg = f"{what} failed with status {response.status_code}: {snippet}"
            raise MoegirlAPIError(msg)

        try:
            payload = response.json()
        except (json.JSONDecodeError, ValueError) as exc:
            msg = f"Response for {what} was not valid JSON"
            raise MoegirlAPIError(msg) from exc
        if not isinstance(payload, dict):
            msg = f"Response for {what} was not a JSON object"
            raise MoegirlAPIError(msg)
        return payload

    def search(self, keyword: str, limit: int = 5) -> list[SearchResult]:
        """Return up to ``limit`` pages matching ``keyword``.

        Raises
        ------
        ValueError
            If ``keyword`` is blank or ``limit`` is not positive.
        MoegirlAPIError
            If the request fails.
        """
        normalized = keyword.strip()
        if not normalized:
            msg = "Search keyword cannot be empty"
            raise ValueError(msg)
        if limit < 1:
            msg = f"Search limit must be positive, got {limit}"
            raise ValueError(msg)

        logger.info("searching for %r (limit %d)", normalized, limit)
        payload = self._get(
            {
                "action": "query",
                "list": "search",
                "srsearch": normalized,
                "srlimit": limit,
                "srprop": "snippet",
            },
            what=f"search '{normalized}'",
        )
        hits = (payload.get("query") or {}).get("search")
        if not isinstance(hits, list):
            logger.warning("search for %r returned no result list", normalized)
            return []

        results = [
            SearchResult(
                title=str(item.get("title", "")),
                pageid=int(item.get("pageid", 0)),
                url=PAGE_URL_TEMPLATE.format(pageid=item.get("pageid", 0)),
                snippet=str(item.get("snippet") or ""),
            )
            for item in hits
            if isinstance(item, dict)
        ]
        logger.debug("search for %r found %d results", normalized, len(results))
        return results

    def fetch_page(
        self, *, pageid: int | None = None, title: str | None = None
    ) -> PageContent | None:
        """Return the raw wikitext of a page addressed by id or title.

        Parameters
        ----------
        pageid : int | None, optional
            Numeric page id; takes precedence over ``title``.
        title : str | None, optional
            Page title.

        Returns
        -------
        PageContent | None
            The page, or ``None`` when the wiki reports it does not exist.

        Raises
        ------
        ValueError
            If neither ``pageid`` nor ``title`` is supplied.
        MoegirlAPIError
            If the request fails or the API reports another error.
        """
        params: dict[str, typ.Any] = {"action": "parse", "prop": "wikitext"}
        if pageid:
            params["pageid"] = pageid
            label = f"page id {pageid}"
        elif title and title.strip():
            params["page"] = title.strip()
            label = f"page '{title.strip()}'"
        else:
            msg = "Either pageid or title must be provided"
            raise ValueError(msg)

        logger.info("fetching %s", label)
        payload = self._get(params, what=label)
        error = payload.get("error")
        if isinstance(error, dict):
            code = str(error.get("code", ""))
            if code in _MISSING_PAGE_CODES:
                logger.info("%s does not exist (%s)", label, code)
                return None
            msg = f"API error for {label}: {code} {error.get('info', '')}".rstrip()
            raise MoegirlAPIError(msg)

        parsed = payload.get("parse") or {}
        wikitext = parsed.get("wikitext")
        if isinstance(wikitext, dict):
            wikitext = wikitext.get("*")
        if not isinstance(wikitext, str):
            logger.warning("%s returned no wikitext", label)
            return None

        page = PageContent(
            title=str(parsed.get("title", title or "")),
            pageid=int(parsed.get("pageid", pageid or 0)),
            content=wikitext,
        )
        logger.debug("fetched %s (%d characters)", label, len(page.content))
        return page

    def check_connection(self) -> bool:
        """Return whether the API answers a ``siteinfo`` query.

        Transient failures are retried by the session's transport adapter;
        this method makes a single logical request.
        """
        try:
            payload = self._get(
                {"action": "query", "meta": "siteinfo"},
                what="connection check",
                timeout=10.0,
            )
        except MoegirlAPIError as exc:
            logger.warning("connection check failed: %s", exc)
            return False
        if not payload.get("query"):
            logger.warning("connection check returned no siteinfo")
            return False
        return True


__all__ = ["MoegirlClient", "PageContent", "SearchResult", "retrying_session"]

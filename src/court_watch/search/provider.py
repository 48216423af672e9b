"""
Search providers for the public court notice board.

``SearchProvider`` is the port the pipeline depends on; anything with an
async ``find_latest(query, limit)`` returning newest-first ``FilingInfo``
records (each with its attachment links) satisfies it.

``EOglasnaSearchProvider`` is the production adapter for e-Oglasna, the
Croatian courts' public notice board.  It keeps one ``httpx.AsyncClient``
session open for its lifetime, so the change detector can run many
searches in one scheduler tick over a single connection pool.

Usage:
    async with EOglasnaSearchProvider() as provider:
        filings = await provider.find_latest("Ivan Horvat", limit=2)
"""

from types import TracebackType
from typing import Optional, Protocol
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup, Tag

from court_watch.config import get_settings
from court_watch.core import (
    AttachmentLink,
    FilingInfo,
    Participant,
    SearchProviderError,
    get_logger,
)

logger = get_logger(__name__)

NOT_AVAILABLE = "N/A"


class SearchProvider(Protocol):
    """Source of the latest filings matching a query."""

    async def find_latest(self, query: str, limit: int) -> list[FilingInfo]:
        """
        Return up to ``limit`` filings with retrievable attachments.

        Results are ordered newest first; no match is an empty list, not
        an error.
        """
        ...


def _text(element: Optional[Tag]) -> str:
    if element is None:
        return NOT_AVAILABLE
    text = element.get_text(" ", strip=True)
    return text or NOT_AVAILABLE


def _find_labelled(item: Tag, label: str, selector: str = "small") -> Optional[Tag]:
    """Return the parent of the first ``selector`` element whose text is ``label``."""
    for small in item.select(selector):
        if small.get_text(strip=True) == label:
            return small.parent
    return None


def _parse_participants(item: Tag) -> list[Participant]:
    container = _find_labelled(item, "Sudionici", "small.text-muted.d-block")
    if container is None:
        return []

    participants: list[Participant] = []
    for block in container.select(".d-block"):
        name_el = block.select_one("span:not(.badge)")
        if name_el is None or not name_el.get_text(strip=True):
            continue
        oib_el = block.select_one('small[data-original-title="OIB"]')
        address_el = block.select_one('small[data-original-title="Adresa"]')
        role_el = block.select_one("span.badge-info")
        participants.append(
            Participant(
                name=name_el.get_text(" ", strip=True),
                oib=_text(oib_el).replace("OIB", "").strip() or NOT_AVAILABLE,
                address=_text(address_el).replace("ADRESA", "").strip() or NOT_AVAILABLE,
                role=_text(role_el),
            )
        )
    return participants


def _parse_item(item: Tag, base_url: str) -> Optional[FilingInfo]:
    """Parse one result row; rows without a download link are skipped."""
    title_el = item.select_one('a[href*="/objave/"][target="_blank"]')
    download_el = item.select_one('a[href$="/preuzimanje"]')
    if title_el is None or download_el is None:
        return None

    case_number = _text(item.select_one('a[href*="text="]'))

    court_el = None
    court_container = _find_labelled(item, "Sud", "div small")
    if court_container is not None:
        court_el = court_container.select_one("a span")

    link_text = download_el.get_text(" ", strip=True) or f"Dokumenti za {case_number}"

    return FilingInfo(
        title=_text(title_el),
        case_number=case_number,
        court=_text(court_el),
        date=_text(item.select_one(".m-date")),
        detail_link=urljoin(base_url, title_el.get("href", "")),
        attachment_links=(
            AttachmentLink(url=urljoin(base_url, download_el["href"]), text=link_text),
        ),
        participants=tuple(_parse_participants(item)),
    )


def parse_search_results(html: str, base_url: str, limit: int) -> list[FilingInfo]:
    """
    Parse a result page into filings, keeping page order (newest first).

    Only rows with a direct download link are kept, and at most
    ``limit`` of them are returned.
    """
    if limit <= 0:
        return []
    soup = BeautifulSoup(html, "html.parser")
    filings: list[FilingInfo] = []
    for item in soup.select("li.item.row"):
        filing = _parse_item(item, base_url)
        if filing is not None:
            filings.append(filing)
        if len(filings) >= limit:
            break
    return filings


class EOglasnaSearchProvider:
    """
    ``SearchProvider`` for the e-Oglasna court notice board.

    The HTTP session is opened by ``open()`` (or ``async with``) and
    reused by every ``find_latest()`` call until ``close()``.  Calling
    ``find_latest()`` on an unopened provider opens it.

    Attributes:
        base_url: Notice board origin
        search_path: Path of the search result page
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        search_path: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        settings = get_settings().source
        self.base_url = base_url or settings.base_url
        self.search_path = search_path or settings.search_path
        self._timeout = settings.timeout_seconds
        self._user_agent = settings.user_agent
        self._client = client
        self._owns_client = client is None

    async def open(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self._timeout,
                follow_redirects=True,
                headers={"User-Agent": self._user_agent},
            )
            logger.debug("Opened search session for %s", self.base_url)

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
            logger.debug("Closed search session")

    async def __aenter__(self) -> "EOglasnaSearchProvider":
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        await self.close()

    async def find_latest(self, query: str, limit: int) -> list[FilingInfo]:
        """
        Search the notice board and return the latest filings with documents.

        Raises:
            ValueError: If ``query`` is empty.
            SearchProviderError: On network failure or a non-2xx response.
        """
        if not query or not query.strip():
            raise ValueError("Search query must not be empty")

        await self.open()
        url = urljoin(self.base_url, self.search_path)
        try:
            response = await self._client.get(url, params={"text": query.strip()})
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise SearchProviderError(
                "Court notice board returned an error",
                details=f"HTTP {e.response.status_code} for {query!r}",
            ) from e
        except httpx.HTTPError as e:
            raise SearchProviderError(
                "Court notice board is unreachable",
                details=f"{type(e).__name__}: {e}",
            ) from e

        filings = parse_search_results(response.text, self.base_url, limit)
        if not filings:
            logger.warning("No filings with documents for %r", query)
        else:
            logger.info("Found %d filings with documents for %r", len(filings), query)
        return filings

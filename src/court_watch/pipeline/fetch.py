"""
Attachment fetcher built on httpx.

Downloads the attachment links of a filing into a shared temporary
directory.  The record source is inconsistent about declaring file types,
so each download's extension is resolved through a three-tier fallback:

    1. The filename in the ``Content-Disposition`` header
    2. The declared ``Content-Type`` (generic binary types are ignored)
    3. The link's display text ("zip" → ``.zip``), else ``.bin``

Failures are isolated per link: ``fetch_all()`` logs and skips a link that
times out, returns a non-2xx status, or cannot be written, and continues
with its siblings.

Usage:
    from court_watch.pipeline import AttachmentFetcher

    fetcher = AttachmentFetcher()
    async with CleanupTracker() as cleanup:
        files = await fetcher.fetch_all(filing.attachment_links, cleanup)
"""

import asyncio
import mimetypes
import re
import time
import uuid
from collections.abc import Mapping, Sequence
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional
from urllib.parse import unquote

import httpx

from court_watch.config import get_settings
from court_watch.config.constants import (
    ARCHIVE_LINK_KEYWORD,
    FALLBACK_EXTENSION,
    GENERIC_CONTENT_TYPES,
    SAFE_NAME_LENGTH,
)
from court_watch.core import AttachmentLink, DownloadedFile, FetchError, get_logger
from court_watch.pipeline.cleanup import CleanupTracker

logger = get_logger(__name__)

# Matches filename="a.pdf", filename=a.pdf and filename*=UTF-8''a%20b.pdf
_DISPOSITION_FILENAME = re.compile(r"filename\*?=(?:UTF-8'')?([^;]+)", re.IGNORECASE)
_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9_-]")

# mimetypes' own table misses a few types the source serves.
mimetypes.add_type("application/zip", ".zip")
mimetypes.add_type("application/x-zip-compressed", ".zip")
mimetypes.add_type(
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".docx",
)


def extension_from_disposition(disposition: Optional[str]) -> str:
    """Return the lower-cased extension of the header's filename, or ""."""
    if not disposition:
        return ""
    match = _DISPOSITION_FILENAME.search(disposition)
    if not match:
        return ""
    filename = unquote(match.group(1).strip().strip('"'))
    return Path(filename).suffix.lower()


def extension_from_content_type(content_type: Optional[str]) -> str:
    """Map a MIME type to an extension, rejecting generic binary types."""
    if not content_type:
        return ""
    mime = content_type.split(";", 1)[0].strip().lower()
    if not mime or mime in GENERIC_CONTENT_TYPES:
        return ""
    extension = mimetypes.guess_extension(mime, strict=False) or ""
    if extension == FALLBACK_EXTENSION:
        return ""
    return extension


def extension_from_link_text(link_text: Optional[str]) -> str:
    """Last resort: infer a container from the link text, else ``.bin``."""
    if link_text and ARCHIVE_LINK_KEYWORD in link_text.lower():
        return ".zip"
    return FALLBACK_EXTENSION


def resolve_extension(headers: Mapping[str, str], link_text: Optional[str]) -> str:
    """
    Resolve a download's file extension from response metadata.

    Args:
        headers: Response headers (case-insensitive mapping)
        link_text: Display text of the link that was followed

    Returns:
        Extension including the leading dot (never empty).

    Example:
        >>> resolve_extension({"content-type": "application/octet-stream"}, "Preuzmi zip")
        '.zip'
    """
    extension = extension_from_disposition(headers.get("content-disposition"))
    if extension:
        logger.debug("Extension %s from Content-Disposition", extension)
        return extension

    extension = extension_from_content_type(headers.get("content-type"))
    if extension:
        logger.debug("Extension %s from Content-Type", extension)
        return extension

    extension = extension_from_link_text(link_text)
    logger.debug("Extension %s from link text fallback", extension)
    return extension


def safe_display_name(text: Optional[str]) -> str:
    """Sanitise a display name for use inside a local filename."""
    return _UNSAFE_CHARS.sub("_", text or "document")[:SAFE_NAME_LENGTH]


class AttachmentFetcher:
    """
    Downloads attachment links to local storage.

    Local filenames combine a millisecond timestamp, a random suffix, and
    the sanitised display text, so concurrent runs sharing the download
    directory practically never collide.

    Attributes:
        download_dir: Shared temporary directory (created if absent)
        timeout: Per-request timeout in seconds
        max_file_size: Downloads larger than this are aborted

    Example:
        >>> fetcher = AttachmentFetcher(download_dir=Path("/tmp/uploads"))
        >>> downloaded = await fetcher.fetch(link)
    """

    def __init__(
        self,
        download_dir: Optional[Path] = None,
        timeout: Optional[float] = None,
        max_file_size: Optional[int] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Initialise the fetcher.

        Args:
            download_dir: Target directory. Defaults to ``settings.fetch.download_dir``.
            timeout: Request timeout. Defaults to ``settings.fetch.timeout_seconds``.
            max_file_size: Size cap in bytes. Defaults to ``settings.fetch.max_file_size``.
            client: Pre-built client (tests inject one with a mock transport).
                When omitted, a client is created for each ``fetch_all()``.
        """
        settings = get_settings()
        self.download_dir = Path(download_dir or settings.fetch.download_dir)
        self.timeout = timeout if timeout is not None else settings.fetch.timeout_seconds
        self.max_file_size = max_file_size or settings.fetch.max_file_size
        self._client = client

    @asynccontextmanager
    async def _client_scope(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout, connect=30),
            follow_redirects=True,
        ) as client:
            yield client

    def _target_path(self, link_text: str, extension: str) -> Path:
        base = f"{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}_{safe_display_name(link_text)}"
        return self.download_dir / f"{base}{extension}"

    async def fetch(
        self,
        link: AttachmentLink,
        cleanup: Optional[CleanupTracker] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> DownloadedFile:
        """
        Download a single attachment.

        The target path is registered with ``cleanup`` before the first
        byte is written, so a partially written file is still removed.

        Args:
            link: Link to download
            cleanup: Run-scoped tracker that will own the file
            client: Client to use (``fetch_all()`` shares one per batch)

        Returns:
            DownloadedFile describing the saved file.

        Raises:
            FetchError: On timeout, non-2xx status, oversize body, or
                local write failure.
        """
        if client is None:
            async with self._client_scope() as scoped:
                return await self.fetch(link, cleanup, client=scoped)

        path: Optional[Path] = None
        try:
            await asyncio.to_thread(self.download_dir.mkdir, parents=True, exist_ok=True)
            async with client.stream("GET", link.url) as response:
                response.raise_for_status()

                declared = response.headers.get("content-length")
                if declared and declared.isdigit() and int(declared) > self.max_file_size:
                    raise FetchError(
                        f"Attachment too large: {link.text}",
                        details=f"{declared} bytes",
                    )

                extension = resolve_extension(response.headers, link.text)
                path = self._target_path(link.text, extension)
                if cleanup is not None:
                    cleanup.track(path)

                # Disk I/O runs in worker threads.
                size = 0
                f = await asyncio.to_thread(open, path, "wb")
                try:
                    async for chunk in response.aiter_bytes(chunk_size=65536):
                        size += len(chunk)
                        if size > self.max_file_size:
                            raise FetchError(
                                f"Attachment exceeded size limit: {link.text}",
                                details=f"more than {self.max_file_size} bytes",
                            )
                        await asyncio.to_thread(f.write, chunk)
                finally:
                    await asyncio.to_thread(f.close)
        except FetchError:
            self._discard(path, cleanup)
            raise
        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"Download failed for {link.text}",
                details=f"HTTP {e.response.status_code} from {link.url}",
            ) from e
        except (httpx.TransportError, httpx.InvalidURL) as e:
            self._discard(path, cleanup)
            raise FetchError(
                f"Download failed for {link.text}",
                details=f"{type(e).__name__}: {e}",
            ) from e
        except OSError as e:
            self._discard(path, cleanup)
            raise FetchError(
                f"Could not save {link.text}",
                details=str(e),
            ) from e

        logger.info("Downloaded %s (%d bytes) → %s", link.text, size, path.name)
        return DownloadedFile(path=path, url=link.url, text=link.text)

    @staticmethod
    def _discard(path: Optional[Path], cleanup: Optional[CleanupTracker]) -> None:
        """Remove a partial download that no tracker owns."""
        if path is None or cleanup is not None:
            return
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Failed to remove partial download %s: %s", path, e)

    async def fetch_all(
        self,
        links: Sequence[AttachmentLink],
        cleanup: Optional[CleanupTracker] = None,
    ) -> list[DownloadedFile]:
        """
        Download every link, skipping (and logging) the ones that fail.

        Links are fetched one after another over a shared client; the
        order of the result follows ``links``.

        Args:
            links: Attachment links of one filing
            cleanup: Run-scoped tracker that will own the files

        Returns:
            Successfully downloaded files (possibly empty).
        """
        downloaded: list[DownloadedFile] = []
        async with self._client_scope() as client:
            for link in links:
                try:
                    downloaded.append(await self.fetch(link, cleanup, client=client))
                except FetchError as e:
                    logger.warning("Skipping attachment: %s", e)
        logger.info("Downloaded %d of %d attachments", len(downloaded), len(links))
        return downloaded

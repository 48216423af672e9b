"""
Compressed-container expansion.

A downloaded ``.zip`` is expanded next to itself; every other file passes
through unchanged.  Entry files are written flat into the container's
directory under a name derived from the container, so entries from
different archives (or nested folders of one archive) cannot overwrite
each other and no entry can escape the download directory.
"""

import asyncio
import shutil
import zipfile
from pathlib import Path, PurePosixPath
from typing import Optional

from court_watch.config.constants import ARCHIVE_EXTENSIONS
from court_watch.core import ArchiveError, DownloadedFile, ExtractedFile, get_logger
from court_watch.pipeline.cleanup import CleanupTracker

logger = get_logger(__name__)


def is_container(path: Path) -> bool:
    """True if the file's extension marks a compressed container."""
    return path.suffix.lower() in ARCHIVE_EXTENSIONS


class ArchiveExpander:
    """
    Expands compressed containers into their member files.

    Example:
        >>> expander = ArchiveExpander()
        >>> files = await expander.expand(downloaded, cleanup)
        >>> [f.text for f in files]
        ['Rješenje.pdf', 'Oglas.docx']
    """

    async def expand(
        self,
        file: DownloadedFile,
        cleanup: Optional[CleanupTracker] = None,
    ) -> list[ExtractedFile]:
        """
        Expand ``file`` if it is a container, else return it as-is.

        The container and every entry path are registered with
        ``cleanup`` before anything is written, so a failure half way
        through still leaves nothing behind once the run's scope exits.

        Args:
            file: A downloaded file
            cleanup: Run-scoped tracker

        Returns:
            One ExtractedFile per file entry (directories skipped), or a
            single-element list for non-container files.

        Raises:
            ArchiveError: If the container is corrupt or an entry cannot
                be written.
        """
        if cleanup is not None:
            cleanup.track(file.path)

        if not is_container(file.path):
            return [ExtractedFile.from_download(file)]

        try:
            extracted = await asyncio.to_thread(self._expand_sync, file, cleanup)
        except (zipfile.BadZipFile, zipfile.LargeZipFile) as e:
            raise ArchiveError(
                f"Corrupt archive: {file.text}",
                details=str(e),
            ) from e
        except (OSError, RuntimeError, ValueError) as e:
            # RuntimeError: encrypted entries; ValueError: bad entry metadata
            raise ArchiveError(
                f"Failed to expand archive: {file.text}",
                details=f"{type(e).__name__}: {e}",
            ) from e

        logger.info("Expanded %s into %d files", file.path.name, len(extracted))
        return extracted

    def _expand_sync(
        self,
        file: DownloadedFile,
        cleanup: Optional[CleanupTracker],
    ) -> list[ExtractedFile]:
        extracted: list[ExtractedFile] = []
        target_dir = file.path.parent

        with zipfile.ZipFile(file.path) as archive:
            for index, info in enumerate(archive.infolist()):
                if info.is_dir():
                    continue

                entry_name = PurePosixPath(info.filename).name
                if not entry_name:
                    continue

                target = target_dir / f"{file.path.stem}_{index}_{entry_name}"
                if cleanup is not None:
                    cleanup.track(target)

                with archive.open(info) as source, open(target, "wb") as sink:
                    shutil.copyfileobj(source, sink)

                extracted.append(
                    ExtractedFile(path=target, text=entry_name, url=file.url)
                )
                logger.debug("Extracted %s → %s", info.filename, target.name)

        return extracted

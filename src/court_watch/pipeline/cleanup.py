"""
Scoped ownership of temporary files created during a pipeline run.

Every path a run writes (downloads, archive containers, expanded entries)
is registered with a ``CleanupTracker`` *before* it is written.  The
tracker is an async context manager: on exit, whether the block returned
or raised, each tracked path is deleted exactly once.  Deletion failures
are logged, never raised, so cleanup cannot mask the run's real outcome.

Usage:
    async with CleanupTracker() as cleanup:
        cleanup.track(path)
        ...
    # path is gone here
"""

import asyncio
from pathlib import Path
from types import TracebackType
from typing import Optional

from court_watch.core import get_logger

logger = get_logger(__name__)


class CleanupTracker:
    """
    Collects paths owned by one run and deletes them on scope exit.

    Tracking the same path twice is harmless; it is deleted once.
    Calling ``cleanup()`` more than once is a no-op after the first call.
    """

    def __init__(self) -> None:
        self._paths: list[Path] = []
        self._seen: set[Path] = set()
        self._done = False

    @property
    def paths(self) -> list[Path]:
        """Tracked paths in registration order."""
        return list(self._paths)

    def track(self, path: Path) -> Path:
        """Register ``path`` for deletion and return it unchanged."""
        path = Path(path)
        if path not in self._seen:
            self._seen.add(path)
            self._paths.append(path)
        return path

    async def cleanup(self) -> None:
        """Delete every tracked path (once per tracker)."""
        if self._done:
            return
        self._done = True
        await asyncio.to_thread(self._delete_all)

    def _delete_all(self) -> None:
        # Entries are removed before their container, and missing files
        # (never written, or already removed) are not an error.
        removed = 0
        for path in reversed(self._paths):
            try:
                path.unlink(missing_ok=True)
                removed += 1
            except OSError as e:
                logger.warning("Failed to delete temporary file %s: %s", path, e)
        logger.debug("Cleanup removed %d of %d tracked files", removed, len(self._paths))

    async def __aenter__(self) -> "CleanupTracker":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        # Shielded so a cancelled run still removes its files.
        await asyncio.shield(self.cleanup())

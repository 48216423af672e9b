"""Tests for CleanupTracker — run-scoped ownership of temporary files."""

import pytest

from court_watch.pipeline.cleanup import CleanupTracker


class TestCleanupTracker:
    """Every tracked path is deleted exactly once on scope exit."""

    @pytest.mark.asyncio
    async def test_deletes_on_normal_exit(self, tmp_path):
        path = tmp_path / "a.txt"
        async with CleanupTracker() as cleanup:
            cleanup.track(path)
            path.write_text("x")
        assert not path.exists()

    @pytest.mark.asyncio
    async def test_deletes_on_exception(self, tmp_path):
        path = tmp_path / "a.txt"
        with pytest.raises(RuntimeError):
            async with CleanupTracker() as cleanup:
                cleanup.track(path)
                path.write_text("x")
                raise RuntimeError("boom")
        assert not path.exists()

    @pytest.mark.asyncio
    async def test_missing_file_is_not_an_error(self, tmp_path):
        """A path tracked before it was written may never exist."""
        async with CleanupTracker() as cleanup:
            cleanup.track(tmp_path / "never-written.bin")

    @pytest.mark.asyncio
    async def test_duplicate_tracking(self, tmp_path):
        cleanup = CleanupTracker()
        cleanup.track(tmp_path / "a")
        cleanup.track(tmp_path / "a")
        assert cleanup.paths == [tmp_path / "a"]

    @pytest.mark.asyncio
    async def test_cleanup_runs_once(self, tmp_path):
        """A file recreated after cleanup belongs to someone else."""
        path = tmp_path / "a.txt"
        cleanup = CleanupTracker()
        cleanup.track(path)
        path.write_text("x")
        await cleanup.cleanup()
        path.write_text("y")
        await cleanup.cleanup()
        assert path.read_text() == "y"

    def test_track_returns_path(self, tmp_path):
        cleanup = CleanupTracker()
        assert cleanup.track(str(tmp_path / "a")) == tmp_path / "a"

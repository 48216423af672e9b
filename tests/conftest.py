"""
Shared pytest fixtures for court-watch tests.

This module provides reusable test data and temporary resources used
across both unit and integration tests:

    - sample_filing: A realistic FilingInfo with one attachment link
    - english: English locale strings (assertions read better in English)
    - download_dir / tmp_db_path: Isolated temporary paths
    - search_results_html: A trimmed e-Oglasna result page
"""

from pathlib import Path

import pytest

from court_watch.config import Messages, get_messages
from court_watch.core import AttachmentLink, FilingInfo, Participant


# ---------------------------------------------------------------------------
# Domain objects
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_filing() -> FilingInfo:
    """
    A realistic, reusable filing.

    The attachment URL points at a host that never resolves; tests that
    download it route requests through ``httpx.MockTransport``.
    """
    return FilingInfo(
        title="Oglas o otvaranju stečajnog postupka",
        case_number="St-123/2024",
        court="Trgovački sud u Zagrebu",
        date="12.03.2024.",
        detail_link="https://court.test/objave/123",
        attachment_links=(
            AttachmentLink(
                url="https://court.test/objave/123/preuzimanje",
                text="Preuzmi zip",
            ),
        ),
        participants=(
            Participant(
                name="Ivan Horvat",
                oib="12345678901",
                address="Ilica 1, Zagreb",
                role="Dužnik",
            ),
        ),
    )


@pytest.fixture
def english() -> Messages:
    """English locale strings, injected wherever a component takes ``messages``."""
    return get_messages("en")


# ---------------------------------------------------------------------------
# Temporary paths
# ---------------------------------------------------------------------------


@pytest.fixture
def download_dir(tmp_path) -> Path:
    """
    Isolated download directory.

    Tests that check cleanup assert this directory is empty afterwards,
    so nothing else may write into it.
    """
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def tmp_db_path(tmp_path) -> str:
    """
    Isolated SQLite database path inside pytest's tmp directory.

    Each test receives a unique temporary directory, so databases never
    collide or persist between runs.
    """
    return str(tmp_path / "test_subscriptions.sqlite")


# ---------------------------------------------------------------------------
# Sample HTML for search provider tests
# ---------------------------------------------------------------------------


@pytest.fixture
def search_results_html() -> str:
    """
    Three result rows in the notice board's markup.

    The second row has no download link and must be skipped; the first
    carries a full participant block.
    """
    return """
    <html><body>
    <ul class="results">
      <li class="item row">
        <div class="col">
          <a href="/objave/123" target="_blank">Oglas o otvaranju stečajnog postupka</a>
          <a href="/pretraga?text=St-123/2024">St-123/2024</a>
          <span class="m-date">12.03.2024.</span>
          <div><small>Sud</small><a href="/sudovi/7"><span>Trgovački sud u Zagrebu</span></a></div>
          <div>
            <small class="text-muted d-block">Sudionici</small>
            <div class="d-block">
              <span>Ivan Horvat</span>
              <small data-original-title="OIB">OIB 12345678901</small>
              <small data-original-title="Adresa">ADRESA Ilica 1, Zagreb</small>
              <span class="badge badge-info">Dužnik</span>
            </div>
          </div>
          <a href="/objave/123/preuzimanje">Preuzmi zip</a>
        </div>
      </li>
      <li class="item row">
        <div class="col">
          <a href="/objave/122" target="_blank">Obavijest bez priloga</a>
          <a href="/pretraga?text=St-122/2024">St-122/2024</a>
          <span class="m-date">10.03.2024.</span>
        </div>
      </li>
      <li class="item row">
        <div class="col">
          <a href="/objave/99" target="_blank">Rješenje o ovrsi</a>
          <a href="/pretraga?text=Ovr-99/2023">Ovr-99/2023</a>
          <span class="m-date">01.12.2023.</span>
          <div><small>Sud</small><a href="/sudovi/3"><span>Općinski sud u Splitu</span></a></div>
          <a href="/objave/99/preuzimanje"></a>
        </div>
      </li>
    </ul>
    </body></html>
    """

"""
Native text extraction and page rendering.

Supported formats:
    - ``.txt``: read as UTF-8, undecodable bytes replaced
    - ``.pdf``: PyMuPDF text layer
    - ``.docx``: python-docx paragraphs

Any other extension yields an empty string.  A corrupt or unreadable file
is logged and also yields ""; the analyzer decides what an empty result
means.  Blocking library calls run in a worker thread.
"""

import asyncio
from pathlib import Path

import docx
import fitz  # PyMuPDF

from court_watch.config.constants import PDF_EXTENSIONS, TEXT_EXTENSIONS, WORD_EXTENSIONS
from court_watch.core import get_logger

logger = get_logger(__name__)


def is_pdf(path: Path) -> bool:
    return path.suffix.lower() in PDF_EXTENSIONS


def _read_text_file(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


def _read_pdf(path: Path) -> str:
    with fitz.open(str(path)) as doc:
        return "\n".join(page.get_text() for page in doc)


def _read_docx(path: Path) -> str:
    document = docx.Document(str(path))
    return "\n".join(p.text for p in document.paragraphs)


def extract_text_sync(path: Path) -> str:
    """Extract the native text layer of ``path`` (blocking)."""
    extension = path.suffix.lower()
    if extension in TEXT_EXTENSIONS:
        reader = _read_text_file
    elif extension in PDF_EXTENSIONS:
        reader = _read_pdf
    elif extension in WORD_EXTENSIONS:
        reader = _read_docx
    else:
        logger.debug("No text extractor for %s", path.name)
        return ""

    try:
        return reader(path).strip()
    except Exception as e:
        # PyMuPDF and python-docx raise library-specific errors for
        # corrupt input; all of them mean "no usable text".
        logger.warning("Text extraction failed for %s: %s", path.name, e)
        return ""


async def extract_text(path: Path) -> str:
    """Async wrapper around ``extract_text_sync``."""
    return await asyncio.to_thread(extract_text_sync, path)


def render_pdf_pages_sync(path: Path, dpi: int, max_pages: int) -> list[bytes]:
    """
    Render the first ``max_pages`` pages of a PDF to PNG bytes (blocking).

    Raises:
        RuntimeError: PyMuPDF's error for files it cannot open.
    """
    zoom = dpi / 72
    matrix = fitz.Matrix(zoom, zoom)
    images: list[bytes] = []
    with fitz.open(str(path)) as doc:
        for page_number, page in enumerate(doc):
            if page_number >= max_pages:
                logger.warning(
                    "Rendering capped at %d pages for %s", max_pages, path.name
                )
                break
            pixmap = page.get_pixmap(matrix=matrix)
            images.append(pixmap.tobytes("png"))
    return images


async def render_pdf_pages(path: Path, dpi: int, max_pages: int) -> list[bytes]:
    """Render PDF pages to PNG images in page order."""
    return await asyncio.to_thread(render_pdf_pages_sync, path, dpi, max_pages)

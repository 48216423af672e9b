"""
Per-document analysis with isolated failures.

For every file of a filing:

    1. Extract the native text layer (plain text, PDF, Word).
    2. If that yields nothing and the file is a PDF, render its pages and
       ask the extraction service to transcribe each page (vision
       fallback); the page texts are joined in page order.
    3. With text in hand, ask the service once for a fixed-shape JSON
       object (case number, parties, decision date, narrative summary)
       built from a bounded prefix of the text.
    4. Strip code fences from the answer, check it is a JSON object, and
       parse it.

Every failure is terminal for its file only and becomes the ``error`` of
that file's ``DocumentAnalysis``; ``analyze()`` itself never raises.
There are no retries.
"""

import asyncio
import json
import re
from collections.abc import Sequence
from typing import Optional

from court_watch.config import Messages, get_messages, get_settings
from court_watch.config.constants import ERROR_RESPONSE_PREVIEW
from court_watch.core import (
    CaseExtraction,
    CourtWatchError,
    DocumentAnalysis,
    ExtractedFile,
    ExtractionError,
    ProgressEvent,
    Step,
    get_logger,
)
from court_watch.pipeline.extract import extract_text, is_pdf, render_pdf_pages
from court_watch.pipeline.llm import ExtractionService
from court_watch.pipeline.progress import NullSink, ProgressSink

logger = get_logger(__name__)

ANALYSIS_PROMPT = (
    "From the court document text below, extract key information as a JSON "
    'object with the following keys: "caseNumber", "parties" (an array of '
    'strings), "decisionDate", and "summary" (a medium-sized paragraph, '
    "nicely formatted, written in {language}). Respond with the JSON object "
    "only. Text:\n\n{text}"
)

PAGE_TRANSCRIPTION_PROMPT = (
    "The image above is page {page} of a scanned court document. Transcribe "
    "all text on the page exactly as written, in reading order. Respond "
    "with the transcription only."
)

_CODE_FENCE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")


def strip_code_fences(raw: str) -> str:
    """Remove a Markdown code-fence wrapper (```json ... ```) if present."""
    return _CODE_FENCE.sub("", raw.strip()).strip()


def parse_extraction(raw: str) -> CaseExtraction:
    """
    Validate and parse the service's answer.

    Raises:
        ExtractionError: If the cleaned answer is not a JSON object. The
            message quotes a truncated copy of the raw answer.
    """
    cleaned = strip_code_fences(raw)
    preview = raw[:ERROR_RESPONSE_PREVIEW]

    if not (cleaned.startswith("{") and cleaned.endswith("}")):
        raise ExtractionError(
            "Extraction service did not return a JSON object",
            details=f"response: {preview!r}",
        )
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ExtractionError(
            f"Malformed JSON from extraction service ({e.msg})",
            details=f"response: {preview!r}",
        ) from e
    if not isinstance(payload, dict):
        raise ExtractionError(
            "Extraction service did not return a JSON object",
            details=f"response: {preview!r}",
        )
    return CaseExtraction.from_json(payload)


class DocumentAnalyzer:
    """
    Turns extracted files into ``DocumentAnalysis`` records.

    Files are analysed concurrently (optionally capped by
    ``max_concurrency``) and the output preserves input order; one file's
    failure never cancels or affects its siblings.

    Attributes:
        service: Extraction service used for vision and analysis calls
        messages: Locale strings (also picks the summary language)
        prompt_char_limit: Prefix of the text sent to the service
        render_dpi: Resolution for the vision fallback
        max_vision_pages: Page cap for the vision fallback
    """

    def __init__(
        self,
        service: ExtractionService,
        messages: Optional[Messages] = None,
        prompt_char_limit: Optional[int] = None,
        render_dpi: Optional[int] = None,
        max_vision_pages: Optional[int] = None,
    ) -> None:
        settings = get_settings()
        self.service = service
        self.messages = messages or get_messages(settings.pipeline.locale)
        self.prompt_char_limit = prompt_char_limit or settings.extraction.prompt_char_limit
        self.render_dpi = render_dpi or settings.extraction.render_dpi
        self.max_vision_pages = max_vision_pages or settings.extraction.max_vision_pages

    async def analyze(
        self,
        files: Sequence[ExtractedFile],
        sink: Optional[ProgressSink] = None,
        max_concurrency: Optional[int] = None,
    ) -> list[DocumentAnalysis]:
        """
        Analyse every file; same length and order in as out.

        Args:
            files: Files of one filing
            sink: Receives one ``analyzing`` event per finished document
            max_concurrency: Optional cap on simultaneous documents
                (None or 0 means all at once)

        Returns:
            One DocumentAnalysis per input file.
        """
        sink = sink or NullSink()
        semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency else None

        async def guarded(file: ExtractedFile) -> DocumentAnalysis:
            if semaphore is None:
                return await self.analyze_one(file, sink)
            async with semaphore:
                return await self.analyze_one(file, sink)

        results = await asyncio.gather(
            *(guarded(f) for f in files), return_exceptions=True
        )

        analyses: list[DocumentAnalysis] = []
        for file, result in zip(files, results):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                # analyze_one() already converts expected failures; this
                # keeps the one-record-per-file contract for anything else.
                logger.exception("Unexpected failure analysing %s", file.text, exc_info=result)
                analyses.append(DocumentAnalysis(file=file, error=f"Unexpected error: {result}"))
            else:
                analyses.append(result)

        failed = sum(1 for a in analyses if not a.succeeded)
        logger.info("Analysed %d documents (%d failed)", len(analyses), failed)
        return analyses

    async def analyze_one(
        self, file: ExtractedFile, sink: Optional[ProgressSink] = None
    ) -> DocumentAnalysis:
        """Analyse a single file, converting every failure into a record."""
        sink = sink or NullSink()
        try:
            text = await self._obtain_text(file)
            if not text:
                raise ExtractionError(
                    "Could not extract text from file",
                    details="unextractable, corrupt, or image-only document",
                )
            prompt = ANALYSIS_PROMPT.format(
                language=self.messages.language,
                text=text[: self.prompt_char_limit],
            )
            raw = await self.service.invoke(prompt)
            result = parse_extraction(raw)
        except CourtWatchError as e:
            logger.warning("Analysis failed for %s: %s", file.text, e)
            sink.emit(
                ProgressEvent(
                    step=Step.ANALYZING,
                    message=self.messages.document_failed.format(name=file.text),
                )
            )
            return DocumentAnalysis(file=file, error=str(e))

        sink.emit(
            ProgressEvent(
                step=Step.ANALYZING,
                message=self.messages.document_analyzed.format(name=file.text),
            )
        )
        return DocumentAnalysis(file=file, result=result)

    async def _obtain_text(self, file: ExtractedFile) -> str:
        text = await extract_text(file.path)
        if text or not is_pdf(file.path):
            return text

        logger.info("No text layer in %s, falling back to page images", file.text)
        try:
            pages = await render_pdf_pages(
                file.path, self.render_dpi, self.max_vision_pages
            )
        except (RuntimeError, ValueError, OSError) as e:
            raise ExtractionError(
                "Could not render PDF pages", details=str(e)
            ) from e

        transcripts: list[str] = []
        for number, image in enumerate(pages, start=1):
            page_text = await self.service.invoke(
                PAGE_TRANSCRIPTION_PROMPT.format(page=number), images=[image]
            )
            transcripts.append(page_text.strip())
        return "\n\n".join(t for t in transcripts if t).strip()

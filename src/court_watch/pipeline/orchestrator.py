"""
Pipeline orchestrator for court filing analysis.

This module coordinates the full analysis pipeline:
    Search → [Fetch → Expand → Analyze] per filing → Synthesize

Scheduling is explicit (see ``SchedulingPolicy``): filings are processed
strictly one after another, while the documents of a single filing are
analysed concurrently.

Every temporary file a run creates is owned by one ``CleanupTracker``
scope and deleted exactly once when the run returns or raises.  Fatal
errors (nothing to process, search failure) are reported as exactly one
``error`` progress event and then re-raised.

Usage:
    from court_watch.pipeline import PipelineOrchestrator

    orchestrator = PipelineOrchestrator(search_provider=provider)

    # Search and analyse the two latest filings
    result = await orchestrator.analyze_query("Ivan Horvat", limit=2, sink=sink)

    # Analyse filings that were already found
    result = await orchestrator.run(filings, sink)
"""

from collections.abc import Sequence
from dataclasses import dataclass

from court_watch.config import Messages, get_messages, get_settings
from court_watch.core import (
    ArchiveError,
    ConfigurationError,
    CourtWatchError,
    DocumentAnalysis,
    DownloadedFile,
    ExtractedFile,
    FilingInfo,
    NoFilingsFoundError,
    PipelineResult,
    ProcessedFiling,
    ProgressEvent,
    Step,
    get_logger,
)
from court_watch.pipeline.analyze import DocumentAnalyzer
from court_watch.pipeline.archive import ArchiveExpander
from court_watch.pipeline.cleanup import CleanupTracker
from court_watch.pipeline.fetch import AttachmentFetcher
from court_watch.pipeline.llm import AnthropicExtractionService, ExtractionService
from court_watch.pipeline.progress import NullSink, ProgressSink
from court_watch.pipeline.synthesize import CaseSynthesizer
from court_watch.search import SearchProvider

logger = get_logger(__name__)

# Overall progress percentages at phase transitions
PROGRESS_SCRAPING = 10
PROGRESS_SETUP = 20
PROGRESS_CASES_START = 25
PROGRESS_CASES_SPAN = 50
PROGRESS_COMPARING = 85
PROGRESS_DONE = 100


@dataclass(frozen=True)
class SchedulingPolicy:
    """
    Two-level scheduling policy of a pipeline run.

    Level 1: filings are processed sequentially, never interleaved, to
    bound load on the record source and the extraction service.
    Level 2: the documents of one filing are fanned out concurrently and
    joined before the next filing starts.

    Attributes:
        max_parallel_documents: Cap on simultaneously analysed documents
            of one filing; 0 means no cap.
    """

    max_parallel_documents: int = 0

    def __post_init__(self) -> None:
        if self.max_parallel_documents < 0:
            raise ValueError("max_parallel_documents must be >= 0")

    @classmethod
    def from_settings(cls) -> "SchedulingPolicy":
        return cls(max_parallel_documents=get_settings().pipeline.max_parallel_documents)


def case_progress(index: int, total: int) -> int:
    """Progress percentage when case ``index`` (1-based) of ``total`` starts."""
    return PROGRESS_CASES_START + int((index - 1) / total * PROGRESS_CASES_SPAN)


class PipelineOrchestrator:
    """
    Coordinates the court filing analysis pipeline.

    This class ties together the search provider, attachment fetcher,
    archive expander, document analyzer, and case synthesizer.

    The orchestrator handles:
        - Analysis of pre-searched filings (``run``)
        - Search plus analysis in one cleanup scope (``analyze_query``)
        - Progress reporting via a ``ProgressSink``
        - Guaranteed deletion of every temporary file

    Example:
        >>> orchestrator = PipelineOrchestrator(search_provider=provider)
        >>> result = await orchestrator.analyze_query("Ivan Horvat")
        >>> print(result.narrative)
    """

    def __init__(
        self,
        search_provider: SearchProvider | None = None,
        fetcher: AttachmentFetcher | None = None,
        expander: ArchiveExpander | None = None,
        analyzer: DocumentAnalyzer | None = None,
        synthesizer: CaseSynthesizer | None = None,
        service: ExtractionService | None = None,
        policy: SchedulingPolicy | None = None,
        messages: Messages | None = None,
    ) -> None:
        """
        Initialise the orchestrator with pipeline components.

        Components are created with defaults if not provided, allowing
        dependency injection for testing.  The Anthropic-backed extraction
        service is only constructed when an analyzer or synthesizer has
        to be built here.

        Args:
            search_provider: Source of filings (required by ``analyze_query``)
            fetcher: AttachmentFetcher instance (optional)
            expander: ArchiveExpander instance (optional)
            analyzer: DocumentAnalyzer instance (optional)
            synthesizer: CaseSynthesizer instance (optional)
            service: Extraction service shared by default analyzer/synthesizer
            policy: Scheduling policy (defaults from settings)
            messages: Locale strings (defaults from settings)
        """
        self.messages = messages or get_messages(get_settings().pipeline.locale)
        self.search_provider = search_provider
        self.fetcher = fetcher or AttachmentFetcher()
        self.expander = expander or ArchiveExpander()
        self.policy = policy or SchedulingPolicy.from_settings()

        if analyzer is None or synthesizer is None:
            service = service or AnthropicExtractionService()
        self.analyzer = analyzer or DocumentAnalyzer(service, messages=self.messages)
        self.synthesizer = synthesizer or CaseSynthesizer(service, messages=self.messages)

        logger.debug("PipelineOrchestrator initialised (%s)", self.policy)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def run(
        self,
        cases: Sequence[FilingInfo],
        sink: ProgressSink | None = None,
    ) -> PipelineResult:
        """
        Analyse filings that were already found.

        Args:
            cases: Filings to process, newest first
            sink: Progress sink (optional)

        Returns:
            PipelineResult with one ProcessedFiling per input filing, in
            input order.

        Raises:
            NoFilingsFoundError: If ``cases`` is empty.
        """
        sink = sink or NullSink()
        async with CleanupTracker() as cleanup:
            try:
                return await self._process_cases(cases, sink, cleanup)
            except Exception as e:
                self._report_fatal(sink, e)
                raise

    async def analyze_query(
        self,
        query: str,
        limit: int | None = None,
        sink: ProgressSink | None = None,
    ) -> PipelineResult:
        """
        Search for the latest filings matching ``query`` and analyse them.

        Args:
            query: Search text (person, company, or case number)
            limit: Number of filings to analyse (defaults from settings)
            sink: Progress sink (optional)

        Returns:
            PipelineResult for the filings found.

        Raises:
            NoFilingsFoundError: If the search finds nothing.
            SearchProviderError: If the record source fails.
        """
        sink = sink or NullSink()
        limit = limit or get_settings().pipeline.default_case_count

        async with CleanupTracker() as cleanup:
            try:
                if self.search_provider is None:
                    raise ConfigurationError("No search provider configured")

                sink.emit(
                    ProgressEvent(
                        step=Step.SCRAPING,
                        message=self.messages.scraping,
                        progress=PROGRESS_SCRAPING,
                    )
                )
                cases = await self.search_provider.find_latest(query, limit)
                logger.info("Search for %r returned %d filings", query, len(cases))
                return await self._process_cases(cases, sink, cleanup)
            except Exception as e:
                self._report_fatal(sink, e)
                raise

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _report_fatal(self, sink: ProgressSink, error: Exception) -> None:
        if isinstance(error, CourtWatchError):
            message = error.message
            logger.error("Pipeline run failed: %s", error)
        else:
            message = self.messages.generic_error
            logger.exception("Pipeline run failed unexpectedly")
        sink.emit(
            ProgressEvent(step=Step.ERROR, message=message, progress=PROGRESS_DONE)
        )

    async def _process_cases(
        self,
        cases: Sequence[FilingInfo],
        sink: ProgressSink,
        cleanup: CleanupTracker,
    ) -> PipelineResult:
        if not cases:
            raise NoFilingsFoundError(self.messages.no_filings)

        total = len(cases)
        sink.emit(
            ProgressEvent(
                step=Step.PROCESSING_SETUP,
                message=self.messages.processing_setup.format(count=total),
                progress=PROGRESS_SETUP,
            )
        )

        processed: list[ProcessedFiling] = []
        for index, filing in enumerate(cases, start=1):
            processed.append(
                await self._process_filing(filing, index, total, sink, cleanup)
            )

        sink.emit(
            ProgressEvent(
                step=Step.COMPARING,
                message=self.messages.comparing,
                progress=PROGRESS_COMPARING,
            )
        )
        narrative = await self.synthesizer.synthesize(processed)
        result = PipelineResult(filings=processed, narrative=narrative)

        sink.emit(
            ProgressEvent(
                step=Step.COMPLETE,
                message=self.messages.complete,
                progress=PROGRESS_DONE,
                data=result.to_public_dict(),
            )
        )
        logger.info("Pipeline run complete: %d filings", len(processed))
        return result

    async def _process_filing(
        self,
        filing: FilingInfo,
        index: int,
        total: int,
        sink: ProgressSink,
        cleanup: CleanupTracker,
    ) -> ProcessedFiling:
        sink.emit(
            ProgressEvent(
                step=Step.PROCESSING_CASE,
                message=self.messages.processing_case.format(
                    index=index, total=total, title=filing.title
                ),
                progress=case_progress(index, total),
            )
        )

        # Download
        sink.emit(
            ProgressEvent(
                step=Step.DOWNLOADING,
                message=self.messages.downloading.format(index=index),
            )
        )
        downloaded = await self.fetcher.fetch_all(filing.attachment_links, cleanup)

        # Expand containers
        sink.emit(
            ProgressEvent(
                step=Step.UNZIPPING,
                message=self.messages.unzipping.format(index=index),
            )
        )
        files, failures = await self._expand_all(downloaded, cleanup)

        if not files:
            logger.warning("No files to analyse for %s", filing.title)
            return ProcessedFiling(
                filing=filing,
                files=downloaded,
                analyses=failures,
                note=self.messages.no_documents,
            )

        # Analyse
        sink.emit(
            ProgressEvent(
                step=Step.ANALYZING,
                message=self.messages.analyzing.format(count=len(files), index=index),
            )
        )
        analyses = await self.analyzer.analyze(
            files, sink, max_concurrency=self.policy.max_parallel_documents
        )
        return ProcessedFiling(
            filing=filing, files=downloaded, analyses=analyses + failures
        )

    async def _expand_all(
        self,
        downloaded: Sequence[DownloadedFile],
        cleanup: CleanupTracker,
    ) -> tuple[list[ExtractedFile], list[DocumentAnalysis]]:
        """Expand every download; a broken container becomes a failed record."""
        files: list[ExtractedFile] = []
        failures: list[DocumentAnalysis] = []
        for download in downloaded:
            try:
                files.extend(await self.expander.expand(download, cleanup))
            except ArchiveError as e:
                logger.warning("Skipping archive %s: %s", download.text, e)
                failures.append(
                    DocumentAnalysis(
                        file=ExtractedFile.from_download(download), error=str(e)
                    )
                )
        return files, failures

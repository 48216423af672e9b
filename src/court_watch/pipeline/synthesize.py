"""
Cross-document synthesis.

Combines the successful per-document summaries of a run into one
narrative.  A run with a single filing gets a case-level summary with a
forecast of next steps; a run with several filings gets a comparative
narrative across them, in the order received (newest first).

This is a best-effort final step: ``synthesize()`` never raises.  Any
failure yields a locale-appropriate fallback string.
"""

from collections.abc import Sequence
from typing import Optional

from court_watch.config import Messages, get_messages, get_settings
from court_watch.core import CourtWatchError, ProcessedFiling, SynthesisError, get_logger
from court_watch.pipeline.llm import ExtractionService

logger = get_logger(__name__)

SINGLE_FILING_PROMPT = (
    "You are assisting a legal analyst. Below are summaries of the documents "
    "attached to one court notice.\n\n"
    "Notice: {title} ({case_number}, {court}, {date})\n\n"
    "{summaries}\n\n"
    "Write one coherent narrative, in {language}, that explains what this "
    "case is about and where it currently stands, then forecast the most "
    "likely next procedural steps."
)

MULTI_FILING_PROMPT = (
    "You are assisting a legal analyst. Below are document summaries for "
    "{count} court notices about the same subject, newest first.\n\n"
    "{blocks}\n\n"
    "Write one comparative narrative, in {language}, that synthesises how "
    "the matter developed across these notices, points out what changed "
    "between them, and forecasts the most likely next procedural steps."
)


def _filing_block(index: int, processed: ProcessedFiling) -> str:
    filing = processed.filing
    summaries = processed.successful_summaries
    body = "\n".join(f"- {s}" for s in summaries) if summaries else "- (no analysable documents)"
    return f"### Notice {index}: {filing.title}\nDate: {filing.date}\n{body}"


class CaseSynthesizer:
    """
    Produces the final narrative of a pipeline run.

    Example:
        >>> synthesizer = CaseSynthesizer(service)
        >>> narrative = await synthesizer.synthesize(processed_filings)
    """

    def __init__(
        self,
        service: ExtractionService,
        messages: Optional[Messages] = None,
    ) -> None:
        self.service = service
        self.messages = messages or get_messages(get_settings().pipeline.locale)

    async def synthesize(self, filings: Sequence[ProcessedFiling]) -> str:
        """Return the run's narrative, or a fallback message on failure."""
        try:
            if not filings:
                return self.messages.no_data
            if len(filings) == 1:
                return await self._synthesize_single(filings[0])
            return await self._synthesize_many(filings)
        except CourtWatchError as e:
            logger.warning("Synthesis failed: %s", e)
            return self.messages.synthesis_failed
        except Exception:
            logger.exception("Unexpected synthesis failure")
            return self.messages.synthesis_failed

    async def _synthesize_single(self, processed: ProcessedFiling) -> str:
        summaries = processed.successful_summaries
        if not summaries:
            return self.messages.no_successful_analysis

        filing = processed.filing
        prompt = SINGLE_FILING_PROMPT.format(
            title=filing.title,
            case_number=filing.case_number,
            court=filing.court,
            date=filing.date,
            summaries="\n\n".join(summaries),
            language=self.messages.language,
        )
        return await self._invoke(prompt)

    async def _synthesize_many(self, filings: Sequence[ProcessedFiling]) -> str:
        if not any(p.successful_summaries for p in filings):
            return self.messages.no_successful_analysis

        blocks = "\n\n".join(
            _filing_block(i, processed) for i, processed in enumerate(filings, start=1)
        )
        prompt = MULTI_FILING_PROMPT.format(
            count=len(filings),
            blocks=blocks,
            language=self.messages.language,
        )
        return await self._invoke(prompt)

    async def _invoke(self, prompt: str) -> str:
        narrative = (await self.service.invoke(prompt)).strip()
        if not narrative:
            raise SynthesisError("Extraction service returned an empty narrative")
        return narrative

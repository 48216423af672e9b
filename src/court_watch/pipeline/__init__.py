"""Pipeline module — fetch, expand, analyse, synthesise.

Usage:
    from court_watch.pipeline import PipelineOrchestrator, StreamSink

    orchestrator = PipelineOrchestrator(search_provider=provider)
    result = await orchestrator.analyze_query("Ivan Horvat", sink=StreamSink())
"""

from court_watch.pipeline.analyze import DocumentAnalyzer, parse_extraction, strip_code_fences
from court_watch.pipeline.archive import ArchiveExpander
from court_watch.pipeline.cleanup import CleanupTracker
from court_watch.pipeline.extract import extract_text, render_pdf_pages
from court_watch.pipeline.fetch import AttachmentFetcher, resolve_extension
from court_watch.pipeline.llm import AnthropicExtractionService, ExtractionService
from court_watch.pipeline.orchestrator import PipelineOrchestrator, SchedulingPolicy
from court_watch.pipeline.progress import (
    CallbackSink,
    LoggingSink,
    NullSink,
    ProgressSink,
    StreamSink,
    to_sse,
)
from court_watch.pipeline.synthesize import CaseSynthesizer

__all__ = [
    "AttachmentFetcher",
    "resolve_extension",
    "ArchiveExpander",
    "CleanupTracker",
    "extract_text",
    "render_pdf_pages",
    "ExtractionService",
    "AnthropicExtractionService",
    "DocumentAnalyzer",
    "parse_extraction",
    "strip_code_fences",
    "CaseSynthesizer",
    "ProgressSink",
    "CallbackSink",
    "LoggingSink",
    "NullSink",
    "StreamSink",
    "to_sse",
    "PipelineOrchestrator",
    "SchedulingPolicy",
]

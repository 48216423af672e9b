"""Search module — record source adapters."""

from court_watch.search.provider import (
    EOglasnaSearchProvider,
    SearchProvider,
    parse_search_results,
)

__all__ = [
    "SearchProvider",
    "EOglasnaSearchProvider",
    "parse_search_results",
]

"""
Launch helper for the FastAPI backend.

Provides the ``main()`` entry point used by the ``court-watch-api``
console script defined in ``pyproject.toml``.

Usage::

    court-watch-api                          # default: 0.0.0.0:8000
    court-watch-api --port 8080              # custom port
    court-watch-api --reload                 # auto-reload for development
    uvicorn court_watch.api.app:app          # direct uvicorn alternative
"""

import argparse

import uvicorn


def main() -> None:
    """Launch the FastAPI app via uvicorn."""
    from court_watch.config import get_settings
    from court_watch.core import configure_logging, suppress_third_party_loggers

    settings = get_settings()

    parser = argparse.ArgumentParser(description="court-watch API server")
    parser.add_argument(
        "--host",
        default=settings.api.host,
        help=f"Bind host (default: {settings.api.host})",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=settings.api.port,
        help=f"Port number (default: {settings.api.port})",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    args = parser.parse_args()

    configure_logging()
    suppress_third_party_loggers()

    uvicorn.run(
        "court_watch.api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )

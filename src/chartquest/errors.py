"""Error taxonomy for the chart ingestion pipeline.

Every message is a stable, human-readable string. Local filesystem paths,
stack traces and credentials never go into a message; diagnostic output from
external tools is kept on ``details`` instead.
"""

from __future__ import annotations


class ChartQuestError(Exception):
    """Base class for all chartquest errors."""


class InvalidReferenceError(ChartQuestError):
    """Raised when a chart reference is empty or malformed."""


class FetchError(ChartQuestError):
    """Raised when a chart cannot be downloaded or pulled."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: str | None = None,
    ):
        self.status_code: int | None = status_code
        self.details: str | None = details
        super().__init__(message)


class ExtractionError(ChartQuestError):
    """Raised when a chart archive cannot be safely unpacked."""


class ParseError(ChartQuestError):
    """Raised when the configuration document exists but is not well-formed."""


class SessionNotFoundError(ChartQuestError):
    """Raised when a session id is unknown to the session store."""

    def __init__(self, session_id: str):
        self.session_id: str = session_id
        super().__init__(f"Session not found: {session_id}")


class RepositoryNotFoundError(ChartQuestError):
    """Raised when a repository name is unknown to the catalog."""

    def __init__(self, name: str):
        self.name: str = name
        super().__init__(f"Repository not found: {name}")

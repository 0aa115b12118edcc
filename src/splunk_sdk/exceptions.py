"""Error types raised by the Splunk REST client."""

from __future__ import annotations

from typing import Any


class SplunkError(Exception):
    """Base class for errors raised by this package."""


class ContextDisposedError(SplunkError, RuntimeError):
    """Raised when a closed `Context` is asked to send a request."""

    def __init__(self, context: Any) -> None:
        super().__init__(f"Context {context} has already been disposed")
        self.context = str(context)


class EntityCollectionStateError(SplunkError, RuntimeError):
    """Raised when an entity collection is read before its first update."""


class SplunkResponseError(SplunkError):
    """Splunk answered with an HTTP error status.

    Attributes
    ----------
    status : int
        HTTP status code
    url : str
        The URL that was called
    messages : list of (type, text) tuples
        Messages from the ``<response><messages>`` body, if any
    body : str
        Raw response body
    """

    def __init__(
        self,
        status: int,
        url: str,
        messages: list[tuple[str, str]] | None = None,
        body: str = "",
    ) -> None:
        self.status = status
        self.url = url
        self.messages = list(messages or [])
        self.body = body or ""
        if self.messages:
            detail = "; ".join(f"{kind}: {text}" for kind, text in self.messages)
        else:
            detail = self.body[:1200]
        super().__init__(f"Splunk error {status} for {url}: {detail}")


class AuthenticationError(SplunkResponseError):
    """Login was rejected or the reply carried no session key."""

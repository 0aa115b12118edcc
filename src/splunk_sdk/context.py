"""HTTP request context for the Splunk REST management API."""

from __future__ import annotations

import time
from collections.abc import AsyncIterator, Iterable, Mapping
from contextlib import aclosing
from enum import Enum
from typing import TYPE_CHECKING, Any, Union
from urllib.parse import quote

import httpx
from loguru import logger
from lxml import etree
from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator

from .exceptions import ContextDisposedError, SplunkResponseError
from .names import Namespace, ResourceName

if TYPE_CHECKING:
    from .config import ContextSettings

ArgumentSet = Union[Mapping[str, Any], Iterable[tuple[str, Any]], None]

# Characters left as-is in query strings: RFC 3986 reserved characters minus
# the fragment and IP-literal delimiters, which would change the URI's meaning.
_URI_SAFE = "!$&'()*+,/:;=?@"

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class Scheme(str, Enum):
    """Protocol used to reach a Splunk server."""

    HTTP = "http"
    HTTPS = "https"

    def __str__(self) -> str:
        return self.value


class Endpoint(BaseModel):
    """Validated network identity of a Splunk management port."""

    model_config = ConfigDict(frozen=True)

    scheme: Scheme = Field(description="Protocol keyword", examples=["https"])
    host: str = Field(min_length=1, description="DNS name or address", examples=["localhost"])
    port: StrictInt = Field(ge=0, le=65535, description="Management port", examples=[8089])

    @field_validator("scheme", mode="before")
    @classmethod
    def _lowercase_scheme(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value

    @field_validator("host")
    @classmethod
    def _host_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("host must not be blank")
        return value

    def __str__(self) -> str:
        return f"{self.scheme.value}://{self.host}:{self.port}"


class _State(Enum):
    OPEN = "open"
    DISPOSED = "disposed"


def escape_uri_string(value: Any) -> str:
    """Escape ``value`` for a query string, keeping reserved characters."""
    return quote(str(value), safe=_URI_SAFE)


def escape_data_string(value: Any) -> str:
    """Escape ``value`` as URI data: only unreserved characters are kept."""
    return quote(str(value), safe="")


def _iter_arguments(argument_sets: Iterable[ArgumentSet]) -> Iterable[tuple[str, Any]]:
    for args in argument_sets:
        if args is None:
            continue
        pairs = args.items() if isinstance(args, Mapping) else args
        yield from pairs


class Context:
    """
    Sends HTTP requests to a Splunk server and returns the raw responses.

    A context owns an ``httpx.AsyncClient`` unless one is injected with
    ``dispose_client=False``. It must be closed with `close()` or used as an
    async context manager; a closed context refuses further requests with
    `ContextDisposedError`.

    Parameters
    ----------
    scheme : Scheme or str
        ``http`` or ``https``
    host : str
        DNS name of the Splunk server
    port : int
        Management port, 0-65535
    client : httpx.AsyncClient, optional
        Client to send requests with; a new one is created when omitted
    dispose_client : bool
        Whether `close()` closes an injected client
    verify : bool or str
        TLS verification for a created client
    timeout : float, optional
        Timeout for a created client; ``None`` waits indefinitely

    Examples
    --------
    >>> async with Context("https", "localhost", 8089) as context:
    ...     context.session_key = key
    ...     response = await context.get(Namespace(), INDEXES, {"count": 0})
    """

    def __init__(
        self,
        scheme: Scheme | str,
        host: str,
        port: int,
        client: httpx.AsyncClient | None = None,
        *,
        dispose_client: bool = True,
        verify: bool | str = True,
        timeout: float | None = None,
    ) -> None:
        self._endpoint = Endpoint(scheme=scheme, host=host, port=port)
        if client is None:
            self._client = httpx.AsyncClient(verify=verify, timeout=timeout)
            self._dispose_client = True
        else:
            self._client = client
            self._dispose_client = dispose_client
        self._state = _State.OPEN
        self._session_key: str | None = None

    @classmethod
    def from_settings(
        cls, settings: ContextSettings, client: httpx.AsyncClient | None = None
    ) -> Context:
        """Build a context from loaded `ContextSettings`."""
        context = cls(
            settings.scheme,
            settings.host,
            settings.port,
            client,
            verify=settings.verify,
            timeout=settings.timeout,
        )
        context.session_key = settings.session_key
        return context

    # ---------------- properties ----------------

    @property
    def endpoint(self) -> Endpoint:
        return self._endpoint

    @property
    def scheme(self) -> Scheme:
        return self._endpoint.scheme

    @property
    def host(self) -> str:
        return self._endpoint.host

    @property
    def port(self) -> int:
        return self._endpoint.port

    @property
    def session_key(self) -> str | None:
        """Session key sent with each request; ``None`` until set."""
        return self._session_key

    @session_key.setter
    def session_key(self, value: str | None) -> None:
        self._session_key = value

    @property
    def is_disposed(self) -> bool:
        return self._state is _State.DISPOSED

    # ---------------- lifecycle ----------------

    async def close(self) -> None:
        """Release the HTTP client. Calling this again does nothing."""
        if self._state is _State.DISPOSED:
            return
        self._state = _State.DISPOSED
        if self._dispose_client:
            await self._client.aclose()
        logger.debug(f"Disposed context {self}")

    async def __aenter__(self) -> Context:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ---------------- requests ----------------

    async def get(
        self, namespace: Namespace, resource: ResourceName, *argument_sets: ArgumentSet
    ) -> httpx.Response:
        """
        Send a GET request for ``resource`` in ``namespace``.

        Every argument set is appended to the query string in the order
        given. The response is returned once its headers are read; read the
        body with ``aread()`` or ``aiter_bytes()`` and close it with
        ``aclose()``.
        """
        self._require_target(namespace, resource)
        url = self._service_url(namespace, resource, argument_sets)
        request = self._client_or_raise().build_request(
            "GET", url, headers=self._authorization_headers()
        )
        return await self._send(request)

    async def post(
        self, namespace: Namespace, resource: ResourceName, *argument_sets: ArgumentSet
    ) -> httpx.Response:
        """
        Send a POST request for ``resource`` in ``namespace``.

        Every argument set goes to the form-encoded body; the URL carries no
        query string.
        """
        self._require_target(namespace, resource)
        url = self._service_url(namespace, resource, ())
        headers = self._authorization_headers()
        headers["Content-Type"] = FORM_CONTENT_TYPE
        request = self._client_or_raise().build_request(
            "POST", url, headers=headers, content=self._form_body(argument_sets).encode("utf-8")
        )
        return await self._send(request)

    async def get_document_stream(
        self, namespace: Namespace, resource: ResourceName, *argument_sets: ArgumentSet
    ) -> AsyncIterator[bytes]:
        """
        Yield the body of a GET response chunk by chunk.

        Raises `SplunkResponseError` before yielding anything when the server
        answers with an error status.
        """
        response = await self.get(namespace, resource, *argument_sets)
        try:
            if response.is_error:
                await response.aread()
                raise error_from_response(response)
            async for chunk in response.aiter_bytes():
                yield chunk
        finally:
            await response.aclose()

    async def get_document(
        self, namespace: Namespace, resource: ResourceName, *argument_sets: ArgumentSet
    ) -> etree._Element:
        """Fetch ``resource`` and return the root element of its XML body."""
        parser = etree.XMLParser(remove_blank_text=True)
        stream = self.get_document_stream(namespace, resource, *argument_sets)
        async with aclosing(stream) as chunks:
            async for chunk in chunks:
                parser.feed(chunk)
        return parser.close()

    # ---------------- helpers ----------------

    def _client_or_raise(self) -> httpx.AsyncClient:
        if self._state is _State.DISPOSED:
            raise ContextDisposedError(self)
        return self._client

    @staticmethod
    def _require_target(namespace: Namespace | None, resource: ResourceName | None) -> None:
        if namespace is None:
            raise TypeError("namespace must not be None")
        if resource is None:
            raise TypeError("resource must not be None")

    def _authorization_headers(self) -> dict[str, str]:
        if self._session_key is None:
            return {}
        return {"Authorization": f"Splunk {self._session_key}"}

    def _service_url(
        self,
        namespace: Namespace,
        resource: ResourceName,
        argument_sets: Iterable[ArgumentSet],
    ) -> str:
        url = f"{self}/{namespace}/{resource}"
        query = "&".join(
            f"{escape_uri_string(key)}={escape_uri_string(value)}"
            for key, value in _iter_arguments(argument_sets)
        )
        return f"{url}?{query}" if query else url

    @staticmethod
    def _form_body(argument_sets: Iterable[ArgumentSet]) -> str:
        return "&".join(
            f"{escape_data_string(key)}={escape_data_string(value)}"
            for key, value in _iter_arguments(argument_sets)
        )

    async def _send(self, request: httpx.Request) -> httpx.Response:
        t0 = time.perf_counter()
        try:
            response = await self._client.send(request, stream=True)
        except (httpx.HTTPError, RuntimeError) as exc:
            # The client was closed while this request was in flight.
            if self._state is _State.DISPOSED:
                raise ContextDisposedError(self) from exc
            raise
        dt = (time.perf_counter() - t0) * 1000.0
        logger.debug(f"{request.method} {request.url} -> {response.status_code} {round(dt, 1)}ms")
        return response

    def __str__(self) -> str:
        return str(self._endpoint)

    def __repr__(self) -> str:
        return f"Context({self}, state={self._state.value})"


def error_from_response(response: httpx.Response) -> SplunkResponseError:
    """Build a `SplunkResponseError` from an already-read error response."""
    return SplunkResponseError(
        response.status_code,
        str(response.url),
        parse_messages(response.content),
        response.text,
    )


def parse_messages(content: bytes) -> list[tuple[str, str]]:
    """Return ``(type, text)`` pairs from a ``<response><messages>`` body."""
    if not content.strip():
        return []
    try:
        root = etree.fromstring(content)
    except etree.XMLSyntaxError:
        return []
    return [
        (msg.get("type", ""), (msg.text or "").strip())
        for msg in root.iterfind("messages/msg")
    ]

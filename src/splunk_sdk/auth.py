"""Session-key authentication against ``auth/login``."""

from __future__ import annotations

import httpx
from loguru import logger
from lxml import etree

from .config import Credentials
from .context import Context, parse_messages
from .exceptions import AuthenticationError
from .names import AUTH_LOGIN, Namespace


class AuthenticationManager:
    """Log a `Context` in and out of a Splunk server."""

    def __init__(self, context: Context, credentials: Credentials) -> None:
        self._context = context
        self._credentials = credentials

    @property
    def context(self) -> Context:
        return self._context

    async def login(self) -> str:
        """Obtain a session key, store it on the context and return it."""
        response = await self._context.post(
            Namespace.DEFAULT,
            AUTH_LOGIN,
            {"username": self._credentials.username, "password": self._credentials.password},
        )
        try:
            await response.aread()
        finally:
            await response.aclose()

        if response.is_error:
            messages = parse_messages(response.content)
            if response.status_code == httpx.codes.UNAUTHORIZED:
                logger.error(f"Splunk rejected login for {self._credentials.username}")
            raise AuthenticationError(
                response.status_code, str(response.url), messages, response.text
            )

        session_key = self._parse_session_key(response)
        self._context.session_key = session_key
        logger.info(f"Logged in to {self._context} as {self._credentials.username}")
        return session_key

    def logout(self) -> None:
        """Forget the session key held by the context."""
        self._context.session_key = None

    @staticmethod
    def _parse_session_key(response: httpx.Response) -> str:
        """Extract ``<response><sessionKey>`` from a login reply."""
        try:
            root = etree.fromstring(response.content)
        except etree.XMLSyntaxError as exc:
            raise AuthenticationError(
                response.status_code, str(response.url), body=response.text
            ) from exc
        key = root.findtext("sessionKey")
        if not key:
            raise AuthenticationError(
                response.status_code,
                str(response.url),
                [("ERROR", "login response has no sessionKey")],
                response.text,
            )
        return key.strip()

"""Pytest configuration and shared fixtures.

This file ensures that:
- `src/` is importable
- Splunk Atom payloads and a recording HTTP transport are available to tests
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

# Ensure src directory is in path for imports
repo_root = Path(__file__).parent.parent
src_path = repo_root / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from splunk_sdk.context import Context  # noqa: E402

FEED_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom"
      xmlns:s="http://dev.splunk.com/ns/rest"
      xmlns:opensearch="http://a9.com/-/spec/opensearch/1.1/">
  <title>indexes</title>
  <id>https://localhost:8089/services/data/indexes</id>
  <updated>2014-02-04T10:15:00-08:00</updated>
  <generator build="182037" version="6.0.1"/>
  <author><name>Splunk</name></author>
  <link href="/services/data/indexes/_new" rel="create"/>
  <opensearch:totalResults>{total}</opensearch:totalResults>
  <opensearch:itemsPerPage>30</opensearch:itemsPerPage>
  <opensearch:startIndex>0</opensearch:startIndex>
  <s:messages/>
  {entries}
</feed>"""

ENTRY_TEMPLATE = """
  <entry>
    <title>{title}</title>
    <id>https://localhost:8089/services/data/indexes/{title}</id>
    <updated>2014-02-04T10:15:00-08:00</updated>
    <link href="/services/data/indexes/{title}" rel="alternate"/>
    <author><name>nobody</name></author>
    <link href="/services/data/indexes/{title}" rel="list"/>
    <content type="text/xml">
      <s:dict>
        <s:key name="maxDataSize">auto</s:key>
        <s:key name="disabled">0</s:key>
        <s:key name="eai:acl">
          <s:dict>
            <s:key name="app">search</s:key>
            <s:key name="perms">
              <s:dict>
                <s:key name="read"><s:list><s:item>*</s:item></s:list></s:key>
              </s:dict>
            </s:key>
          </s:dict>
        </s:key>
        <s:key name="homePath"></s:key>
      </s:dict>
    </content>
  </entry>"""


def build_feed(*titles: str) -> str:
    entries = "".join(ENTRY_TEMPLATE.format(title=title) for title in titles)
    return FEED_TEMPLATE.format(total=len(titles), entries=entries)


class RecordingTransport(httpx.MockTransport):
    """Mock transport that keeps every request it answers."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        async def recording_handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            result = handler(request)
            if not isinstance(result, httpx.Response):
                result = await result
            return result

        super().__init__(recording_handler)


@pytest.fixture
def feed_xml() -> Callable[..., str]:
    """Factory for Splunk Atom feeds with one entry per title."""
    return build_feed


@pytest.fixture
def make_context() -> Callable[..., tuple[Context, RecordingTransport]]:
    """Factory for a `Context` whose requests are answered by ``handler``."""

    def factory(
        handler: Callable[[httpx.Request], httpx.Response],
        *,
        scheme: str = "http",
        host: str = "localhost",
        port: int = 8089,
        dispose_client: bool = True,
    ) -> tuple[Context, RecordingTransport]:
        transport = RecordingTransport(handler)
        client = httpx.AsyncClient(transport=transport)
        context = Context(scheme, host, port, client, dispose_client=dispose_client)
        return context, transport

    return factory

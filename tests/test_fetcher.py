from __future__ import annotations

import asyncio

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from sitemapper.crawler.fetcher import FetchOutcome, WebFetcher
from sitemapper.exceptions import SeedResolutionError

from helpers import unused_port


HOME = b'<html><body><a href="/about">About</a></body></html>'


def make_app() -> web.Application:
    async def home(request):
        return web.Response(body=HOME, content_type="text/html")

    async def missing(request):
        return web.Response(status=404, text="not here")

    async def moved(request):
        raise web.HTTPFound("/")

    async def slow(request):
        await asyncio.sleep(2)
        return web.Response(text="late")

    async def agent(request):
        return web.Response(text=request.headers.get("User-Agent", ""))

    app = web.Application()
    app.router.add_get("/", home)
    app.router.add_get("/missing", missing)
    app.router.add_get("/moved", moved)
    app.router.add_get("/slow", slow)
    app.router.add_get("/agent", agent)
    return app


@pytest_asyncio.fixture
async def server():
    test_server = TestServer(make_app())
    await test_server.start_server()
    try:
        yield test_server
    finally:
        await test_server.close()


def url_for(server: TestServer, path: str) -> str:
    return str(server.make_url(path))


@pytest.mark.asyncio
async def test_fetch_200_is_success_with_body(server):
    async with WebFetcher(user_agent="test-agent") as fetcher:
        result = await fetcher.fetch(url_for(server, "/"))

    assert result.outcome is FetchOutcome.SUCCESS
    assert result.ok
    assert result.status_code == 200
    assert result.body == HOME
    assert result.error is None


@pytest.mark.asyncio
async def test_fetch_non_200_is_skip(server):
    async with WebFetcher(user_agent="test-agent") as fetcher:
        result = await fetcher.fetch(url_for(server, "/missing"))
        stats = fetcher.get_stats()

    assert result.outcome is FetchOutcome.SKIP
    assert result.status_code == 404
    assert result.body is None
    assert stats["skipped_requests"] == 1


@pytest.mark.asyncio
async def test_fetch_does_not_follow_redirects(server):
    async with WebFetcher(user_agent="test-agent") as fetcher:
        result = await fetcher.fetch(url_for(server, "/moved"))

    assert result.outcome is FetchOutcome.SKIP
    assert result.status_code == 302


@pytest.mark.asyncio
async def test_fetch_connection_refused_is_transport_error():
    async with WebFetcher(user_agent="test-agent", request_timeout=5) as fetcher:
        result = await fetcher.fetch(f"http://127.0.0.1:{unused_port()}/")
        stats = fetcher.get_stats()

    assert result.outcome is FetchOutcome.TRANSPORT_ERROR
    assert result.status_code == 0
    assert result.error
    assert stats["failed_requests"] == 1


@pytest.mark.asyncio
async def test_fetch_timeout_is_transport_error(server):
    async with WebFetcher(user_agent="test-agent", request_timeout=0.2) as fetcher:
        result = await fetcher.fetch(url_for(server, "/slow"))

    assert result.outcome is FetchOutcome.TRANSPORT_ERROR
    assert result.error == "Request timeout"


@pytest.mark.asyncio
async def test_fetch_sends_user_agent(server):
    async with WebFetcher(user_agent="sitemapper-test/2.0") as fetcher:
        result = await fetcher.fetch(url_for(server, "/agent"))

    assert result.body == b"sitemapper-test/2.0"


@pytest.mark.asyncio
async def test_resolve_redirects_returns_final_target(server):
    async with WebFetcher(user_agent="test-agent") as fetcher:
        resolved = await fetcher.resolve_redirects(url_for(server, "/moved"))

    assert resolved == url_for(server, "/").rstrip("/")


@pytest.mark.asyncio
async def test_resolve_redirects_strips_trailing_slash(server):
    async with WebFetcher(user_agent="test-agent") as fetcher:
        resolved = await fetcher.resolve_redirects(url_for(server, "/missing") + "/")

    # A missing page still resolves; only transport failures are fatal here
    assert resolved == url_for(server, "/missing")


@pytest.mark.asyncio
async def test_resolve_redirects_transport_failure_raises():
    seed = f"http://127.0.0.1:{unused_port()}"

    async with WebFetcher(user_agent="test-agent", request_timeout=5) as fetcher:
        with pytest.raises(SeedResolutionError) as excinfo:
            await fetcher.resolve_redirects(seed)

    assert excinfo.value.url == seed


@pytest.mark.asyncio
async def test_close_is_idempotent():
    fetcher = WebFetcher(user_agent="test-agent")
    await fetcher.start()
    session = fetcher.session
    await fetcher.close()
    await fetcher.close()

    assert session.closed
    assert fetcher.session is None

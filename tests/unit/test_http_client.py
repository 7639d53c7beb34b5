"""Tests for the async HTTP client."""

import httpx
import pytest

from budget_scraper.core.errors import FetchError
from budget_scraper.core.http_client import HttpClient, RetryableHttpError


def make_client(handler, **kwargs) -> HttpClient:
    return HttpClient(
        min_interval=0.0,
        retry_wait=0.0,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestHttpClient:
    """Tests for HttpClient requests, retries and error mapping."""

    @pytest.mark.asyncio
    async def test_get_text(self):
        """Test fetching a page as text."""
        def handler(request):
            return httpx.Response(200, text="<html>Łódź</html>")

        async with make_client(handler) as client:
            text = await client.get_text("https://portal.test/")

        assert text == "<html>Łódź</html>"
        assert client.request_count == 1

    @pytest.mark.asyncio
    async def test_retries_server_errors(self):
        """Test that 503 responses are retried until success."""
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) < 3:
                return httpx.Response(503)
            return httpx.Response(200, text="ok")

        async with make_client(handler, max_retries=3) as client:
            assert await client.get_text("https://portal.test/") == "ok"

        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self):
        """Test that persistent 429 responses end in a FetchError."""
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(429)

        async with make_client(handler, max_retries=2) as client:
            with pytest.raises(RetryableHttpError):
                await client.get("https://portal.test/")

        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self):
        """Test that 404 is a fetch failure without retries."""
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(404)

        async with make_client(handler) as client:
            with pytest.raises(FetchError):
                await client.get("https://portal.test/missing")

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_timeout_not_retried(self):
        """Test that timeouts become FetchError after a single attempt."""
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ReadTimeout("timed out", request=request)

        async with make_client(handler) as client:
            with pytest.raises(FetchError, match="Timeout"):
                await client.get("https://portal.test/slow")

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_connection_error(self):
        """Test that connection failures become FetchError."""
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async with make_client(handler) as client:
            with pytest.raises(FetchError):
                await client.get("https://portal.test/")

    @pytest.mark.asyncio
    async def test_get_json_invalid_payload(self):
        """Test that an invalid JSON body is a fetch failure."""
        def handler(request):
            return httpx.Response(200, text="<html>not json</html>")

        async with make_client(handler) as client:
            with pytest.raises(FetchError, match="Invalid JSON"):
                await client.get_json("https://api.test/search")

    @pytest.mark.asyncio
    async def test_user_agent_rotation_and_override(self):
        """Test rotated browser user agents and explicit overrides."""
        agents = []

        def handler(request):
            agents.append(request.headers["User-Agent"])
            return httpx.Response(200)

        async with make_client(handler) as client:
            await client.get("https://portal.test/1")
            await client.get("https://portal.test/2")
            await client.get("https://portal.test/3", headers={"User-Agent": "Custom/1.0"})

        assert agents[0].startswith("Mozilla/5.0")
        assert agents[0] != agents[1]
        assert agents[2] == "Custom/1.0"

    @pytest.mark.asyncio
    async def test_not_initialized(self):
        """Test that requests outside the context manager fail loudly."""
        client = HttpClient()

        with pytest.raises(RuntimeError):
            await client.get("https://portal.test/")

"""Tests for the Meta insights client using httpx.MockTransport."""

import json

import httpx
import pytest

from guardian.connectors.meta.client import MetaAPIError, MetaClient


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    async def _sleep(_seconds):
        return None

    monkeypatch.setattr("guardian.connectors.meta.client.asyncio.sleep", _sleep)


def _row(d):
    return {"campaign_id": "C-1", "date_start": d, "spend": "100"}


class TestFetchDailyInsights:
    async def test_follows_pagination(self, settings):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if "after" in request.url.params:
                return httpx.Response(200, json={"data": [_row("2024-01-02")]})
            return httpx.Response(
                200,
                json={
                    "data": [_row("2024-01-01")],
                    "paging": {"next": "https://graph.facebook.com/v21.0/C-1/insights?after=abc"},
                },
            )

        client = MetaClient(settings, transport=httpx.MockTransport(handler))
        rows = await client.fetch_daily_insights("C-1", "2024-01-01", "2024-01-02")
        await client.close()

        assert [r["date_start"] for r in rows] == ["2024-01-01", "2024-01-02"]
        first = seen[0].url.params
        assert seen[0].url.path == "/v21.0/C-1/insights"
        assert first["time_increment"] == "1"
        assert first["level"] == "campaign"
        assert first["access_token"] == "test-token"
        assert json.loads(first["time_range"]) == {"since": "2024-01-01", "until": "2024-01-02"}

    async def test_retries_server_errors(self, settings):
        calls = {"n": 0}

        def handler(request):
            calls["n"] += 1
            if calls["n"] == 1:
                return httpx.Response(503, json={"error": {"message": "busy"}})
            return httpx.Response(200, json={"data": []})

        client = MetaClient(settings, transport=httpx.MockTransport(handler))
        assert await client.fetch_daily_insights("C-1", "2024-01-01", "2024-01-01") == []
        assert calls["n"] == 2

    async def test_retries_rate_limit(self, settings):
        responses = iter(
            [httpx.Response(429), httpx.Response(200, json={"data": [_row("2024-01-01")]})]
        )
        client = MetaClient(
            settings, transport=httpx.MockTransport(lambda request: next(responses))
        )
        rows = await client.fetch_daily_insights("C-1", "2024-01-01", "2024-01-01")
        assert len(rows) == 1

    async def test_client_error_raises(self, settings):
        def handler(request):
            return httpx.Response(
                400, json={"error": {"message": "Invalid parameter", "code": 100}}
            )

        client = MetaClient(settings, transport=httpx.MockTransport(handler))
        with pytest.raises(MetaAPIError) as exc:
            await client.fetch_daily_insights("C-1", "2024-01-01", "2024-01-01")
        assert exc.value.status_code == 400
        assert exc.value.error_code == 100
        assert "Invalid parameter" in str(exc.value)

    async def test_gives_up_after_max_retries(self, settings):
        calls = {"n": 0}

        def handler(request):
            calls["n"] += 1
            return httpx.Response(500, text="upstream down")

        client = MetaClient(settings, transport=httpx.MockTransport(handler))
        with pytest.raises(MetaAPIError) as exc:
            await client.fetch_daily_insights("C-1", "2024-01-01", "2024-01-01")
        assert calls["n"] == 3
        assert exc.value.status_code == 500

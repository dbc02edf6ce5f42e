import logging

import httpx
import pytest

from semrush_mcp.core.client import API_BASE, EXPORT_COLUMNS, SemrushClient
from semrush_mcp.core.errors import ConfigurationError, SemrushApiError

from .conftest import API_KEY


@pytest.mark.parametrize("api_key", [None, ""])
def test_missing_api_key_fails_fast(api_key, upstream):
    with pytest.raises(ConfigurationError):
        SemrushClient(api_key)
    assert upstream.requests == []


@pytest.mark.asyncio
async def test_single_db_overview_parameters(client, upstream):
    await client.keyword_overview_single_db("seo", "us")

    request = upstream.requests[-1]
    assert str(request.url).startswith(API_BASE)
    assert request.method == "GET"
    assert upstream.last_params == {
        "type": "phrase_this",
        "phrase": "seo",
        "database": "us",
        "export_columns": "Ph,Nq,Cp,Co,Nr,Td,In,Kd",
        "key": API_KEY,
    }


@pytest.mark.asyncio
async def test_batch_keywords_joined_with_semicolons(client, upstream):
    await client.batch_keyword_overview(["a", "b", "c"], "uk")

    assert upstream.last_params["type"] == "phrase_these"
    assert upstream.last_params["phrase"] == "a;b;c"
    assert upstream.last_params["database"] == "uk"


@pytest.mark.asyncio
async def test_keyword_difficulty_joins_keywords(client, upstream):
    await client.keyword_difficulty(["seo", "sem"])

    assert upstream.last_params["phrase"] == "seo;sem"
    assert upstream.last_params["export_columns"] == "Ph,Kd"
    assert upstream.last_params["database"] == "us"


@pytest.mark.asyncio
async def test_traffic_summary_uses_trends_endpoint(client, upstream):
    await client.traffic_summary(["a.com", "b.com"])

    request = upstream.requests[-1]
    assert request.url.path == "/analytics/ta/summary"
    assert upstream.last_params == {"domains": "a.com,b.com", "country": "us", "date": "all", "key": API_KEY}


@pytest.mark.asyncio
async def test_traffic_sources_uses_trends_endpoint(client, upstream):
    await client.traffic_sources("example.com", "de")

    assert upstream.requests[-1].url.path == "/analytics/ta/sources"
    assert upstream.last_params == {"domain": "example.com", "country": "de", "date": "all", "key": API_KEY}


@pytest.mark.asyncio
async def test_api_units_balance(client, upstream):
    await client.api_units_balance()
    assert upstream.last_params == {"type": "api_units", "key": API_KEY}


@pytest.mark.asyncio
async def test_domain_overview_defaults_to_us_database(client, upstream):
    await client.domain_overview("example.com")

    assert upstream.last_params["database"] == "us"
    assert upstream.last_params["export_columns"] == EXPORT_COLUMNS["domain_ranks"]


@pytest.mark.asyncio
async def test_limit_omitted_when_not_supplied(client, upstream):
    await client.domain_organic_keywords("example.com")
    assert "display_limit" not in upstream.last_params

    await client.backlinks("example.com", limit=25)
    assert upstream.last_params["display_limit"] == "25"
    assert upstream.last_params["target"] == "example.com"


@pytest.mark.asyncio
async def test_cache_hit_skips_network(client, upstream):
    first = await client.keyword_overview("seo")
    second = await client.keyword_overview("seo")

    assert len(upstream.requests) == 1
    assert second == first
    assert second.data == "Keyword;Search Volume\nseo;110000"


@pytest.mark.asyncio
async def test_mutating_a_response_does_not_change_the_cache(client, upstream):
    upstream.respond_json(200, {"units": 500, "rows": [1, 2]})

    first = await client.api_units_balance()
    first.data["units"] = 0
    first.data["rows"].append(99)
    first.headers["x-injected"] = "1"
    second = await client.api_units_balance()
    second.data["rows"].clear()
    third = await client.api_units_balance()

    assert len(upstream.requests) == 1
    assert third.data == {"units": 500, "rows": [1, 2]}
    assert "x-injected" not in third.headers


@pytest.mark.asyncio
async def test_different_arguments_are_cached_separately(client, upstream):
    await client.keyword_overview("seo")
    await client.keyword_overview("seo", "uk")
    await client.related_keywords("seo")

    assert len(upstream.requests) == 3


@pytest.mark.asyncio
async def test_expired_entry_is_refetched(make_client, upstream, clock):
    client = make_client(ttl=60)
    await client.keyword_overview("seo")
    clock.advance(60)
    await client.keyword_overview("seo")

    assert len(upstream.requests) == 2


@pytest.mark.asyncio
async def test_cache_hit_does_not_consume_rate_limit(make_client, upstream, fake_sleep):
    client = make_client(rate_limit=1)
    for _ in range(5):
        await client.domain_overview("example.com")

    assert len(upstream.requests) == 1
    assert fake_sleep.calls == []
    assert client.rate_limiter.in_window() == 1


@pytest.mark.asyncio
async def test_rate_limit_delays_uncached_requests(make_client, upstream, fake_sleep):
    client = make_client(rate_limit=2)
    for keyword in ("a", "b", "c"):
        await client.keyword_overview(keyword)

    assert len(upstream.requests) == 3
    assert fake_sleep.calls


@pytest.mark.asyncio
async def test_structured_error_response(client, upstream):
    upstream.respond_json(403, {"error": {"message": "Access denied"}})

    with pytest.raises(SemrushApiError) as excinfo:
        await client.domain_overview("example.com")

    assert excinfo.value.message == "Access denied"
    assert excinfo.value.status == 403
    assert excinfo.value.response == {"error": {"message": "Access denied"}}


@pytest.mark.asyncio
async def test_structured_error_without_message_uses_status_text(client, upstream):
    upstream.respond_json(429, {"error": {"code": 429}})

    with pytest.raises(SemrushApiError) as excinfo:
        await client.domain_overview("example.com")

    assert excinfo.value.status == 429
    assert "429" in excinfo.value.message


@pytest.mark.asyncio
async def test_errors_are_not_cached(client, upstream):
    upstream.respond_json(403, {"error": {"message": "Access denied"}})
    with pytest.raises(SemrushApiError):
        await client.domain_overview("example.com")

    upstream.handler = lambda request: httpx.Response(200, text="Database;Domain\nus;example.com")
    response = await client.domain_overview("example.com")

    assert len(upstream.requests) == 2
    assert response.status == 200


@pytest.mark.asyncio
async def test_non_2xx_without_error_body_is_cached_as_response(client, upstream):
    upstream.handler = lambda request: httpx.Response(502, text="Bad Gateway")

    first = await client.domain_overview("example.com")
    second = await client.domain_overview("example.com")

    assert first.status == 502
    assert first.data == "Bad Gateway"
    assert second == first
    assert len(upstream.requests) == 1


@pytest.mark.asyncio
async def test_json_body_is_decoded(client, upstream):
    upstream.respond_json(200, {"units": 12345})

    response = await client.api_units_balance()

    assert response.data == {"units": 12345}
    assert response.headers["content-type"] == "application/json"


@pytest.mark.asyncio
async def test_connection_failure_reports_status_500(client, upstream):
    def refuse(request):
        raise httpx.ConnectError("Connection refused", request=request)

    upstream.handler = refuse

    with pytest.raises(SemrushApiError) as excinfo:
        await client.domain_overview("example.com")

    assert excinfo.value.status == 500
    assert "Connection refused" in excinfo.value.message
    assert excinfo.value.response is None


@pytest.mark.asyncio
async def test_timeout_reports_status_500(client, upstream):
    def slow(request):
        raise httpx.ReadTimeout("timed out", request=request)

    upstream.handler = slow

    with pytest.raises(SemrushApiError) as excinfo:
        await client.backlinks("example.com")

    assert excinfo.value.status == 500


@pytest.mark.asyncio
async def test_unexpected_failure_reports_status_500(client, upstream):
    def broken(request):
        raise RuntimeError("malformed response")

    upstream.handler = broken

    with pytest.raises(SemrushApiError) as excinfo:
        await client.keyword_overview("seo")

    assert excinfo.value.status == 500
    assert excinfo.value.message == "malformed response"


@pytest.mark.asyncio
async def test_failures_are_logged_without_the_key(client, upstream, caplog):
    upstream.respond_json(403, {"error": {"message": "Access denied"}})

    with caplog.at_level(logging.DEBUG, logger="semrush_mcp"):
        with pytest.raises(SemrushApiError):
            await client.domain_overview("example.com")

    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert errors
    assert "Access denied" in errors[0].getMessage()
    assert "403" in errors[0].getMessage()
    assert all(API_KEY not in r.getMessage() for r in caplog.records)

import asyncio

import pytest
from aioresponses import aioresponses
from yarl import URL

from gentrack.adapters.aiohttp_client_adapter import AioHttpClientAdapter
from gentrack.core.exceptions import UpstreamException

"""
Tests for AioHttpClientAdapter behavior.

GET maps upstream problems into UpstreamException:
- non-JSON bodies -> 502 (the provider broke its JSON contract)
- HTTP error statuses -> the same status
- timeouts -> 504

POST never raises on HTTP status; it hands status, headers and body back so
callers can read provider error bodies. Only transport failures raise.
"""


@pytest.mark.asyncio
async def test_get_json_response():
    url = "http://example.test/requests/job-1/status"
    with aioresponses() as m:
        m.get(url, payload={"status": "in_progress"}, status=200)

        async with AioHttpClientAdapter() as client:
            data = await client.get(url)
            assert data == {"status": "in_progress"}


@pytest.mark.asyncio
async def test_get_non_json_response_raises_upstream_exception():
    url = "http://example.test/bad"
    with aioresponses() as m:
        m.get(url, body="<html>error</html>", status=200, headers={"Content-Type": "text/html"})

        async with AioHttpClientAdapter() as client:
            with pytest.raises(UpstreamException) as excinfo:
                await client.get(url)
            assert excinfo.value.response.status == 502


@pytest.mark.asyncio
async def test_get_http_error_keeps_status():
    url = "http://example.test/requests/job-1/status"
    with aioresponses() as m:
        m.get(url, status=500, body="Server Error")

        async with AioHttpClientAdapter() as client:
            with pytest.raises(UpstreamException) as excinfo:
                await client.get(url)
            assert excinfo.value.response.status == 500


@pytest.mark.asyncio
async def test_get_unauthorized_maps_to_401():
    url = "http://example.test/requests/job-1/status"
    with aioresponses() as m:
        m.get(url, status=401, body="nope")

        async with AioHttpClientAdapter() as client:
            with pytest.raises(UpstreamException) as excinfo:
                await client.get(url)
            assert excinfo.value.response.status == 401
            assert excinfo.value.response.title == "Authentication Failed"


@pytest.mark.asyncio
async def test_timeout_maps_to_gateway_timeout():
    url = "http://example.test/slow"
    with aioresponses() as m:
        m.get(url, exception=asyncio.TimeoutError())

        async with AioHttpClientAdapter() as client:
            with pytest.raises(UpstreamException) as excinfo:
                await client.get(url)
            assert excinfo.value.response.status == 504


@pytest.mark.asyncio
async def test_post_returns_error_status_without_raising():
    url = "http://example.test/nano-banana-pro/edit"
    with aioresponses() as m:
        m.post(url, status=422, payload={"detail": "bad prompt"})

        async with AioHttpClientAdapter() as client:
            resp = await client.post(url, json={"prompt": ""})

    assert resp["status"] == 422
    assert resp["body"] == {"detail": "bad prompt"}


@pytest.mark.asyncio
async def test_post_text_body_and_form_data():
    url = "http://example.test/contacts/c-1/custom_fields/871218"
    with aioresponses() as m:
        m.post(url, status=200, body="OK", headers={"Content-Type": "text/plain"})

        async with AioHttpClientAdapter() as client:
            resp = await client.post(url, data={"value": "https://x/out.png"})

        call = m.requests[("POST", URL(url))][0]

    assert resp["status"] == 200
    assert resp["body"] == "OK"
    assert call.kwargs["data"] == {"value": "https://x/out.png"}
    assert call.kwargs["json"] is None


@pytest.mark.asyncio
async def test_post_timeout_maps_to_gateway_timeout():
    url = "http://example.test/slow"
    with aioresponses() as m:
        m.post(url, exception=asyncio.TimeoutError())

        async with AioHttpClientAdapter() as client:
            with pytest.raises(UpstreamException) as excinfo:
                await client.post(url, json={})
            assert excinfo.value.response.status == 504


@pytest.mark.asyncio
async def test_requires_context_manager():
    client = AioHttpClientAdapter()
    with pytest.raises(RuntimeError):
        await client.get("http://example.test/")

import asyncio
import os
import sys
from dataclasses import replace

import httpx

sys.path.append(os.path.dirname(os.path.dirname(__file__)))

from webstats.enrichment import geolocation
from webstats.enrichment.geolocation import GeoLocation


PROVIDER_PAYLOAD = {
    "ip": "203.0.113.5",
    "country": {"name": "Germany", "iso_code": "DE"},
    "state": {"name": "Bavaria"},
    "city": {"name": "Munich"},
    "location": {"latitude": 48.1374, "longitude": 11.5755},
    "timezone": {"name": "Europe/Berlin"},
    "isp": "Example Carrier",
}


def _resolve(ip, handler):
    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await geolocation.resolve(ip, client=client)

    return asyncio.run(run())


def _assert_all_null(result):
    assert result.available is False
    for field in ("country", "region", "city", "latitude", "longitude", "timezone", "isp"):
        assert getattr(result, field) is None


def test_resolve_maps_provider_fields(settings):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=PROVIDER_PAYLOAD)

    result = _resolve("203.0.113.5", handler)

    assert result == GeoLocation(
        country="Germany",
        region="Bavaria",
        city="Munich",
        latitude=48.1374,
        longitude=11.5755,
        timezone="Europe/Berlin",
        isp="Example Carrier",
    )
    assert len(seen) == 1
    assert seen[0].url.host == "geo.test"
    assert seen[0].url.params["ip"] == "203.0.113.5"
    assert seen[0].url.params["apiKey"] == "geo-key"


def test_missing_fields_default_independently(settings):
    payload = {"country": {"name": "France"}, "location": {"latitude": 0.0}}
    result = _resolve("198.51.100.7", lambda request: httpx.Response(200, json=payload))

    assert result.available is True
    assert result.country == "France"
    assert result.latitude == 0.0
    assert result.longitude is None
    assert result.isp is None
    assert result.city is None


def test_non_2xx_yields_null_result(settings, caplog):
    with caplog.at_level("ERROR", logger="webstats.enrichment.geolocation"):
        result = _resolve("203.0.113.5", lambda request: httpx.Response(401, json={"error": "bad key"}))

    _assert_all_null(result)
    assert any(
        record.levelname == "ERROR" and "Geolocation lookup failed" in record.getMessage()
        for record in caplog.records
    )


def test_network_error_yields_null_result(settings):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    _assert_all_null(_resolve("203.0.113.5", handler))


def test_malformed_payload_yields_null_result(settings):
    _assert_all_null(_resolve("203.0.113.5", lambda request: httpx.Response(200, text="<html>")))
    _assert_all_null(_resolve("203.0.113.5", lambda request: httpx.Response(200, json=["x"])))


def test_unknown_ip_skips_lookup(settings):
    def handler(request):
        raise AssertionError("provider must not be called")

    _assert_all_null(_resolve("unknown", handler))


def test_empty_provider_values_become_null(settings):
    payload = {
        "country": {"name": ""},
        "city": {"name": "Lyon"},
        "location": {"latitude": 0, "longitude": 0},
        "isp": "",
    }
    result = _resolve("198.51.100.7", lambda request: httpx.Response(200, json=payload))

    assert result.country is None
    assert result.isp is None
    assert result.city == "Lyon"
    assert result.latitude == 0
    assert result.longitude == 0


def test_missing_api_key_skips_lookup(settings, monkeypatch):
    monkeypatch.setattr(geolocation, "get_settings", lambda: replace(settings, geoapify_api_key=""))

    def handler(request):
        raise AssertionError("provider must not be called")

    _assert_all_null(_resolve("203.0.113.5", handler))


def test_owned_client_is_bounded_by_timeout(settings, monkeypatch):
    created = []
    real_client = httpx.AsyncClient

    def handler(request):
        raise httpx.ReadTimeout("provider too slow", request=request)

    def _client(**kwargs):
        created.append(kwargs)
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(geolocation.httpx, "AsyncClient", _client)
    result = asyncio.run(geolocation.resolve("203.0.113.5"))

    assert created == [{"timeout": settings.geolocation_timeout}]
    _assert_all_null(result)

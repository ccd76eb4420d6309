import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from webstats.config import get_settings


logger = logging.getLogger(__name__)

UNKNOWN_IP = "unknown"


@dataclass(frozen=True)
class GeoLocation:
    """Result of an IP lookup; ``available`` is False when the lookup failed."""

    country: Optional[str] = None
    region: Optional[str] = None
    city: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    timezone: Optional[str] = None
    isp: Optional[str] = None
    available: bool = True

    @classmethod
    def unavailable(cls) -> "GeoLocation":
        return cls(available=False)


def _nested(data: Dict[str, Any], *path: str) -> Any:
    value: Any = data
    for key in path:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    # Providers send "" for unknown names; numeric 0 is a real coordinate.
    return None if value == "" else value


def from_provider(data: Dict[str, Any]) -> GeoLocation:
    return GeoLocation(
        country=_nested(data, "country", "name"),
        region=_nested(data, "state", "name"),
        city=_nested(data, "city", "name"),
        latitude=_nested(data, "location", "latitude"),
        longitude=_nested(data, "location", "longitude"),
        timezone=_nested(data, "timezone", "name"),
        isp=_nested(data, "isp"),
    )


async def _lookup(client: httpx.AsyncClient, ip_address: str) -> GeoLocation:
    settings = get_settings()
    response = await client.get(
        settings.geolocation_endpoint,
        params={"ip": ip_address, "apiKey": settings.geoapify_api_key},
    )
    response.raise_for_status()
    data = response.json()
    if not isinstance(data, dict):
        raise ValueError(f"unexpected geolocation payload: {type(data).__name__}")
    return from_provider(data)


async def resolve(
    ip_address: str, client: Optional[httpx.AsyncClient] = None
) -> GeoLocation:
    """Look up ``ip_address`` with the geolocation provider.

    Best effort: any failure is logged and reported as an unavailable result
    instead of being raised.
    """
    settings = get_settings()
    if not ip_address or ip_address == UNKNOWN_IP:
        logger.debug("Skipping geolocation for unresolved client address")
        return GeoLocation.unavailable()
    if not settings.geoapify_api_key:
        logger.debug("Skipping geolocation, GEOAPIFY_API_KEY is not configured")
        return GeoLocation.unavailable()

    try:
        if client is not None:
            return await _lookup(client, ip_address)
        async with httpx.AsyncClient(timeout=settings.geolocation_timeout) as owned:
            return await _lookup(owned, ip_address)
    except Exception:
        logger.exception("Geolocation lookup failed for %s", ip_address)
        return GeoLocation.unavailable()

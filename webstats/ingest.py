import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Tuple

from fastapi.concurrency import run_in_threadpool

from webstats.config import get_settings
from webstats.crud import events
from webstats.enrichment import bots, geolocation, user_agent
from webstats.enrichment.geolocation import GeoLocation
from webstats.enrichment.user_agent import UserAgentInfo
from webstats.models.event import AnalyticsRecord


logger = logging.getLogger(__name__)

# Proxy headers carrying the original client address, most trusted first.
CLIENT_IP_HEADERS = ("x-forwarded-for", "x-real-ip", "cf-connecting-ip")

ECHOED_FIELDS = (
    ("screen_width", "screenWidth"),
    ("screen_height", "screenHeight"),
    ("window_width", "windowWidth"),
    ("window_height", "windowHeight"),
    ("language", "language"),
    ("platform", "platform"),
    ("site_id", "siteId"),
)


def client_ip(headers: Mapping[str, str], remote_addr: Optional[str]) -> str:
    for name in CLIENT_IP_HEADERS:
        value = headers.get(name)
        if value:
            # X-Forwarded-For may list every hop; the first entry is the client.
            first = value.split(",")[0].strip()
            if first:
                return first
    return remote_addr or geolocation.UNKNOWN_IP


def referrer(headers: Mapping[str, str], envelope: Dict[str, Any]) -> str:
    return (
        headers.get("referer")
        or headers.get("referrer")
        or envelope.get("referrer")
        or ""
    )


def decode_envelope(body: bytes) -> Dict[str, Any]:
    """Decode a request body into an event envelope.

    Bodies that are not a JSON object (including undecodable ones) yield an
    empty envelope; every field is optional further down.
    """
    if not body:
        return {}
    try:
        data = json.loads(body)
        # Some senders post the JSON document as a JSON string.
        if isinstance(data, str):
            data = json.loads(data)
    except ValueError:
        logger.warning("Discarding undecodable event body (%d bytes)", len(body))
        return {}
    if not isinstance(data, dict):
        logger.warning("Discarding event body of type %s", type(data).__name__)
        return {}
    return data


def _serialize_event_data(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def build_record(
    envelope: Dict[str, Any],
    *,
    user_agent_string: str,
    ip_address: str,
    referrer_url: str,
    is_robot: bool,
    ua_info: UserAgentInfo,
    geo: GeoLocation,
    timestamp: str,
) -> AnalyticsRecord:
    echoed = {attr: envelope.get(key) for attr, key in ECHOED_FIELDS}
    return AnalyticsRecord(
        timestamp=timestamp,
        url=envelope.get("url") or "",
        title=envelope.get("title") or "",
        referrer=referrer_url,
        user_agent=user_agent_string,
        browser=ua_info.browser,
        browser_version=ua_info.version,
        operating_system=ua_info.os,
        ip_address=ip_address or geolocation.UNKNOWN_IP,
        is_robot=bool(is_robot),
        event_type=envelope.get("eventType") or "pageview",
        country=geo.country,
        region=geo.region,
        city=geo.city,
        latitude=geo.latitude,
        longitude=geo.longitude,
        timezone=geo.timezone,
        isp=geo.isp,
        event_data=_serialize_event_data(envelope.get("eventData")),
        **echoed,
    )


async def process_event(
    envelope: Dict[str, Any],
    headers: Mapping[str, str],
    remote_addr: Optional[str],
) -> Tuple[str, str]:
    """Enrich and persist one event, returning ``(document_id, timestamp)``."""
    ip_address = client_ip(headers, remote_addr)
    ua_string = headers.get("user-agent") or ""
    referrer_url = referrer(headers, envelope)

    # The lookup is the only network-bound enrichment; classify while it runs.
    geo_task = asyncio.ensure_future(geolocation.resolve(ip_address))
    is_robot = bots.classify(ua_string)
    ua_info = user_agent.parse(ua_string)
    geo = await geo_task

    record = build_record(
        envelope,
        user_agent_string=ua_string,
        ip_address=ip_address,
        referrer_url=referrer_url,
        is_robot=is_robot,
        ua_info=ua_info,
        geo=geo,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
    document = record.to_document()
    logger.debug("Processing analytics event: %s", document)

    document_id = events.new_document_id()
    result = await run_in_threadpool(
        events.create_document, get_settings().collection, document_id, document
    )
    logger.info("Document created successfully: %s", result["id"])
    return result["id"], record.timestamp

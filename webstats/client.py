"""Fire-and-forget tracking client for server-side event sources.

Mirrors the browser snippet: events are posted to the ingestion endpoint and
any failure is logged at debug level and dropped, never raised.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Set
from urllib.parse import urlparse

import httpx


logger = logging.getLogger(__name__)

DOWNLOAD_EXTENSIONS = frozenset(
    {
        "pdf", "doc", "docx", "xls", "xlsx", "ppt", "pptx", "zip", "rar", "7z",
        "tar", "gz", "mp3", "mp4", "avi", "mov", "wmv", "jpg", "jpeg", "png",
        "gif", "svg", "exe", "dmg", "deb", "rpm",
    }
)
SCROLL_MARKERS = (25, 50, 75, 90, 100)
MIN_TIME_ON_PAGE = 5
SESSION_PING_INTERVAL = 300


@dataclass(frozen=True)
class TrackerConfig:
    endpoint: str
    site_id: Optional[str] = None
    track_outbound_links: bool = True
    track_file_downloads: bool = True
    track_scroll_depth: bool = True
    debug: bool = False
    timeout: float = 5.0


class Tracker:
    def __init__(
        self,
        config: TrackerConfig,
        transport: Optional[httpx.BaseTransport] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        self.config = config
        self._transport = transport
        self._user_agent = user_agent
        self._fired_markers: Set[int] = set()
        self._max_scroll_depth = 0
        self._last_ping_bucket = 0

    def _debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        if self.config.debug:
            logger.debug(message, *args, **kwargs)

    def send(self, event: Dict[str, Any]) -> bool:
        """Post one event envelope; returns whether the endpoint accepted it."""
        payload = {
            "siteId": self.config.site_id,
            **event,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        headers = {"user-agent": self._user_agent} if self._user_agent else {}
        self._debug("Sending analytics data: %s", payload)
        try:
            with httpx.Client(
                transport=self._transport, timeout=self.config.timeout
            ) as client:
                response = client.post(self.config.endpoint, json=payload, headers=headers)
                response.raise_for_status()
                self._debug("Analytics data sent successfully: %s", response.json())
        except Exception:
            self._debug("Error sending analytics data", exc_info=True)
            return False
        return True

    def pageview(self, url: str, title: str = "", referrer: str = "") -> bool:
        parsed = urlparse(url)
        return self.send(
            {
                "eventType": "pageview",
                "url": url,
                "title": title,
                "referrer": referrer,
                "eventData": {
                    "path": parsed.path,
                    "search": f"?{parsed.query}" if parsed.query else "",
                    "hash": f"#{parsed.fragment}" if parsed.fragment else "",
                },
            }
        )

    def track(self, event_name: str, data: Optional[Dict[str, Any]] = None) -> bool:
        return self.send(
            {"eventType": "custom_event", "eventData": {"eventName": event_name, **(data or {})}}
        )

    def outbound_link(self, href: str, current_url: str, text: Optional[str] = None) -> bool:
        """Record a click on ``href``; links to the current host are ignored."""
        if not self.config.track_outbound_links:
            return False
        target = urlparse(href).hostname
        if not target or target == urlparse(current_url).hostname:
            return False
        return self.send(
            {
                "eventType": "outbound_link_click",
                "url": current_url,
                "eventData": {"url": href, "text": text, "target": target},
            }
        )

    def file_download(self, href: str) -> bool:
        if not self.config.track_file_downloads:
            return False
        path = urlparse(href).path.lower()
        filename = path.rsplit("/", 1)[-1]
        extension = filename.rsplit(".", 1)[-1] if "." in filename else ""
        if extension not in DOWNLOAD_EXTENSIONS:
            return False
        return self.send(
            {
                "eventType": "file_download",
                "eventData": {
                    "url": href,
                    "filename": filename,
                    "extension": extension,
                    "filesize": None,
                },
            }
        )

    def scroll_depth(self, percent: int) -> int:
        """Report newly crossed scroll markers; returns how many were sent."""
        if not self.config.track_scroll_depth:
            return 0
        try:
            depth = min(int(percent), 100)
        except (TypeError, ValueError):
            self._debug("Ignoring scroll depth %r", percent)
            return 0
        if depth <= self._max_scroll_depth:
            return 0
        self._max_scroll_depth = depth
        sent = 0
        for marker in SCROLL_MARKERS:
            if depth >= marker and marker not in self._fired_markers:
                self._fired_markers.add(marker)
                self.send(
                    {
                        "eventType": "scroll_depth",
                        "eventData": {"depth": marker, "maxDepth": depth},
                    }
                )
                sent += 1
        return sent

    def time_on_page(self, seconds: float, url: str) -> bool:
        try:
            time_spent = round(seconds)
        except TypeError:
            return False
        if time_spent <= MIN_TIME_ON_PAGE:
            return False
        return self.send(
            {
                "eventType": "time_on_page",
                "eventData": {"timeSpent": time_spent, "url": url},
            }
        )

    def session_ping(self, seconds: float, url: str) -> bool:
        """Send a keep-alive once per elapsed five-minute block of a long visit."""
        try:
            bucket = int(seconds // SESSION_PING_INTERVAL)
        except TypeError:
            return False
        if bucket <= self._last_ping_bucket:
            return False
        self._last_ping_bucket = bucket
        return self.send(
            {
                "eventType": "session_ping",
                "eventData": {"timeSpent": round(seconds), "url": url},
            }
        )

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class AnalyticsRecord:
    """Canonical, enriched analytics event as handed to the document store."""

    timestamp: str
    url: Any
    title: Any
    referrer: str
    user_agent: str
    browser: str
    browser_version: str
    operating_system: str
    ip_address: str
    is_robot: bool
    event_type: str
    country: Optional[str] = None
    region: Optional[str] = None
    city: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    timezone: Optional[str] = None
    isp: Optional[str] = None
    screen_width: Any = None
    screen_height: Any = None
    window_width: Any = None
    window_height: Any = None
    language: Any = None
    platform: Any = None
    site_id: Any = None
    event_data: Optional[str] = None

    def to_document(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "url": self.url,
            "title": self.title,
            "referrer": self.referrer,
            "userAgent": self.user_agent,
            "browser": self.browser,
            "browserVersion": self.browser_version,
            "operatingSystem": self.operating_system,
            "ipAddress": self.ip_address,
            "country": self.country,
            "region": self.region,
            "city": self.city,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "timezone": self.timezone,
            "isp": self.isp,
            "isRobot": self.is_robot,
            "screenWidth": self.screen_width,
            "screenHeight": self.screen_height,
            "windowWidth": self.window_width,
            "windowHeight": self.window_height,
            "language": self.language,
            "platform": self.platform,
            "siteId": self.site_id,
            "eventType": self.event_type,
            "eventData": self.event_data,
        }

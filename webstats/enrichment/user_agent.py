"""Browser and operating system detection from a raw User-Agent header.

Chromium derivatives repeat each other's tokens (Edge carries ``Chrome/``,
Chrome carries ``Safari/``), so both detections are ordered tables evaluated
top to bottom and the first matching rule decides.
"""

import re
from dataclasses import dataclass
from typing import Callable, Optional, Pattern, Tuple

UNKNOWN = "Unknown"


@dataclass(frozen=True)
class UserAgentInfo:
    browser: str = UNKNOWN
    version: str = UNKNOWN
    os: str = UNKNOWN


@dataclass(frozen=True)
class BrowserRule:
    name: str
    matches: Callable[[str], bool]
    version: Pattern[str]


@dataclass(frozen=True)
class OsRule:
    matches: Callable[[str], bool]
    describe: Callable[[str], str]


BROWSER_RULES: Tuple[BrowserRule, ...] = (
    BrowserRule(
        "Chrome",
        lambda ua: "Chrome" in ua and "Edg" not in ua,
        re.compile(r"Chrome/(\d+\.\d+)"),
    ),
    BrowserRule("Firefox", lambda ua: "Firefox" in ua, re.compile(r"Firefox/(\d+\.\d+)")),
    # Safari's release number lives in Version/, Safari/ carries the WebKit build.
    BrowserRule(
        "Safari",
        lambda ua: "Safari" in ua and "Chrome" not in ua,
        re.compile(r"Version/(\d+\.\d+)"),
    ),
    BrowserRule("Edge", lambda ua: "Edg" in ua, re.compile(r"Edg/(\d+\.\d+)")),
    BrowserRule(
        "Opera",
        lambda ua: "Opera" in ua or "OPR" in ua,
        re.compile(r"(?:Opera|OPR)/(\d+\.\d+)"),
    ),
)

WINDOWS_NT_VERSIONS = {
    "10.0": "Windows 10/11",
    "6.3": "Windows 8.1",
    "6.2": "Windows 8",
    "6.1": "Windows 7",
}

_WINDOWS_NT = re.compile(r"Windows NT (\d+\.\d+)")
_MAC_OS_X = re.compile(r"Mac OS X (\d+[._]\d+[._]?\d*)")
_ANDROID = re.compile(r"Android (\d+\.\d+)")
_IOS = re.compile(r"OS (\d+_\d+)")


def _dotted(version: str) -> str:
    return version.replace("_", ".")


def _windows(ua: str) -> str:
    match = _WINDOWS_NT.search(ua)
    if not match:
        return "Windows"
    nt_version = match.group(1)
    return WINDOWS_NT_VERSIONS.get(nt_version, f"Windows NT {nt_version}")


def _mac(ua: str) -> str:
    match = _MAC_OS_X.search(ua)
    return f"macOS {_dotted(match.group(1))}" if match else "macOS"


def _linux(ua: str) -> str:
    if "Android" not in ua:
        return "Linux"
    match = _ANDROID.search(ua)
    return f"Android {match.group(1)}" if match else "Android"


def _ios(ua: str) -> str:
    match = _IOS.search(ua)
    return f"iOS {_dotted(match.group(1))}" if match else "iOS"


def _is_ios(ua: str) -> bool:
    return "iPhone" in ua or "iPad" in ua


OS_RULES: Tuple[OsRule, ...] = (
    OsRule(lambda ua: "Windows NT" in ua, _windows),
    # iOS user agents say "like Mac OS X" and must fall through to the iOS rule.
    OsRule(lambda ua: "Mac OS X" in ua and not _is_ios(ua), _mac),
    OsRule(lambda ua: "Linux" in ua, _linux),
    OsRule(_is_ios, _ios),
)


def detect_browser(ua: str) -> Tuple[str, str]:
    for rule in BROWSER_RULES:
        if rule.matches(ua):
            match = rule.version.search(ua)
            return rule.name, match.group(1) if match else UNKNOWN
    return UNKNOWN, UNKNOWN


def detect_os(ua: str) -> str:
    for rule in OS_RULES:
        if rule.matches(ua):
            return rule.describe(ua)
    return UNKNOWN


def parse(user_agent: Optional[str]) -> UserAgentInfo:
    """Break a User-Agent string down into browser, version and OS.

    Never raises; anything that cannot be determined is reported as
    ``"Unknown"``.
    """
    if not user_agent:
        return UserAgentInfo()
    browser, version = detect_browser(user_agent)
    return UserAgentInfo(browser=browser, version=version, os=detect_os(user_agent))

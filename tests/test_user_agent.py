import os
import sys

import pytest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))

from webstats.enrichment import user_agent
from webstats.enrichment.user_agent import UserAgentInfo


CHROME_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/115.0.0.0 Safari/537.36"
)
EDGE_WINDOWS = CHROME_WINDOWS + " Edg/115.0.1901.183"
SAFARI_MAC = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/16.5 Safari/605.1.15"
)
FIREFOX_LINUX = "Mozilla/5.0 (X11; Ubuntu; Linux x86_64; rv:109.0) Gecko/20100101 Firefox/116.0"
CHROME_ANDROID = (
    "Mozilla/5.0 (Linux; Android 13.0; Pixel 7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/115.0.5790.166 Mobile Safari/537.36"
)
SAFARI_IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 16_5 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/16.5 Mobile/15E148 Safari/604.1"
)
OPERA_PRESTO = "Opera/9.80 (Windows NT 6.1; U; en) Presto/2.10.229 Version/11.62"


@pytest.mark.parametrize("value", [None, "", "random text", "!!!", "Mozilla"])
def test_parse_is_total(value):
    info = user_agent.parse(value)
    assert info.browser and info.version and info.os
    if not value or value in ("random text", "!!!"):
        assert info == UserAgentInfo("Unknown", "Unknown", "Unknown")


def test_chrome_is_not_reported_as_safari():
    info = user_agent.parse(CHROME_WINDOWS)
    assert info == UserAgentInfo("Chrome", "115.0", "Windows 10/11")


def test_edge_wins_over_chrome_tokens():
    info = user_agent.parse(EDGE_WINDOWS)
    assert info.browser == "Edge"
    assert info.version == "115.0"


def test_safari_version_comes_from_version_token():
    info = user_agent.parse(SAFARI_MAC)
    assert info == UserAgentInfo("Safari", "16.5", "macOS 10.15.7")


def test_firefox_on_linux():
    assert user_agent.parse(FIREFOX_LINUX) == UserAgentInfo("Firefox", "116.0", "Linux")


def test_android_is_detected_inside_linux():
    assert user_agent.parse(CHROME_ANDROID).os == "Android 13.0"


def test_iphone_is_reported_as_ios():
    info = user_agent.parse(SAFARI_IPHONE)
    assert info.os == "iOS 16.5"
    assert info.browser == "Safari"


def test_opera_with_windows_7():
    assert user_agent.parse(OPERA_PRESTO) == UserAgentInfo("Opera", "9.80", "Windows 7")


@pytest.mark.parametrize(
    "nt_version, expected",
    [
        ("10.0", "Windows 10/11"),
        ("6.3", "Windows 8.1"),
        ("6.2", "Windows 8"),
        ("6.1", "Windows 7"),
        ("5.1", "Windows NT 5.1"),
    ],
)
def test_windows_nt_names(nt_version, expected):
    assert user_agent.detect_os(f"Mozilla/5.0 (Windows NT {nt_version}; Win64)") == expected


def test_browser_without_version_pattern():
    assert user_agent.parse("Mozilla/5.0 Firefox") == UserAgentInfo("Firefox", "Unknown", "Unknown")

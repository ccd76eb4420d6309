from typing import Callable, Optional, Tuple

# Crawlers, link previewers and browser automation tools.
BOT_SIGNATURES: Tuple[str, ...] = (
    "bot",
    "crawl",
    "spider",
    "googlebot",
    "bingbot",
    "slurp",
    "facebookexternalhit",
    "twitterbot",
    "linkedinbot",
    "whatsapp",
    "skype",
    "telegram",
    "headless",
    "phantom",
    "selenium",
    "puppeteer",
    "playwright",
    "automation",
)

MIN_BROWSER_UA_LENGTH = 20

# Every mainstream browser still advertises itself as Mozilla.
COMPATIBILITY_TOKEN = "mozilla"


def _has_signature(ua: str) -> bool:
    return any(signature in ua for signature in BOT_SIGNATURES)


# Evaluated in order against the lower-cased user agent; the first hit wins.
BOT_RULES: Tuple[Tuple[str, Callable[[str], bool]], ...] = (
    ("missing", lambda ua: not ua),
    ("signature", _has_signature),
    ("too_short", lambda ua: len(ua) < MIN_BROWSER_UA_LENGTH),
    ("no_mozilla", lambda ua: COMPATIBILITY_TOKEN not in ua),
)


def match_rule(user_agent: Optional[str]) -> Optional[str]:
    """Return the name of the first bot rule the user agent trips, if any."""
    ua = (user_agent or "").lower()
    for name, predicate in BOT_RULES:
        if predicate(ua):
            return name
    return None


def classify(user_agent: Optional[str]) -> bool:
    return match_rule(user_agent) is not None

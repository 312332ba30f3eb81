"""
User-agent classification.

Several identifier substrings overlap (every Chrome UA also says "Safari",
every Android UA also says "Linux"), so each dimension is checked as an
ordered list of rules and the first match wins.
"""

from typing import NamedTuple, Optional

UNKNOWN = "unknown"

DEVICE_DESKTOP = "desktop"
DEVICE_MOBILE = "mobile"
DEVICE_TABLET = "tablet"

TABLET_MARKERS = ("ipad", "tablet", "kindle", "playbook", "silk")
MOBILE_MARKERS = (
    "mobile", "android", "iphone", "ipod", "blackberry", "iemobile", "opera mini"
)
IOS_MARKERS = ("iphone", "ipad", "ipod")


class DeviceInfo(NamedTuple):
    device_type: str
    browser: str
    os: str


def _has_any(ua: str, markers) -> bool:
    return any(marker in ua for marker in markers)


# (label, matches) pairs, evaluated in order
BROWSER_RULES = (
    ("Firefox", lambda ua: "firefox" in ua),
    ("Edge", lambda ua: "edg" in ua),
    ("Chrome", lambda ua: "chrome" in ua and "edg" not in ua),
    ("Safari", lambda ua: "safari" in ua and "chrome" not in ua),
    ("Opera", lambda ua: "opera" in ua or "opr" in ua),
)

OS_RULES = (
    ("Windows", lambda ua: "windows" in ua),
    ("macOS", lambda ua: "mac" in ua and not _has_any(ua, IOS_MARKERS)),
    ("Linux", lambda ua: "linux" in ua and "android" not in ua),
    ("Android", lambda ua: "android" in ua),
    ("iOS", lambda ua: _has_any(ua, IOS_MARKERS)),
)


def _first_match(ua: str, rules) -> str:
    for label, matches in rules:
        if matches(ua):
            return label
    return UNKNOWN


def classify_device(ua: str) -> str:
    ua = ua.lower()
    if _has_any(ua, TABLET_MARKERS):
        return DEVICE_TABLET
    if _has_any(ua, MOBILE_MARKERS):
        return DEVICE_MOBILE
    return DEVICE_DESKTOP


def classify_browser(ua: str) -> str:
    return _first_match(ua.lower(), BROWSER_RULES)


def classify_os(ua: str) -> str:
    return _first_match(ua.lower(), OS_RULES)


def classify_user_agent(user_agent: Optional[str]) -> DeviceInfo:
    """
    Classify a raw User-Agent header.

    Total function: empty or unrecognised input yields
    ("desktop", "unknown", "unknown") rather than an error.
    """
    ua = user_agent or ""
    return DeviceInfo(
        device_type=classify_device(ua),
        browser=classify_browser(ua),
        os=classify_os(ua),
    )

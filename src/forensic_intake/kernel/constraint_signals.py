"""Classify a navigation response into a locked constraint class.

Executors call this on ordinary navigation failures so they can return
``Constrained`` with a class instead of raising.
"""

import re
from typing import List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from .taxonomy import ConstraintClass


CHALLENGE_URL_MARKERS = (
    "/challenge",
    "/checkpoint",
    "cdn-cgi/challenge",
    "cdn-cgi/",
    "/captcha",
    "turnstile",
    "perimeterx",
    "px-captcha",
)

BOT_DOM_MARKERS = (
    "cf-turnstile",
    "cloudflare",
    "just a moment",
    "checking your browser",
    "captcha",
    "hcaptcha",
    "g-recaptcha",
    "datadome",
    "perimeterx",
    "px-captcha",
    "akamai",
    "incapsula",
    "sucuri",
    "verify you are human",
    "are you a robot",
    "attention required",
)

GEO_DOM_MARKERS = (
    "not available in your country",
    "not available in your region",
    "unavailable in your region",
    "access from your location",
    "due to regional restrictions",
)

PASSWORD_DOM_MARKERS = (
    "this store is protected with a password",
    "enter store using password",
    "enter password",
    "storefront password",
)

# Response headers worth keeping as evidence of who answered.
EVIDENCE_HEADERS = (
    "server",
    "cf-ray",
    "cf-mitigated",
    "location",
    "content-type",
    "x-robots-tag",
    "via",
    "x-cache",
    "x-served-by",
    "x-sucuri-id",
    "x-sucuri-cache",
    "x-akamai-transformed",
    "x-datadome",
)


class ConstraintSignals(BaseModel):
    constraint_class: Optional[ConstraintClass] = None
    signals: List[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @property
    def is_constrained(self) -> bool:
        return self.constraint_class is not None


def _dom_signal(marker: str) -> str:
    return "DOM_" + re.sub(r"[^a-z0-9]+", "_", marker).upper()


def normalize_headers(headers: Optional[Mapping[str, str]]) -> dict:
    return {str(k).lower(): str(v) for k, v in (headers or {}).items()}


def pick_header_subset(headers: Optional[Mapping[str, str]]) -> dict:
    normalized = normalize_headers(headers)
    return {k: normalized[k] for k in EVIDENCE_HEADERS if k in normalized}


def detect_password_wall(final_url: str, html: str) -> List[str]:
    signals = []
    if "/password" in final_url.lower():
        signals.append("URL_PASSWORD")
    lower = html.lower()
    signals.extend(_dom_signal(m) for m in PASSWORD_DOM_MARKERS if m in lower)
    return signals


def detect_geoblock(status: Optional[int], html: str) -> List[str]:
    if status == 451:
        return ["HTTP_451"]
    lower = html.lower()
    return [_dom_signal(m) for m in GEO_DOM_MARKERS if m in lower]


def detect_bot_mitigation(
    status: Optional[int],
    headers: Mapping[str, str],
    html: str,
    final_url: str,
) -> List[str]:
    """Return bot-mitigation signals, or an empty list when they are not conclusive.

    Vendor headers alone are not conclusive: a CDN answering normally is not a
    challenge. A 403/429, a challenge redirect or challenge markup is required.
    """
    signals = []
    if status == 403:
        signals.append("HTTP_403")
    if status == 429:
        signals.append("HTTP_429")

    hdrs = normalize_headers(headers)
    if "cloudflare" in hdrs.get("server", "").lower():
        signals.append("HDR_SERVER_CLOUDFLARE")
    if hdrs.get("cf-ray"):
        signals.append("HDR_CF_RAY")
    if hdrs.get("cf-mitigated"):
        signals.append("HDR_CF_MITIGATED")
    if hdrs.get("x-datadome"):
        signals.append("HDR_DATADOME")
    if hdrs.get("x-sucuri-id") or hdrs.get("x-sucuri-cache"):
        signals.append("HDR_SUCURI")
    if hdrs.get("x-akamai-transformed"):
        signals.append("HDR_AKAMAI")

    url_lower = final_url.lower()
    if any(m in url_lower for m in CHALLENGE_URL_MARKERS):
        signals.append("URL_CHALLENGE_REDIRECT")

    lower = html.lower()
    signals.extend(_dom_signal(m) for m in BOT_DOM_MARKERS if m in lower)

    conclusive = (
        status in (403, 429)
        or "URL_CHALLENGE_REDIRECT" in signals
        or any(s.startswith("DOM_") for s in signals)
    )
    return signals if conclusive else []


def classify_response(
    status: Optional[int],
    headers: Optional[Mapping[str, str]] = None,
    html: Optional[str] = None,
    final_url: Optional[str] = None,
) -> ConstraintSignals:
    """Map a navigation response to a constraint class, or to no constraint.

    Order: geo-block, bot mitigation, authentication wall, then any other
    4xx/5xx status as a navigation impediment. A missing status (no response
    at all) is a navigation impediment.
    """
    html = html or ""
    final_url = final_url or ""

    geo = detect_geoblock(status, html)
    if geo:
        return ConstraintSignals(constraint_class=ConstraintClass.GEOBLOCK, signals=geo)

    bot = detect_bot_mitigation(status, headers or {}, html, final_url)
    if bot:
        return ConstraintSignals(constraint_class=ConstraintClass.BOTMITIGATION, signals=bot)

    auth = detect_password_wall(final_url, html)
    if status == 401:
        auth = ["HTTP_401"] + auth
    if auth:
        return ConstraintSignals(constraint_class=ConstraintClass.AUTHWALL, signals=auth)

    if status is None:
        return ConstraintSignals(constraint_class=ConstraintClass.NAVIMPEDIMENT, signals=["NO_RESPONSE"])
    if status >= 400:
        return ConstraintSignals(
            constraint_class=ConstraintClass.NAVIMPEDIMENT,
            signals=[f"HTTP_{status}"],
        )
    return ConstraintSignals()

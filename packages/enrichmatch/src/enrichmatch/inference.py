"""Best-effort recovery of a company domain from a social-media URL."""

from __future__ import annotations

import re

_PLATFORM_RE = re.compile(
    r"(?:facebook|twitter|instagram|linkedin)\.com/"
    r"(?:(?:company|in|school|showcase|pages)/)?([^/?#]+)",
    re.IGNORECASE,
)
_GENERIC_RE = re.compile(r"([a-zA-Z0-9-]+)\.(com|org|net|io|co)\b", re.IGNORECASE)
_PLATFORM_LABELS = {"facebook", "twitter", "instagram", "linkedin", "x", "fb"}


def infer_domain(social_url: str | None) -> str | None:
    """Guess ``<handle>.com`` from a known platform URL.

    Falls back to the first ``<label>.<tld>`` in the string. The guess is a
    heuristic and only ever feeds medium-weight queries. Returns None when
    nothing plausible is found.
    """
    if not social_url:
        return None

    match = _PLATFORM_RE.search(social_url)
    if match and match.group(1):
        return f"{match.group(1).lower()}.com"

    for label, tld in _GENERIC_RE.findall(social_url):
        if label.lower() in _PLATFORM_LABELS:
            continue
        return f"{label.lower()}.{tld.lower()}"

    return None

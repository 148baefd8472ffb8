"""Cleaning of individual input signals before query building."""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import urlsplit

_PROTOCOL_RE = re.compile(r"^https?://(www\.)?", re.IGNORECASE)
_NON_DIGIT_RE = re.compile(r"\D")


def _strip_www(value: str) -> str:
    return value[4:] if value.lower().startswith("www.") else value


def extract_domain(value: str) -> str:
    """Reduce a URL-like string to its host without a leading ``www.``.

    Never raises: input that does not parse as a URL with a host is
    returned trimmed and lowercased, with only a leading ``www.`` removed.
    """
    raw = value.strip()
    try:
        host = urlsplit(raw).hostname
    except ValueError:
        host = None
    if host:
        return _strip_www(host)
    return _strip_www(raw.lower())


@dataclass(frozen=True)
class PhoneVariants:
    raw: str
    digits: str


def normalize_phone(value: str) -> PhoneVariants:
    """Return the trimmed phone string and its digits-only form.

    The index stores phones in either shape, so both get queried.
    """
    raw = value.strip()
    return PhoneVariants(raw=raw, digits=_NON_DIGIT_RE.sub("", raw))


def strip_protocol(url: str) -> str:
    """Drop a leading http(s):// and optional www. from a social URL."""
    return _PROTOCOL_RE.sub("", url.strip())

"""
Link Detector Module
Splits message text into plain, URL and email spans.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional


class LinkSpanKind(Enum):
    PLAIN = "plain"
    URL = "url"
    EMAIL = "email"


@dataclass(frozen=True)
class LinkSpan:
    kind: LinkSpanKind
    text: str
    url: Optional[str] = None  # Resolved target for URL and EMAIL spans


_EMAIL_PATTERN = r"(?:mailto:)?[\w.+-]+@[\w-]+(?:\.[\w-]+)+"

# Loose matching: explicit schemes, "www." hosts and bare "domain.tld" hosts
_URL_PATTERN = (
    r"(?:https?://|www\.)[^\s<>\"']+"
    r"|(?<![\w@.-])(?:[a-zA-Z0-9](?:[a-zA-Z0-9-]*[a-zA-Z0-9])?\.)+"
    r"[a-zA-Z]{2,}(?::\d+)?(?:/[^\s<>\"']*)?"
)

_LINK_RE = re.compile(
    rf"(?P<email>{_EMAIL_PATTERN})|(?P<url>{_URL_PATTERN})", re.IGNORECASE
)

# Characters that end a sentence rather than a URL
_TRAILING_PUNCTUATION = ".,;:!?'\")]}"


def _trim_trailing(candidate: str) -> str:
    trimmed = candidate
    while trimmed and trimmed[-1] in _TRAILING_PUNCTUATION:
        # Keep a closing bracket that has its opening pair inside the URL
        last = trimmed[-1]
        if last == ")" and trimmed.count("(") >= trimmed.count(")"):
            break
        trimmed = trimmed[:-1]
    return trimmed


def _resolve_url(raw: str) -> str:
    if re.match(r"^[a-zA-Z][a-zA-Z0-9+.-]*://", raw):
        return raw
    return f"https://{raw}"


def _resolve_email(raw: str) -> str:
    if raw.lower().startswith("mailto:"):
        return raw
    return f"mailto:{raw}"


def detect_links(text: str) -> Iterator[LinkSpan]:
    """Lazily yield the spans of ``text`` in order.

    Scheme-less URLs resolve to ``https://`` and bare addresses to ``mailto:``.
    Concatenating the ``text`` of every span gives back the input.
    """
    if not text:
        return
    position = 0
    for match in _LINK_RE.finditer(text):
        raw = match.group(0)
        kind = LinkSpanKind.EMAIL if match.group("email") else LinkSpanKind.URL
        if kind is LinkSpanKind.URL:
            raw = _trim_trailing(raw)
            if not raw:
                continue
        start = match.start()
        end = start + len(raw)
        if start > position:
            yield LinkSpan(LinkSpanKind.PLAIN, text[position:start])
        if kind is LinkSpanKind.EMAIL:
            yield LinkSpan(kind, raw, _resolve_email(raw))
        else:
            yield LinkSpan(kind, raw, _resolve_url(raw))
        position = end
    if position < len(text):
        yield LinkSpan(LinkSpanKind.PLAIN, text[position:])


def find_first_url(text: str) -> Optional[str]:
    """Return the resolved URL of the first web link in ``text``, if any."""
    for span in detect_links(text):
        if span.kind is LinkSpanKind.URL:
            return span.url
    return None

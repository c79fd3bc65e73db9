from __future__ import annotations

import html
from typing import Optional

from core.link_detector import LinkSpanKind, detect_links


def build_linkified_html(text: str, link_style: Optional[str] = None) -> str:
    """Render text as QLabel rich text with URL and email spans as anchors."""
    style_attr = f' style="{html.escape(link_style)}"' if link_style else ""
    parts = []
    for span in detect_links(text):
        escaped = html.escape(span.text).replace("\n", "<br>")
        if span.kind is LinkSpanKind.PLAIN:
            parts.append(escaped)
        else:
            href = html.escape(span.url or span.text, quote=True)
            parts.append(f'<a href="{href}"{style_attr}>{escaped}</a>')
    return "".join(parts)

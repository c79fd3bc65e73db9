"""
URL Opener Module
Opens preview links in the system browser.
"""

import logging
import webbrowser
from typing import Callable, Optional, Protocol
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

SUPPORTED_SCHEMES = ("http", "https", "mailto", "tel")


class UrlOpener(Protocol):
    def can_open(self, url: str) -> bool: ...
    def open(self, url: str) -> bool: ...


class ExternalUrlOpener:
    """Hands URLs to the platform's default browser."""

    def can_open(self, url: str) -> bool:
        try:
            parsed = urlparse(url)
        except ValueError:
            return False
        if parsed.scheme.lower() not in SUPPORTED_SCHEMES:
            return False
        if parsed.scheme.lower() in ("http", "https") and not parsed.netloc:
            return False
        try:
            webbrowser.get()
        except webbrowser.Error:
            logger.debug("No usable browser registered")
            return False
        return True

    def open(self, url: str) -> bool:
        # new=2 asks for a new tab, outside of this application
        return webbrowser.open(url, new=2)


def open_link(
    url: Optional[str],
    on_link_pressed: Optional[Callable[[str], None]] = None,
    opener: Optional[UrlOpener] = None,
) -> None:
    """Open ``url`` with the custom handler, or externally when possible.

    A custom handler receives the raw string and owns navigation. Without one
    the URL is opened only if the opener reports it can handle it; otherwise
    nothing happens.
    """
    if not url:
        return
    if on_link_pressed is not None:
        on_link_pressed(url)
        return

    opener = opener or ExternalUrlOpener()
    if not opener.can_open(url):
        logger.debug(f"No handler can open {url}, ignoring")
        return
    try:
        opened = opener.open(url)
    except webbrowser.Error as e:
        logger.debug(f"Failed to open {url}: {e}")
        return
    if opened:
        logger.info(f"Opened link: {url}")

"""
Preview Fetcher Module
Resolves PreviewData for the first link in a message.
"""

import io
import logging
from typing import Iterable, List, Optional, Tuple
from urllib.error import HTTPError, URLError
from urllib.parse import urljoin
from urllib.request import Request, urlopen

from bs4 import BeautifulSoup
from PIL import Image, UnidentifiedImageError

from core.app_settings import (
    DEFAULT_FETCH_TIMEOUT_SECONDS,
    FALLBACK_USER_AGENT,
    FETCH_MAX_HTML_BYTES,
    FETCH_MAX_IMAGE_BYTES,
    MAX_IMAGE_CANDIDATES,
)
from core.link_detector import find_first_url
from core.preview_data import PreviewData, PreviewDataImage

logger = logging.getLogger(__name__)

_TITLE_META = [("property", "og:title"), ("name", "twitter:title")]
_DESCRIPTION_META = [
    ("property", "og:description"),
    ("name", "twitter:description"),
    ("name", "description"),
]
_IMAGE_META = [
    ("property", "og:image"),
    ("property", "og:image:url"),
    ("name", "twitter:image"),
]

_FETCH_ERRORS = (HTTPError, URLError, OSError, ValueError)


def get_preview_data(
    text: str,
    proxy: Optional[str] = None,
    user_agent: Optional[str] = None,
    timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
) -> PreviewData:
    """
    Fetch preview metadata for the first URL found in text.

    Args:
        text: Message text that may contain a link
        proxy: Optional prefix prepended to the URL before requesting it
        user_agent: User-Agent header, the fallback agent when None
        timeout: Timeout in seconds for each request

    Returns:
        PreviewData, empty when no link was found. Network or parsing
        failures yield PreviewData carrying only the link; nothing is raised.
    """
    url = find_first_url(text)
    if not url:
        return PreviewData()

    headers = {"User-Agent": user_agent or FALLBACK_USER_AGENT}

    try:
        body, content_type, final_url = _fetch(
            _proxied(url, proxy), headers, timeout, FETCH_MAX_HTML_BYTES
        )
    except _FETCH_ERRORS as e:
        logger.debug(f"Preview fetch failed for {url}: {e}")
        return PreviewData(link=url)

    if content_type.startswith("image/"):
        image = _image_from_bytes(url, body)
        return PreviewData(link=url, image=image)

    if "html" not in content_type:
        logger.debug(f"Skipping preview for {url}: content type {content_type!r}")
        return PreviewData(link=url)

    try:
        soup = BeautifulSoup(body, "html.parser")
    except Exception as e:
        logger.debug(f"Could not parse HTML for {url}: {e}")
        return PreviewData(link=url)

    base_url = _base_url_for(final_url, url, proxy)
    title = _first_meta(soup, _TITLE_META) or _clean(
        soup.title.get_text() if soup.title else None
    )
    description = _first_meta(soup, _DESCRIPTION_META)
    image = _resolve_image(
        _image_candidates(soup, base_url), proxy, headers, timeout
    )

    preview = PreviewData(
        link=url, title=title, description=description, image=image
    )
    logger.debug(f"Resolved preview for {url}: has_data={preview.has_data}")
    return preview


def _proxied(url: str, proxy: Optional[str]) -> str:
    return f"{proxy}{url}" if proxy else url


def _base_url_for(final_url: str, url: str, proxy: Optional[str]) -> str:
    # Behind a proxy the final URL is the proxy's, relative paths belong to the target
    if proxy and final_url.startswith(proxy):
        return url
    return final_url or url


def _fetch(
    url: str, headers: dict, timeout: float, max_bytes: int
) -> Tuple[bytes, str, str]:
    request = Request(url, headers=headers)
    with urlopen(request, timeout=timeout) as response:
        status = getattr(response, "status", 200)
        if status != 200:
            raise ValueError(f"Unexpected status {status}")
        content_type = (response.headers.get("Content-Type") or "").lower()
        body = response.read(max_bytes)
        return body, content_type, response.geturl()


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = " ".join(value.split())
    return value or None


def _first_meta(soup: BeautifulSoup, keys: Iterable[Tuple[str, str]]) -> Optional[str]:
    for attr, name in keys:
        tag = soup.find("meta", attrs={attr: name})
        if tag is None:
            continue
        content = _clean(tag.get("content"))
        if content:
            return content
    return None


def _image_candidates(soup: BeautifulSoup, base_url: str) -> List[str]:
    candidates: List[str] = []
    for attr, name in _IMAGE_META:
        for tag in soup.find_all("meta", attrs={attr: name}):
            candidates.append(tag.get("content"))
    for tag in soup.find_all("img"):
        candidates.append(tag.get("src"))

    resolved: List[str] = []
    for candidate in candidates:
        candidate = _clean(candidate)
        if not candidate or candidate.startswith("data:"):
            continue
        if candidate.startswith("//"):
            candidate = f"https:{candidate}"
        absolute = urljoin(base_url, candidate)
        if absolute not in resolved:
            resolved.append(absolute)
    return resolved


def _resolve_image(
    candidates: List[str], proxy: Optional[str], headers: dict, timeout: float
) -> Optional[PreviewDataImage]:
    for image_url in candidates[:MAX_IMAGE_CANDIDATES]:
        try:
            body, _content_type, _final = _fetch(
                _proxied(image_url, proxy), headers, timeout, FETCH_MAX_IMAGE_BYTES
            )
        except _FETCH_ERRORS as e:
            logger.debug(f"Image candidate {image_url} unavailable: {e}")
            continue
        image = _image_from_bytes(image_url, body)
        if image is not None:
            return image
    return None


def _image_from_bytes(image_url: str, body: bytes) -> Optional[PreviewDataImage]:
    try:
        with Image.open(io.BytesIO(body)) as img:
            width, height = img.size
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        ValueError,
    ) as e:
        logger.debug(f"Could not read image size for {image_url}: {e}")
        return None
    if not width or not height:
        return None
    return PreviewDataImage(url=image_url, width=float(width), height=float(height))

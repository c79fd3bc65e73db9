"""
Preview Data Module
Metadata describing the first link found in a message.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreviewDataImage:
    """Preview image with its intrinsic size."""

    url: str
    width: float
    height: float

    @property
    def aspect_ratio(self) -> Optional[float]:
        if not self.height:
            return None
        return self.width / self.height


@dataclass(frozen=True)
class PreviewData:
    """Resolved preview metadata.

    Instances are owned by the host: the link preview hands them out through
    its fetch callback and expects them back on the next render, it never
    keeps or modifies them.
    """

    link: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[PreviewDataImage] = None

    @property
    def has_data(self) -> bool:
        """True when at least one renderable field is present."""
        return (
            self.title is not None
            or self.description is not None
            or (self.image is not None and self.image.url is not None)
        )

    @property
    def has_only_image(self) -> bool:
        return (
            self.title is None
            and self.description is None
            and self.image is not None
            and self.image.url is not None
        )

    @property
    def aspect_ratio(self) -> Optional[float]:
        if self.image is None:
            return None
        return self.image.aspect_ratio

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.link is not None:
            data["link"] = self.link
        if self.title is not None:
            data["title"] = self.title
        if self.description is not None:
            data["description"] = self.description
        if self.image is not None:
            data["image"] = {
                "url": self.image.url,
                "width": self.image.width,
                "height": self.image.height,
            }
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["PreviewData"]:
        """Build PreviewData from its dict form, None stays None."""
        if data is None:
            return None
        return cls(
            link=data.get("link"),
            title=data.get("title"),
            description=data.get("description"),
            image=_image_from_dict(data.get("image")),
        )


def _image_from_dict(raw: Any) -> Optional[PreviewDataImage]:
    if not isinstance(raw, dict):
        return None
    url = raw.get("url")
    if not isinstance(url, str) or not url:
        logger.debug(f"Dropping preview image without url: {raw!r}")
        return None
    try:
        width = float(raw.get("width", 0))
        height = float(raw.get("height", 0))
    except (TypeError, ValueError):
        logger.debug(f"Dropping preview image with invalid size: {raw!r}")
        return None
    return PreviewDataImage(url=url, width=width, height=height)

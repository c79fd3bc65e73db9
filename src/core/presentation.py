"""
Presentation Module
Chooses how resolved preview data is laid out.

The selector is a pure function: the same data and options always produce an
equal variant, and nothing is cached between calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from core.app_settings import (
    FULL_CARD_HORIZONTAL_INSET,
    MINIMIZED_IMAGE_RADIUS,
    MINIMIZED_IMAGE_SIZE,
)
from core.link_preview_options import LinkPreviewOptions
from core.preview_data import PreviewData


@dataclass(frozen=True)
class NoPreview:
    """Only the message text is shown."""


@dataclass(frozen=True)
class MinimizedCard:
    """Title/description beside a small square image.

    ``show_body`` is False when neither title nor description exists; the
    card then renders an empty container, image included.
    """

    link: Optional[str]
    title: Optional[str]
    description: Optional[str]
    image_url: Optional[str]
    open_on_image_tap: bool
    open_on_title_tap: bool
    image_size: int = MINIMIZED_IMAGE_SIZE
    image_radius: int = MINIMIZED_IMAGE_RADIUS

    @property
    def show_body(self) -> bool:
        return self.title is not None or self.description is not None


@dataclass(frozen=True)
class FullCard:
    """Title, description and a full-width image stacked vertically."""

    link: Optional[str]
    title: Optional[str]
    description: Optional[str]
    image_url: Optional[str]
    image_width: float  # Also the image's maximum height


Presentation = Union[NoPreview, MinimizedCard, FullCard]


def select_presentation(
    preview_data: Optional[PreviewData], options: LinkPreviewOptions
) -> Presentation:
    if preview_data is None or not preview_data.has_data:
        return NoPreview()
    if options.hide_image and preview_data.has_only_image:
        return NoPreview()

    image_url = None
    if preview_data.image is not None and not options.hide_image:
        image_url = preview_data.image.url

    if preview_data.aspect_ratio == 1:
        return MinimizedCard(
            link=preview_data.link,
            title=preview_data.title,
            description=preview_data.description,
            image_url=image_url,
            open_on_image_tap=options.open_on_preview_image_tap,
            open_on_title_tap=options.open_on_preview_title_tap,
        )

    return FullCard(
        link=preview_data.link,
        title=preview_data.title,
        description=preview_data.description,
        image_url=image_url,
        image_width=max(0.0, options.width - FULL_CARD_HORIZONTAL_INSET),
    )

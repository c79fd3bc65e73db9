# Core logic package

from .preview_data import PreviewData, PreviewDataImage
from .link_preview_options import LinkPreviewOptions
from .presentation import (
    FullCard,
    MinimizedCard,
    NoPreview,
    Presentation,
    select_presentation,
)

__all__ = [
    "PreviewData",
    "PreviewDataImage",
    "LinkPreviewOptions",
    "FullCard",
    "MinimizedCard",
    "NoPreview",
    "Presentation",
    "select_presentation",
]

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple

from core.app_settings import (
    DEFAULT_ANIMATION_DURATION_MS,
    get_animation_duration_ms,
    get_cors_proxy,
    get_enable_animation,
    get_user_agent,
)
from core.preview_data import PreviewData

Edges = Tuple[int, int, int, int]  # left, top, right, bottom


@dataclass(frozen=True)
class LinkPreviewOptions:
    """Display and fetch configuration for one link preview.

    Styles are QSS declaration fragments (e.g. ``"color: #333;"``). Unset
    optional fields fall back to the defaults in ``core.app_settings``.
    """

    is_sender: bool
    on_preview_data_fetched: Callable[[PreviewData], None]
    width: float

    animation_duration_ms: Optional[int] = None
    enable_animation: bool = False

    border_radius: Optional[int] = None
    color: Optional[str] = None
    margin: Optional[Edges] = None
    padding: Optional[Edges] = None

    header: Optional[str] = None
    header_style: Optional[str] = None
    text_style: Optional[str] = None
    link_style: Optional[str] = None
    metadata_title_style: Optional[str] = None
    metadata_text_style: Optional[str] = None

    hide_image: bool = False
    image_builder: Optional[Callable[[str], Any]] = None  # returns a QWidget
    text_widget: Any = None  # QWidget shown instead of the linkified text

    on_link_pressed: Optional[Callable[[str], None]] = None
    open_on_preview_image_tap: bool = False
    open_on_preview_title_tap: bool = False

    cors_proxy: Optional[str] = None
    user_agent: Optional[str] = None

    @property
    def resolved_animation_duration_ms(self) -> int:
        if self.animation_duration_ms is None:
            return DEFAULT_ANIMATION_DURATION_MS
        return max(0, self.animation_duration_ms)

    @classmethod
    def from_settings(
        cls,
        is_sender: bool,
        on_preview_data_fetched: Callable[[PreviewData], None],
        width: float,
        enable_animation: Optional[bool] = None,
        animation_duration_ms: Optional[int] = None,
        cors_proxy: Optional[str] = None,
        user_agent: Optional[str] = None,
        **kwargs,
    ) -> "LinkPreviewOptions":
        """Build options, taking unspecified fetch/animation values from settings."""
        return cls(
            is_sender=is_sender,
            on_preview_data_fetched=on_preview_data_fetched,
            width=width,
            enable_animation=(
                get_enable_animation() if enable_animation is None else enable_animation
            ),
            animation_duration_ms=(
                get_animation_duration_ms()
                if animation_duration_ms is None
                else animation_duration_ms
            ),
            cors_proxy=cors_proxy if cors_proxy is not None else get_cors_proxy(),
            user_agent=user_agent if user_agent is not None else get_user_agent(),
            **kwargs,
        )

from __future__ import annotations

import logging
from typing import Optional, Protocol

from PyQt6 import sip
from PyQt6.QtCore import QObject, QTimer

from core.link_preview_options import LinkPreviewOptions
from core.preview_data import PreviewData
from core.presentation import Presentation, select_presentation
from core.url_opener import UrlOpener, open_link
from ui.reveal_animator import RevealAnimator

logger = logging.getLogger(__name__)


class PreviewFetchService(Protocol):
    def start_preview_fetch(
        self, text: str, proxy=None, user_agent=None, callback=None
    ) -> int: ...
    def cancel_preview_fetch(self, request_id: int) -> None: ...


class LinkPreviewController:
    """Coordinates fetching and revealing the preview of one message.

    Responsibilities:
    - Start at most one fetch while no preview data is supplied
    - Hand fetched data to the host after the animation delay, never keep it
    - Restart the reveal animation when data goes from absent to present
    - Select the presentation variant for the current snapshot

    All state lives on the GUI thread; fetch results reach it through the
    worker manager's queued signal and are dropped once disposed.
    """

    def __init__(
        self,
        options: LinkPreviewOptions,
        worker_manager: PreviewFetchService,
        opener: Optional[UrlOpener] = None,
        parent: Optional[QObject] = None,
    ):
        self.options = options
        self.worker_manager = worker_manager
        self.opener = opener

        self.is_fetching: bool = False
        self.should_animate: bool = False
        self.mounted: bool = True
        # Presence of preview data on the previous update, None before the first one
        self._had_preview_data: Optional[bool] = None

        self._fetch_request_id: Optional[int] = None
        self._pending_preview_data: Optional[PreviewData] = None
        self._notify_timer = QTimer(parent)
        self._notify_timer.setSingleShot(True)
        self._notify_timer.timeout.connect(self._notify_preview_data_fetched)

        self.animator = RevealAnimator(options.resolved_animation_duration_ms, parent)

    @property
    def animation_progress(self) -> float:
        return self.animator.progress

    # --- Public API ---
    def update(self, text: str, preview_data: Optional[PreviewData]) -> Presentation:
        """Apply a new text/data snapshot and return what should be shown."""
        has_preview_data = preview_data is not None
        # The first snapshot is compared with itself, so mounting with data does not animate
        had_preview_data = (
            has_preview_data
            if self._had_preview_data is None
            else self._had_preview_data
        )
        self._had_preview_data = has_preview_data

        if self.mounted and not self.is_fetching and preview_data is None:
            self._fetch_data(text)

        self._update_reveal(had_preview_data, has_preview_data)
        return select_presentation(preview_data, self.options)

    def open_link(self, url: Optional[str]) -> None:
        open_link(url, self.options.on_link_pressed, self.opener)

    def dispose(self) -> None:
        """Tear down timers; a fetch still in flight is ignored when it lands."""
        if not self.mounted:
            return
        self.mounted = False
        self._pending_preview_data = None
        if self._fetch_request_id is not None:
            self.worker_manager.cancel_preview_fetch(self._fetch_request_id)
            self._fetch_request_id = None
        # Both are gone already when their parent widget was destroyed first
        if not sip.isdeleted(self._notify_timer):
            self._notify_timer.stop()
        if not sip.isdeleted(self.animator):
            self.animator.dispose()
        logger.debug("Link preview controller disposed.")

    # --- Fetch coordination ---
    def _fetch_data(self, text: str) -> None:
        self.is_fetching = True
        logger.debug("Starting preview fetch.")
        self._fetch_request_id = self.worker_manager.start_preview_fetch(
            text,
            proxy=self.options.cors_proxy,
            user_agent=self.options.user_agent,
            callback=self._handle_preview_data_fetched,
        )

    def _handle_preview_data_fetched(self, preview_data: PreviewData) -> None:
        if not self.mounted:
            logger.debug("Preview data arrived after dispose, dropping it.")
            return
        self._fetch_request_id = None
        self._pending_preview_data = preview_data
        delay = self.options.resolved_animation_duration_ms
        if delay == 0:
            self._notify_preview_data_fetched()
        else:
            self._notify_timer.start(delay)

    def _notify_preview_data_fetched(self) -> None:
        preview_data = self._pending_preview_data
        self._pending_preview_data = None
        if not self.mounted or preview_data is None:
            return
        logger.debug("Notifying host of fetched preview data.")
        self.options.on_preview_data_fetched(preview_data)
        self.is_fetching = False

    # --- Reveal animation ---
    def _update_reveal(self, had_preview_data: bool, has_preview_data: bool) -> None:
        if not has_preview_data:
            return
        if not had_preview_data:
            self.should_animate = True
            if self.mounted:
                logger.debug("Preview data became available, starting reveal.")
                self.animator.restart()
        else:
            self.should_animate = False

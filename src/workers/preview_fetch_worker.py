"""
Preview Fetch Worker
Background worker resolving link preview metadata.
"""

import logging
from typing import Optional

from PyQt6.QtCore import QObject, pyqtSignal

from core.app_settings import get_fetch_timeout_seconds
from core.preview_data import PreviewData
from core.preview_fetcher import get_preview_data

logger = logging.getLogger(__name__)


class PreviewFetchWorker(QObject):
    """Worker for fetching preview data in a background thread."""

    # Signals
    fetch_finished = pyqtSignal(int, object)  # (request_id, PreviewData)

    def __init__(
        self,
        request_id: int,
        text: str,
        proxy: Optional[str] = None,
        user_agent: Optional[str] = None,
        parent=None,
    ):
        super().__init__(parent)
        self.request_id = request_id
        self.text = text
        self.proxy = proxy
        self.user_agent = user_agent

    def fetch(self):
        """Fetch preview data and emit the result, empty on any failure."""
        try:
            logger.debug(f"Fetching preview data (request {self.request_id})...")
            preview_data = get_preview_data(
                self.text,
                proxy=self.proxy,
                user_agent=self.user_agent,
                timeout=get_fetch_timeout_seconds(),
            )
        except Exception as e:
            logger.error(
                f"Unexpected error in preview fetch worker: {e}", exc_info=True
            )
            preview_data = PreviewData()
        self.fetch_finished.emit(self.request_id, preview_data)

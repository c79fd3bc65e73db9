"""
Link Preview Widget
Message text with highlighted links that unwraps into a preview card of the
first link once its metadata is available.
"""

import logging
from typing import Optional

from PyQt6 import sip
from PyQt6.QtCore import QCoreApplication, QRectF, Qt, QUrl, pyqtSignal
from PyQt6.QtGui import QPainter, QPainterPath, QPixmap
from PyQt6.QtNetwork import QNetworkAccessManager, QNetworkReply, QNetworkRequest
from PyQt6.QtWidgets import (
    QFrame,
    QHBoxLayout,
    QLabel,
    QSizePolicy,
    QVBoxLayout,
    QWidget,
)

from core.app_settings import (
    DEFAULT_CARD_COLOR,
    DEFAULT_CARD_MARGIN,
    DEFAULT_CARD_PADDING,
    DEFAULT_TITLE_STYLE,
    DESCRIPTION_MAX_LINES,
    DESCRIPTION_TOP_SPACING,
    HEADER_BOTTOM_SPACING,
    MINIMIZED_TEXT_RIGHT_SPACING,
    TEXT_MAX_LINES,
    TITLE_MAX_LINES,
)
from core.link_preview_options import LinkPreviewOptions
from core.preview_data import PreviewData
from core.presentation import FullCard, MinimizedCard, NoPreview, Presentation
from core.url_opener import UrlOpener
from ui.controllers.link_preview_controller import (
    LinkPreviewController,
    PreviewFetchService,
)
from ui.helpers.linkify_utils import build_linkified_html

logger = logging.getLogger(__name__)

QWIDGETSIZE_MAX = 16777215


def _cap_lines(label: QLabel, max_lines: int, top_spacing: int = 0):
    line_height = label.fontMetrics().lineSpacing()
    label.setMaximumHeight(line_height * max_lines + top_spacing)


class ClickableFrame(QFrame):
    """Frame emitting clicked on a left-button release inside it."""

    clicked = pyqtSignal()

    def mouseReleaseEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton and self.rect().contains(
            event.position().toPoint()
        ):
            self.clicked.emit()
            event.accept()
            return
        super().mouseReleaseEvent(event)


def _abort_reply(reply: QNetworkReply):
    if sip.isdeleted(reply) or not reply.isRunning():
        return
    reply.finished.disconnect()
    reply.abort()
    reply.deleteLater()


class NetworkImageLabel(QLabel):
    """Label that downloads and shows an image, optionally with rounded corners."""

    _network_manager: Optional[QNetworkAccessManager] = None

    def __init__(self, url: str, max_width: int, max_height: int, radius: int = 0, parent=None):
        super().__init__(parent)
        self._url = url
        self._max_width = max_width
        self._max_height = max_height
        self._radius = radius
        self._reply: Optional[QNetworkReply] = None
        self.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.setMaximumSize(max_width, max_height)
        self._load()

    @classmethod
    def _manager(cls) -> QNetworkAccessManager:
        if cls._network_manager is None:
            cls._network_manager = QNetworkAccessManager(QCoreApplication.instance())
        return cls._network_manager

    def _load(self):
        request = QNetworkRequest(QUrl(self._url))
        self._reply = self._manager().get(request)
        self._reply.finished.connect(self._on_reply_finished)
        self._reply.finished.connect(self._reply.deleteLater)
        reply = self._reply
        self._abort_on_destroy = self.destroyed.connect(
            lambda _obj=None: _abort_reply(reply)
        )

    def _on_reply_finished(self):
        reply = self._reply
        self._reply = None
        if reply is None:
            return
        self.destroyed.disconnect(self._abort_on_destroy)
        if reply.error() != QNetworkReply.NetworkError.NoError:
            logger.debug(f"Preview image {self._url} failed: {reply.errorString()}")
            return
        pixmap = QPixmap()
        if not pixmap.loadFromData(bytes(reply.readAll())):
            logger.debug(f"Preview image {self._url} could not be decoded")
            return
        self.setPixmap(self._fit(pixmap))

    def _fit(self, pixmap: QPixmap) -> QPixmap:
        scaled = pixmap.scaled(
            self._max_width,
            self._max_height,
            Qt.AspectRatioMode.KeepAspectRatio,
            Qt.TransformationMode.SmoothTransformation,
        )
        if not self._radius:
            return scaled
        rounded = QPixmap(scaled.size())
        rounded.fill(Qt.GlobalColor.transparent)
        painter = QPainter(rounded)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        path = QPainterPath()
        path.addRoundedRect(
            QRectF(0, 0, scaled.width(), scaled.height()), self._radius, self._radius
        )
        painter.setClipPath(path)
        painter.drawPixmap(0, 0, scaled)
        painter.end()
        return rounded


class LinkPreview(QWidget):
    """Renders text with links and, when available, the preview card.

    The host owns the preview data: it receives it through
    ``options.on_preview_data_fetched`` and passes it back with ``set_data``.
    """

    def __init__(
        self,
        options: LinkPreviewOptions,
        text: str,
        worker_manager: PreviewFetchService,
        preview_data: Optional[PreviewData] = None,
        opener: Optional[UrlOpener] = None,
        parent=None,
    ):
        super().__init__(parent)
        self.options = options
        self.text = text
        self.controller = LinkPreviewController(
            options, worker_manager, opener, parent=self
        )
        # Child widgets are destroyed without a closeEvent
        controller = self.controller
        self.destroyed.connect(lambda _obj=None: controller.dispose())
        self.controller.animator.progress_changed.connect(self._apply_reveal_progress)
        self.controller.animator.finished.connect(self._finish_reveal)

        self.presentation: Presentation = NoPreview()
        self.card: Optional[QWidget] = None

        self._setup_ui()
        self.set_data(text, preview_data)

    def _setup_ui(self):
        self.setMaximumWidth(int(self.options.width))
        alignment = (
            Qt.AlignmentFlag.AlignRight
            if self.options.is_sender
            else Qt.AlignmentFlag.AlignLeft
        )

        self.main_layout = QVBoxLayout(self)
        self.main_layout.setContentsMargins(0, 0, 0, 0)
        self.main_layout.setSpacing(0)

        if self.options.header is not None:
            self.header_label = QLabel()
            self.header_label.setObjectName("linkPreviewHeader")
            if self.options.header_style:
                self.header_label.setStyleSheet(self.options.header_style)
            metrics = self.header_label.fontMetrics()
            self.header_label.setText(
                metrics.elidedText(
                    self.options.header,
                    Qt.TextElideMode.ElideRight,
                    int(self.options.width),
                )
            )
            self.header_label.setContentsMargins(0, 0, 0, HEADER_BOTTOM_SPACING)
            self.main_layout.addWidget(self.header_label, 0, alignment)

        if self.options.text_widget is not None:
            self.text_label = self.options.text_widget
        else:
            self.text_label = QLabel()
            self.text_label.setObjectName("linkPreviewText")
            self.text_label.setTextFormat(Qt.TextFormat.RichText)
            self.text_label.setWordWrap(True)
            _cap_lines(self.text_label, TEXT_MAX_LINES)
            self.text_label.setTextInteractionFlags(
                Qt.TextInteractionFlag.TextSelectableByMouse
                | Qt.TextInteractionFlag.LinksAccessibleByMouse
            )
            self.text_label.setOpenExternalLinks(False)
            self.text_label.linkActivated.connect(self.controller.open_link)
            if self.options.text_style:
                self.text_label.setStyleSheet(self.options.text_style)
        self.main_layout.addWidget(self.text_label, 0, alignment)

        # Only this container takes part in the reveal animation
        self.reveal_container = QWidget()
        self.reveal_container.setObjectName("linkPreviewRevealContainer")
        self.reveal_layout = QVBoxLayout(self.reveal_container)
        self.reveal_layout.setContentsMargins(0, 0, 0, 0)
        self.reveal_layout.setSpacing(0)
        self.main_layout.addWidget(self.reveal_container, 0, alignment)

    # --- Public API ---
    def set_data(self, text: str, preview_data: Optional[PreviewData]):
        """Render a new snapshot; call again whenever the host's data changes."""
        if self.options.text_widget is None and (
            text != self.text or not self.text_label.text()
        ):
            self.text_label.setText(
                build_linkified_html(text, self.options.link_style)
            )
        self.text = text

        presentation = self.controller.update(text, preview_data)
        if presentation != self.presentation or self.card is None:
            self.presentation = presentation
            self._rebuild_card()

        if self._is_revealing():
            self._apply_reveal_progress(self.controller.animation_progress)
        else:
            self.reveal_container.setMaximumHeight(QWIDGETSIZE_MAX)

    def dispose(self):
        self.controller.dispose()

    def closeEvent(self, event):
        self.dispose()
        super().closeEvent(event)

    # --- Reveal animation ---
    def _is_revealing(self) -> bool:
        return (
            self.options.enable_animation
            and self.controller.should_animate
            and not isinstance(self.presentation, NoPreview)
        )

    def _apply_reveal_progress(self, progress: float):
        if not self._is_revealing():
            return
        full_height = self.reveal_container.sizeHint().height()
        self.reveal_container.setMaximumHeight(int(full_height * progress))

    def _finish_reveal(self):
        self.reveal_container.setMaximumHeight(QWIDGETSIZE_MAX)

    # --- Card construction ---
    def _rebuild_card(self):
        if self.card is not None:
            self.reveal_layout.removeWidget(self.card)
            self.card.deleteLater()
            self.card = None

        if isinstance(self.presentation, MinimizedCard):
            self.card = self._minimized_card(self.presentation)
        elif isinstance(self.presentation, FullCard):
            self.card = self._full_card(self.presentation)
        else:
            self.card = QWidget()
        self.reveal_layout.addWidget(self.card)

    def _card_frame(self, clickable: bool) -> QFrame:
        frame = ClickableFrame() if clickable else QFrame()
        frame.setObjectName("linkPreviewCard")
        color = self.options.color or DEFAULT_CARD_COLOR
        radius = self.options.border_radius or 0
        frame.setStyleSheet(
            f"#linkPreviewCard {{ background-color: {color}; border-radius: {radius}px; }}"
        )
        return frame

    def _card_margins(self, layout):
        left, top, right, bottom = self.options.padding or DEFAULT_CARD_PADDING
        layout.setContentsMargins(left, top, right, bottom)

    def _wrap_with_margin(self, frame: QWidget) -> QWidget:
        left, top, right, bottom = self.options.margin or DEFAULT_CARD_MARGIN
        wrapper = QWidget()
        layout = QVBoxLayout(wrapper)
        layout.setContentsMargins(left, top, right, bottom)
        layout.setSpacing(0)
        layout.addWidget(frame)
        return wrapper

    def _full_card(self, card: FullCard) -> QWidget:
        frame = self._card_frame(clickable=True)
        frame.clicked.connect(lambda: self.controller.open_link(card.link))
        layout = QVBoxLayout(frame)
        self._card_margins(layout)
        layout.setSpacing(0)

        if card.title is not None:
            layout.addWidget(self._title_label(card.title))
        if card.description is not None:
            layout.addWidget(self._description_label(card.description))
        if card.image_url is not None:
            image = self._image_widget(
                card.image_url, int(card.image_width), int(card.image_width)
            )
            image_frame = ClickableFrame()
            image_layout = QVBoxLayout(image_frame)
            image_layout.setContentsMargins(0, 0, 0, 0)
            image_layout.addWidget(image)
            image_frame.setFixedWidth(int(card.image_width))
            image_frame.setMaximumHeight(int(card.image_width))
            image_frame.clicked.connect(lambda: self.controller.open_link(card.link))
            layout.addWidget(image_frame)
        return self._wrap_with_margin(frame)

    def _minimized_card(self, card: MinimizedCard) -> QWidget:
        container = QWidget()
        container_layout = QVBoxLayout(container)
        container_layout.setContentsMargins(0, 0, 0, 0)
        if not card.show_body:
            # Square image without title/description renders an empty container
            return container

        frame = self._card_frame(clickable=False)
        row = QHBoxLayout(frame)
        self._card_margins(row)
        row.setSpacing(0)

        text_frame = ClickableFrame()
        text_layout = QVBoxLayout(text_frame)
        text_layout.setContentsMargins(0, 0, MINIMIZED_TEXT_RIGHT_SPACING, 0)
        text_layout.setSpacing(0)
        if card.title is not None:
            text_layout.addWidget(self._title_label(card.title))
        if card.description is not None:
            text_layout.addWidget(self._description_label(card.description))
        text_frame.setSizePolicy(
            QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Preferred
        )
        if card.open_on_title_tap:
            text_frame.clicked.connect(lambda: self.controller.open_link(card.link))
        row.addWidget(text_frame, 1, Qt.AlignmentFlag.AlignTop)

        if card.image_url is not None:
            image_frame = ClickableFrame()
            image_frame.setFixedSize(card.image_size, card.image_size)
            image_layout = QVBoxLayout(image_frame)
            image_layout.setContentsMargins(0, 0, 0, 0)
            image_layout.addWidget(
                self._image_widget(
                    card.image_url,
                    card.image_size,
                    card.image_size,
                    radius=card.image_radius,
                )
            )
            if card.open_on_image_tap:
                image_frame.clicked.connect(
                    lambda: self.controller.open_link(card.link)
                )
            row.addWidget(image_frame, 0, Qt.AlignmentFlag.AlignTop)

        container_layout.addWidget(self._wrap_with_margin(frame))
        return container

    def _title_label(self, title: str) -> QLabel:
        label = self._limited_label(
            title,
            TITLE_MAX_LINES,
            self.options.metadata_title_style or DEFAULT_TITLE_STYLE,
        )
        label.setObjectName("linkPreviewTitle")
        return label

    def _description_label(self, description: str) -> QLabel:
        label = self._limited_label(
            description,
            DESCRIPTION_MAX_LINES,
            self.options.metadata_text_style,
            top_spacing=DESCRIPTION_TOP_SPACING,
        )
        label.setObjectName("linkPreviewDescription")
        return label

    def _limited_label(
        self,
        text: str,
        max_lines: int,
        style: Optional[str],
        top_spacing: int = 0,
    ) -> QLabel:
        label = QLabel(text)
        label.setTextFormat(Qt.TextFormat.PlainText)
        label.setWordWrap(True)
        if style:
            label.setStyleSheet(style)
        label.setContentsMargins(0, top_spacing, 0, 0)
        _cap_lines(label, max_lines, top_spacing)
        return label

    def _image_widget(
        self, url: str, max_width: int, max_height: int, radius: int = 0
    ) -> QWidget:
        if self.options.image_builder is not None:
            return self.options.image_builder(url)
        return NetworkImageLabel(url, max_width, max_height, radius=radius)

import sys
import os
from typing import Dict, List, Optional

# Ensure the 'src' directory is on sys.path when executing as a script
SRC_DIR = os.path.dirname(__file__)
if SRC_DIR and SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

import logging  # noqa: E402
import argparse  # noqa: E402
import traceback  # noqa: E402  # For global exception handler

from PyQt6.QtCore import Qt  # noqa: E402
from PyQt6.QtWidgets import (  # noqa: E402
    QApplication,
    QMainWindow,
    QMessageBox,
    QScrollArea,
    QVBoxLayout,
    QWidget,
)

from core.link_preview_options import LinkPreviewOptions  # noqa: E402
from core.preview_data import PreviewData  # noqa: E402
from ui.link_preview_widget import LinkPreview  # noqa: E402
from ui.worker_manager import WorkerManager  # noqa: E402

DEFAULT_MESSAGES = [
    "Have you seen https://www.python.org/ lately?",
    "No link in this one, just plain text.",
    "Docs are at docs.python.org/3/ and questions go to help@example.com",
]


# --- Global Exception Handler ---
def global_exception_handler(exc_type, exc_value, exc_traceback):
    """Handles any unhandled exception, logs it, and shows an error dialog."""
    # Don't show a dialog for KeyboardInterrupt (Ctrl+C)
    if issubclass(exc_type, KeyboardInterrupt):
        logging.info("Application terminated by user.")
        sys.__excepthook__(exc_type, exc_value, exc_traceback)
        return

    error_message_details = "".join(
        traceback.format_exception(exc_type, exc_value, exc_traceback)
    )
    logging.critical(f"Unhandled exception occurred:\n{error_message_details}")

    app_instance = QApplication.instance()
    if app_instance:
        try:
            error_box = QMessageBox()
            error_box.setIcon(QMessageBox.Icon.Critical)
            error_box.setWindowTitle("Application Error")
            error_box.setText(f"A critical error occurred: {str(exc_value)}")
            error_box.setDetailedText(error_message_details)
            error_box.setStandardButtons(QMessageBox.StandardButton.Ok)
            error_box.exec()
        except Exception as e_msgbox:
            logging.error(
                f"Failed to display error dialog: {str(e_msgbox)}\nOriginal error:\n{error_message_details}"
            )


def setup_logging():
    root_logger = logging.getLogger()

    # Remove any existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(
        fmt="%(asctime)s - %(levelname)-8s - [%(name)s] - [%(filename)s:%(lineno)d] - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if sys.stderr is not None:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        console_handler.setLevel(logging.DEBUG)
        root_logger.addHandler(console_handler)

    root_logger.setLevel(logging.DEBUG)
    enable_file_logging_env = os.environ.get("LINKPREVIEW_ENABLE_FILE_LOGGING", "false")
    if enable_file_logging_env.lower() == "true":
        try:
            log_file_path = os.path.join(
                os.path.expanduser("~"), ".linkpreview_logs", "linkpreview_app.log"
            )
            os.makedirs(os.path.dirname(log_file_path), exist_ok=True)
            file_handler = logging.FileHandler(log_file_path, mode="a")
            file_handler.setFormatter(formatter)
            file_handler.setLevel(logging.DEBUG)
            root_logger.addHandler(file_handler)
            logging.info(f"File logging enabled: {log_file_path}")
        except OSError as e_file_log:
            logging.error(
                f"Failed to initialize file logging: {e_file_log}", exc_info=True
            )
            root_logger.setLevel(logging.INFO)
    else:
        logging.info(
            "File logging disabled. To enable, set LINKPREVIEW_ENABLE_FILE_LOGGING=true."
        )


class ChatDemoWindow(QMainWindow):
    """Chat-like list of messages, acting as the host of the previews.

    Fetched preview data is kept here and handed back to each preview, which
    is what keeps a preview from fetching twice.
    """

    def __init__(
        self,
        messages: List[str],
        width: int,
        cors_proxy: Optional[str] = None,
        user_agent: Optional[str] = None,
        enable_animation: Optional[bool] = None,
    ):
        super().__init__()
        self.setWindowTitle("Link Preview")
        self.resize(width + 80, 600)

        self.worker_manager = WorkerManager(self)
        self.preview_data: Dict[int, PreviewData] = {}
        self.previews: List[LinkPreview] = []

        content = QWidget()
        layout = QVBoxLayout(content)
        layout.setSpacing(16)

        for index, message in enumerate(messages):
            is_sender = index % 2 == 1
            options = LinkPreviewOptions.from_settings(
                is_sender=is_sender,
                on_preview_data_fetched=lambda data, i=index: self._on_preview_data_fetched(i, data),
                width=width,
                enable_animation=enable_animation,
                cors_proxy=cors_proxy,
                user_agent=user_agent,
                border_radius=12,
                open_on_preview_title_tap=True,
                open_on_preview_image_tap=True,
            )
            preview = LinkPreview(options, message, self.worker_manager)
            self.previews.append(preview)
            layout.addWidget(
                preview,
                0,
                Qt.AlignmentFlag.AlignRight if is_sender else Qt.AlignmentFlag.AlignLeft,
            )
        layout.addStretch()

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setWidget(content)
        self.setCentralWidget(scroll)

    def _on_preview_data_fetched(self, index: int, data: PreviewData):
        logging.debug(f"Preview data stored for message {index}: {data.to_dict()}")
        self.preview_data[index] = data
        preview = self.previews[index]
        preview.set_data(preview.text, self.preview_data.get(index))

    def closeEvent(self, event):
        for preview in self.previews:
            preview.dispose()
        self.worker_manager.stop_all_workers()
        super().closeEvent(event)


def main():
    """Main application entry point."""
    app = QApplication(sys.argv)

    parser = argparse.ArgumentParser(description="Link Preview demo")
    parser.add_argument(
        "--message",
        action="append",
        help="Message text to show (repeatable)",
    )
    parser.add_argument("--cors-proxy", type=str, help="Prefix for fetched URLs")
    parser.add_argument("--user-agent", type=str, help="User-Agent for fetches")
    parser.add_argument(
        "--no-animation", action="store_true", help="Disable the reveal animation"
    )
    parser.add_argument("--width", type=int, default=360, help="Preview width")
    args = parser.parse_args(app.arguments()[1:])

    setup_logging()
    sys.excepthook = global_exception_handler
    logging.debug("Global exception hook set.")
    logging.info("Application starting...")

    window = ChatDemoWindow(
        messages=args.message or DEFAULT_MESSAGES,
        width=args.width,
        cors_proxy=args.cors_proxy,
        user_agent=args.user_agent,
        enable_animation=False if args.no_animation else True,
    )
    window.show()

    exit_code = app.exec()
    logging.info(f"Application exiting with code {exit_code}.")
    sys.exit(exit_code)


if __name__ == "__main__":
    main()

"""Tests for LinkPreviewController fetch coordination and reveal state."""

from unittest.mock import MagicMock, patch

import pytest

from conftest import wait_until
from core.link_preview_options import LinkPreviewOptions
from core.preview_data import PreviewData, PreviewDataImage
from core.presentation import FullCard, MinimizedCard, NoPreview
from ui.controllers.link_preview_controller import LinkPreviewController


class DummyWorkerManager:
    """Records fetch requests; results are delivered by the test."""

    def __init__(self):
        self.started = []  # (text, proxy, user_agent)
        self.callbacks = {}
        self.cancelled = []
        self._next_id = 1

    def start_preview_fetch(self, text, proxy=None, user_agent=None, callback=None):
        request_id = self._next_id
        self._next_id += 1
        self.started.append((text, proxy, user_agent))
        self.callbacks[request_id] = callback
        return request_id

    def cancel_preview_fetch(self, request_id):
        self.cancelled.append(request_id)
        self.callbacks[request_id] = None

    def deliver(self, preview_data, request_id=None):
        request_id = request_id or max(self.callbacks)
        callback = self.callbacks.get(request_id)
        if callback is not None:
            callback(preview_data)


def make_controller(worker_manager=None, **overrides):
    params = dict(
        is_sender=False,
        on_preview_data_fetched=MagicMock(),
        width=300,
        animation_duration_ms=0,
    )
    params.update(overrides)
    options = LinkPreviewOptions(**params)
    controller = LinkPreviewController(options, worker_manager or DummyWorkerManager())
    return controller, options.on_preview_data_fetched


GITHUB_DATA = PreviewData(
    link="https://github.com",
    title="GitHub",
    description="Where the world builds software",
    image=PreviewDataImage(url="https://github.com/og.png", width=1200, height=630),
)


@pytest.fixture
def manager():
    return DummyWorkerManager()


def test_fetch_starts_when_no_data(qapp, manager):
    controller, _ = make_controller(
        manager, cors_proxy="https://proxy.test/?u=", user_agent="Agent/1.0"
    )
    presentation = controller.update("see https://github.com", None)

    assert presentation == NoPreview()
    assert controller.is_fetching is True
    assert manager.started == [
        ("see https://github.com", "https://proxy.test/?u=", "Agent/1.0")
    ]


def test_no_second_fetch_while_one_is_in_flight(qapp, manager):
    controller, _ = make_controller(manager)
    controller.update("https://github.com", None)
    controller.update("https://github.com", None)
    controller.update("now https://python.org instead", None)
    assert len(manager.started) == 1


def test_no_fetch_when_data_is_supplied(qapp, manager):
    controller, callback = make_controller(manager)
    presentation = controller.update("https://github.com", GITHUB_DATA)
    assert manager.started == []
    assert controller.is_fetching is False
    assert isinstance(presentation, FullCard)
    callback.assert_not_called()


def test_zero_duration_notifies_synchronously(qapp, manager):
    controller, callback = make_controller(manager, animation_duration_ms=0)
    controller.update("https://github.com", None)
    manager.deliver(GITHUB_DATA)

    callback.assert_called_once_with(GITHUB_DATA)
    assert controller.is_fetching is False


def test_notification_waits_for_animation_duration(qapp, manager):
    controller, callback = make_controller(manager, animation_duration_ms=80)
    controller.update("https://github.com", None)
    manager.deliver(GITHUB_DATA)

    callback.assert_not_called()
    assert controller.is_fetching is True
    assert wait_until(lambda: callback.called)
    callback.assert_called_once_with(GITHUB_DATA)
    assert controller.is_fetching is False


def test_fetch_can_restart_after_notification(qapp, manager):
    controller, callback = make_controller(manager)
    controller.update("https://github.com", None)
    manager.deliver(PreviewData(link="https://github.com"))
    # Host chose not to store the data; the next update fetches again
    controller.update("https://github.com", None)
    assert len(manager.started) == 2
    assert callback.call_count == 1


def test_dispose_before_result_drops_it(qapp, manager):
    controller, callback = make_controller(manager)
    controller.update("https://github.com", None)
    controller.dispose()

    assert manager.cancelled == [1]
    manager.callbacks[1] = controller._handle_preview_data_fetched
    manager.deliver(GITHUB_DATA, request_id=1)
    callback.assert_not_called()
    assert controller.mounted is False


def test_dispose_during_delay_cancels_notification(qapp, manager):
    controller, callback = make_controller(manager, animation_duration_ms=50)
    controller.update("https://github.com", None)
    manager.deliver(GITHUB_DATA)
    controller.dispose()

    assert not wait_until(lambda: callback.called, timeout_ms=200)
    callback.assert_not_called()


def test_disposed_controller_does_not_fetch(qapp, manager):
    controller, _ = make_controller(manager)
    controller.dispose()
    controller.dispose()
    controller.update("https://github.com", None)
    assert manager.started == []


def test_mounting_with_data_does_not_animate(qapp, manager):
    controller, _ = make_controller(manager, animation_duration_ms=100)
    controller.update("https://github.com", GITHUB_DATA)
    assert controller.should_animate is False
    assert not controller.animator.is_running()


def test_data_arrival_triggers_reveal(qapp, manager):
    controller, _ = make_controller(manager, animation_duration_ms=60)
    controller.update("https://github.com", None)
    assert controller.should_animate is False

    controller.update("https://github.com", GITHUB_DATA)
    assert controller.should_animate is True
    assert controller.animation_progress == 0.0
    assert controller.animator.is_running()
    assert wait_until(lambda: controller.animation_progress == 1.0)

    # Data staying present keeps the card static
    controller.update("https://github.com", GITHUB_DATA)
    assert controller.should_animate is False


def test_losing_data_keeps_animation_flag(qapp, manager):
    controller, _ = make_controller(manager)
    controller.update("https://github.com", None)
    controller.update("https://github.com", GITHUB_DATA)
    assert controller.should_animate is True
    controller.update("https://github.com", None)
    assert controller.should_animate is True


def test_presentation_follows_data(qapp, manager):
    controller, _ = make_controller(manager)
    square = PreviewData(
        title="Icon",
        image=PreviewDataImage(url="https://example.com/i.png", width=64, height=64),
    )
    assert isinstance(controller.update("https://example.com", square), MinimizedCard)
    assert controller.update("https://example.com", PreviewData()) == NoPreview()


def test_open_link_prefers_custom_handler(qapp, manager):
    handler = MagicMock()
    controller, _ = make_controller(manager, on_link_pressed=handler)
    controller.open_link("https://github.com")
    handler.assert_called_once_with("https://github.com")


def test_open_link_ignores_missing_link(qapp, manager):
    opener = MagicMock()
    controller, _ = make_controller(manager)
    controller.opener = opener
    controller.open_link(None)
    opener.can_open.assert_not_called()


# --- End-to-end message scenarios ---


def test_message_without_url_resolves_to_empty_data(qapp, temp_settings):
    """A plain message never touches the network and yields empty data."""
    from ui.worker_manager import WorkerManager

    worker_manager = WorkerManager()
    controller, callback = make_controller(worker_manager)
    with patch("core.preview_fetcher.urlopen") as mock_urlopen:
        presentation = controller.update("Hello world", None)
        assert presentation == NoPreview()
        assert wait_until(lambda: callback.called)
    mock_urlopen.assert_not_called()
    callback.assert_called_once_with(PreviewData())
    assert controller.update("Hello world", PreviewData()) == NoPreview()
    worker_manager.stop_all_workers()


def test_message_with_github_link(qapp, manager):
    stored = {}
    controller, _ = make_controller(
        manager,
        animation_duration_ms=40,
        on_preview_data_fetched=lambda data: stored.setdefault("data", data),
    )
    controller.update("Check https://github.com", None)
    manager.deliver(GITHUB_DATA)
    assert wait_until(lambda: "data" in stored)

    presentation = controller.update("Check https://github.com", stored["data"])
    assert isinstance(presentation, FullCard)
    assert presentation.title == "GitHub"
    assert presentation.image_url == "https://github.com/og.png"
    assert controller.should_animate is True
    assert len(manager.started) == 1


def test_message_with_square_icon_hidden(qapp, manager):
    controller, _ = make_controller(manager, hide_image=True)
    data = PreviewData(
        link="https://example.com",
        title="Example",
        image=PreviewDataImage(url="https://example.com/icon.png", width=32, height=32),
    )
    presentation = controller.update("https://example.com", data)
    assert isinstance(presentation, MinimizedCard)
    assert presentation.image_url is None
    assert presentation.title == "Example"


def test_dispose_after_parent_destroyed(qapp, manager):
    from PyQt6 import sip
    from PyQt6.QtCore import QObject

    owner = QObject()
    options = LinkPreviewOptions(
        is_sender=False,
        on_preview_data_fetched=MagicMock(),
        width=300,
        animation_duration_ms=50,
    )
    controller = LinkPreviewController(options, manager, parent=owner)
    controller.update("https://github.com", None)
    manager.deliver(GITHUB_DATA)

    sip.delete(owner)
    assert sip.isdeleted(controller.animator)
    controller.dispose()

    assert controller.mounted is False
    assert not wait_until(lambda: options.on_preview_data_fetched.called, timeout_ms=150)

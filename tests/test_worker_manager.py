import threading
from unittest.mock import patch

from conftest import wait_until
from core.preview_data import PreviewData
from ui.worker_manager import WorkerManager


def test_fetch_result_reaches_callback_on_gui_thread(qapp, temp_settings):
    data = PreviewData(link="https://example.com", title="Example")
    manager = WorkerManager()
    received = []
    fetch_threads = []

    def fake_fetch(text, **kwargs):
        fetch_threads.append(threading.current_thread())
        return data

    def on_fetched(result):
        received.append((result, threading.current_thread()))

    with patch("workers.preview_fetch_worker.get_preview_data", side_effect=fake_fetch):
        request_id = manager.start_preview_fetch("https://example.com", callback=on_fetched)
        assert wait_until(lambda: received)

    assert request_id == 1
    assert received == [(data, threading.main_thread())]
    assert fetch_threads[0] is not threading.main_thread()
    assert wait_until(lambda: not manager.is_any_worker_running())
    manager.stop_all_workers()


def test_request_ids_increase(qapp, temp_settings):
    manager = WorkerManager()
    with patch(
        "workers.preview_fetch_worker.get_preview_data", return_value=PreviewData()
    ):
        first = manager.start_preview_fetch("a")
        second = manager.start_preview_fetch("b")
        assert second == first + 1
        assert wait_until(lambda: not manager.is_any_worker_running())
    manager.stop_all_workers()


def test_cancelled_fetch_drops_result(qapp, temp_settings):
    manager = WorkerManager()
    gate = threading.Event()
    received = []
    finished = []
    manager.preview_fetch_finished.connect(lambda rid, data: finished.append(rid))

    def slow_fetch(text, **kwargs):
        gate.wait(2)
        return PreviewData(title="late")

    with patch("workers.preview_fetch_worker.get_preview_data", side_effect=slow_fetch):
        request_id = manager.start_preview_fetch("https://example.com", callback=received.append)
        manager.cancel_preview_fetch(request_id)
        gate.set()
        assert wait_until(lambda: finished)

    assert finished == [request_id]
    assert received == []
    manager.stop_all_workers()


def test_stop_all_workers_clears_jobs(qapp, temp_settings):
    manager = WorkerManager()
    gate = threading.Event()

    def blocking_fetch(text, **kwargs):
        gate.wait(2)
        return PreviewData()

    with patch("workers.preview_fetch_worker.get_preview_data", side_effect=blocking_fetch):
        request_id = manager.start_preview_fetch("https://example.com")
        assert manager.is_preview_fetch_running(request_id)
        gate.set()
        manager.stop_all_workers()

    assert not manager.is_preview_fetch_running(request_id)
    assert not manager.is_any_worker_running()

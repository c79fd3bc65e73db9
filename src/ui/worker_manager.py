import itertools
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from PyQt6.QtCore import QObject, QThread, pyqtSignal, pyqtSlot

from core.preview_data import PreviewData
from workers.preview_fetch_worker import PreviewFetchWorker

logger = logging.getLogger(__name__)

PreviewFetchCallback = Callable[[PreviewData], None]


@dataclass
class _PreviewFetchJob:
    thread: QThread
    worker: PreviewFetchWorker
    callback: Optional[PreviewFetchCallback]


class WorkerManager(QObject):
    """
    Manages background preview fetch workers and their QThreads.

    Each fetch runs on its own thread; results are delivered on the thread
    that owns the manager (the GUI thread) before the callback is invoked.
    """

    # Preview Fetch Signals
    preview_fetch_finished = pyqtSignal(int, object)  # request_id, PreviewData

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._request_ids = itertools.count(1)
        self._preview_fetch_jobs: Dict[int, _PreviewFetchJob] = {}

    def _terminate_thread(self, thread: Optional[QThread]):
        if thread is not None and thread.isRunning():
            thread.quit()
            if not thread.wait(5000):  # Wait 5 seconds
                logger.warning(f"Thread {thread} did not quit gracefully. Terminating.")
                thread.terminate()
                thread.wait()  # Wait for termination
            logger.debug(f"Thread {thread} stopped.")

    # --- Preview Fetch Management ---
    def start_preview_fetch(
        self,
        text: str,
        proxy: Optional[str] = None,
        user_agent: Optional[str] = None,
        callback: Optional[PreviewFetchCallback] = None,
    ) -> int:
        """Start fetching preview data for text in a background thread.

        Returns the request id used by cancel_preview_fetch and the
        preview_fetch_finished signal.
        """
        request_id = next(self._request_ids)
        thread = QThread()
        worker = PreviewFetchWorker(request_id, text, proxy, user_agent)
        worker.moveToThread(thread)

        # Connect signals
        worker.fetch_finished.connect(self._on_preview_fetch_finished)
        worker.fetch_finished.connect(thread.quit)
        thread.finished.connect(
            lambda rid=request_id: self._cleanup_preview_fetch_refs(rid)
        )

        # Connect start signal
        thread.started.connect(worker.fetch)

        self._preview_fetch_jobs[request_id] = _PreviewFetchJob(
            thread=thread, worker=worker, callback=callback
        )
        thread.start()
        logger.debug(f"Preview fetch thread started (request {request_id}).")
        return request_id

    def cancel_preview_fetch(self, request_id: int):
        """Detach the callback of a pending fetch; its result will be dropped."""
        job = self._preview_fetch_jobs.get(request_id)
        if job is not None and job.callback is not None:
            job.callback = None
            logger.debug(f"Preview fetch {request_id} cancelled.")

    @pyqtSlot(int, object)
    def _on_preview_fetch_finished(self, request_id: int, preview_data: object):
        job = self._preview_fetch_jobs.get(request_id)
        callback = job.callback if job is not None else None
        if job is not None:
            job.callback = None
        self.preview_fetch_finished.emit(request_id, preview_data)
        if callback is None:
            logger.debug(f"Dropping result of cancelled preview fetch {request_id}.")
            return
        callback(preview_data)

    def _cleanup_preview_fetch_refs(self, request_id: int):
        job = self._preview_fetch_jobs.pop(request_id, None)
        if job is None:
            return
        job.worker.deleteLater()
        job.thread.deleteLater()
        logger.debug(f"Preview fetch thread and worker cleaned up (request {request_id}).")

    def stop_all_workers(self):
        logger.info("Stopping all workers...")
        for request_id, job in list(self._preview_fetch_jobs.items()):
            job.callback = None
            self._terminate_thread(job.thread)
            self._cleanup_preview_fetch_refs(request_id)
        logger.info("All workers stopped.")

    def is_preview_fetch_running(self, request_id: Optional[int] = None) -> bool:
        if request_id is None:
            return any(
                job.thread.isRunning() for job in self._preview_fetch_jobs.values()
            )
        job = self._preview_fetch_jobs.get(request_id)
        return job is not None and job.thread.isRunning()

    def is_any_worker_running(self) -> bool:
        return self.is_preview_fetch_running()

"""Dispatch of requests to routers, directly or through a worker pool."""

from __future__ import annotations

import logging
import queue
import threading
from typing import Any

_log = logging.getLogger(__name__)

_STOP = object()


class DuplicateRouterError(Exception):
    """A router is already registered for the message id."""

    def __init__(self, msg_id: int) -> None:
        super().__init__(f"Repeat Register Api, msg id: {msg_id}")
        self.msg_id = msg_id


class MessageHandler:
    """Maps message ids to routers and runs them, optionally on worker threads."""

    def __init__(self, worker_pool_size: int = 10, max_worker_task_len: int = 1024) -> None:
        self.apis: dict[int, Any] = {}
        self.worker_pool_size = worker_pool_size
        self.max_worker_task_len = max_worker_task_len
        self._task_queues: list[queue.Queue] = []
        self._workers: list[threading.Thread] = []

    def do_msg_handler(self, request: Any) -> bool:
        """Run the router for the request's message id; False if none is registered."""
        router = self.apis.get(request.msg_id)
        if router is None:
            _log.warning("no handler, please register first! msgid=%d", request.msg_id)
            return False
        router.pre_handle(request)
        router.handle(request)
        router.post_handle(request)
        return True

    def add_router(self, msg_id: int, router: Any) -> None:
        """Register ``router`` for ``msg_id``."""
        if msg_id in self.apis:
            raise DuplicateRouterError(msg_id)
        self.apis[msg_id] = router
        _log.info("Add Router msgId: %d success", msg_id)

    def start_worker_pool(self) -> None:
        """Start one worker thread with its own task queue per pool slot."""
        if self._workers:
            raise RuntimeError("worker pool already started")
        for worker_id in range(self.worker_pool_size):
            task_queue: queue.Queue = queue.Queue(maxsize=self.max_worker_task_len)
            worker = threading.Thread(
                target=self._run_worker,
                args=(worker_id, task_queue),
                name=f"zinx-worker-{worker_id}",
                daemon=True,
            )
            self._task_queues.append(task_queue)
            self._workers.append(worker)
            worker.start()

    def send_msg_to_task_queue(self, request: Any) -> int:
        """Queue the request on the worker chosen by its connection id; return that worker's id."""
        if not self._task_queues:
            raise RuntimeError("worker pool is not running")
        conn_id = request.connection.conn_id
        worker_id = conn_id % len(self._task_queues)
        _log.debug(
            "Add ConnID=%d request MsgID=%d to WorkerID=%d", conn_id, request.msg_id, worker_id
        )
        self._task_queues[worker_id].put(request)
        return worker_id

    def stop_worker_pool(self) -> None:
        """Let each worker finish its queued requests, then stop it."""
        for task_queue in self._task_queues:
            task_queue.put(_STOP)
        for worker in self._workers:
            worker.join()
        self._task_queues.clear()
        self._workers.clear()

    def _run_worker(self, worker_id: int, task_queue: queue.Queue) -> None:
        _log.debug("Worker ID=%d is starting", worker_id)
        while True:
            request = task_queue.get()
            if request is _STOP:
                return
            try:
                self.do_msg_handler(request)
            except Exception:
                _log.exception("worker %d failed to handle request", worker_id)
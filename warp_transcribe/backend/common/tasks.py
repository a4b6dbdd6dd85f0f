"""Lightweight background task execution for player I/O pumps."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, Future
from dataclasses import dataclass
from typing import Callable, Any, Optional
import threading

from warp_transcribe.backend.common.errors import TaskError
from warp_transcribe.backend.common.logging import get_logger

log = get_logger(__name__)



@dataclass
class TaskSpec:
    fn: Callable[..., Any]
    args: tuple[Any, ...] = ()
    kwargs: dict[str, Any] = None
    name: str = "task"

    def __post_init__(self):
        if self.kwargs is None:
            self.kwargs = {}


class TaskRunner:
    """Tiny in-process task runner; failures are logged and kept on the future."""
    def __init__(self, max_workers: int = 2, *, context: Optional[str] = None):
        self._context = context or "task_runner"
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, max_workers),
            thread_name_prefix=f"warp-{self._context}",
        )
        self._closed = False
        self._lock = threading.Lock()

    @property
    def closed(self) -> bool:
        return self._closed

    def submit(self, spec: TaskSpec) -> Future:
        with self._lock:
            if self._closed:
                raise TaskError("TaskRunner is closed")

            def _wrapped():
                log.debug("task_start", extra={"task": spec.name, "context": self._context})
                try:
                    result = spec.fn(*spec.args, **spec.kwargs)
                except Exception as e:  # noqa: BLE001
                    log.error("task_fail", extra={"task": spec.name, "context": self._context, "error": str(e)})
                    raise
                log.debug("task_done", extra={"task": spec.name, "context": self._context})
                return result

            return self._executor.submit(_wrapped)

    def close(self, wait: bool = True) -> None:
        with self._lock:
            if not self._closed:
                self._executor.shutdown(wait=wait, cancel_futures=not wait)
                self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close(wait=True)

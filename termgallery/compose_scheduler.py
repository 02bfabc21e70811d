"""Background composition worker for full-size gallery images."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from queue import Empty, Queue

from .compositor import CellGrid
from .errors import DecodeError

logger = logging.getLogger(__name__)

ComposeFn = Callable[[Path, int], CellGrid]


@dataclass(frozen=True)
class ComposeRequest:
    """One full-width composition job."""

    request_id: int
    path: Path
    index: int
    width: int


@dataclass(frozen=True)
class ComposeResult:
    """Completed composition, carrying either a grid or the decode failure."""

    request: ComposeRequest
    grid: CellGrid | None = None
    error: DecodeError | None = None


class ComposeScheduler:
    """Single-threaded latest-request-wins composition scheduler.

    With ``threaded=False`` jobs run synchronously inside ``schedule`` and the
    result is queued immediately, which keeps tests deterministic.
    """

    def __init__(self, compose_fn: ComposeFn, *, threaded: bool = True) -> None:
        self._compose_fn = compose_fn
        self._threaded = threaded
        self._lock = threading.Lock()
        self._pending: ComposeRequest | None = None
        self._running = False
        self._next_request_id = 1
        self._results: Queue[ComposeResult] = Queue()

    def _run(self, request: ComposeRequest) -> ComposeResult:
        try:
            grid = self._compose_fn(request.path, request.width)
        except DecodeError as exc:
            logger.info("could not compose %s: %s", request.path, exc.reason)
            return ComposeResult(request=request, error=exc)
        except Exception as exc:
            logger.exception("composition crashed for %s", request.path)
            return ComposeResult(request=request, error=DecodeError(request.path, str(exc)))
        return ComposeResult(request=request, grid=grid)

    def _worker(self) -> None:
        while True:
            with self._lock:
                request = self._pending
                self._pending = None
                if request is None:
                    self._running = False
                    return
            self._results.put(self._run(request))

    def schedule(self, path: Path, index: int, width: int) -> int:
        """Queue/replace pending composition work and return its request id."""
        with self._lock:
            request_id = self._next_request_id
            self._next_request_id += 1
            request = ComposeRequest(request_id=request_id, path=path, index=index, width=width)
            if not self._threaded:
                self._results.put(self._run(request))
                return request_id
            self._pending = request
            if self._running:
                return request_id
            self._running = True

        worker = threading.Thread(
            target=self._worker,
            name="termgallery-compose",
            daemon=True,
        )
        worker.start()
        return request_id

    def drain_results(self) -> list[ComposeResult]:
        """Drain all completed composition results."""
        out: list[ComposeResult] = []
        while True:
            try:
                out.append(self._results.get_nowait())
            except Empty:
                break
        return out


__all__ = [
    "ComposeFn",
    "ComposeRequest",
    "ComposeResult",
    "ComposeScheduler",
]

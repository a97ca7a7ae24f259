"""
Background vision worker.

The Hough fallback runs in its own process so that loading OpenCV and running
the transform never blocks the interactive thread. Parent and worker talk
over a multiprocessing pipe with plain dict messages:

    {"op": "init"}                                  -> {"op": "ready"}
                                                     | {"op": "error", "error": str}
    {"op": "detectLine", "id": int,
     "roi": {"pixels", "width", "height", "originX", "originY"},
     "click": {"x", "y"}}                           -> {"op": "result", "id": int,
                                                        "segment": {x1, y1, x2, y2} | None}
                                                     | {"op": "error", "id": int, "error": str}
    {"op": "shutdown"}                              -> (worker exits)

Every request carries a monotonically increasing id; replies to older
requests (for example one that timed out) are discarded by the parent.
"""

import itertools
import logging
import multiprocessing
import threading
import time
from concurrent.futures import Future, TimeoutError as FutureTimeoutError
from typing import Optional, Tuple

import numpy as np

from tracemark.config import HighlightTuning, DEFAULT_TUNING
from tracemark.core.errors import VisionBackendError, VisionTimeoutError
from tracemark.models import LineSegment, Point, RasterBuffer
from tracemark.utils.geometry import round_half_up, clamp
from tracemark.utils.profiling import profile_block

logger = logging.getLogger("tracemark.worker")


def roi_bounds(width: int, height: int, click: Point,
               tuning: HighlightTuning = DEFAULT_TUNING) -> Tuple[int, int, int, int]:
    """
    Region of interest around the click, clamped to the raster.

    Returns:
        (x, y, width, height)
    """
    pad = tuning.roi_padding(width, height)
    rx = clamp(round_half_up(click.x - pad), 0, width - 1)
    ry = clamp(round_half_up(click.y - pad), 0, height - 1)
    rw = max(1, min(width - rx, round_half_up(2 * pad)))
    rh = max(1, min(height - ry, round_half_up(2 * pad)))
    return rx, ry, rw, rh


# ---------------------------------------------------------------------------
# Worker process side
# ---------------------------------------------------------------------------

def _load_backend():
    from tracemark.core import vision
    return vision


def _detect(backend, message: dict, tuning: HighlightTuning) -> Optional[dict]:
    roi = message["roi"]
    pixels = np.frombuffer(roi["pixels"], dtype=np.uint8).reshape(
        roi["height"], roi["width"], 4).copy()
    click = Point(message["click"]["x"], message["click"]["y"])
    line = backend.detect_line_in_roi(pixels, (roi["originX"], roi["originY"]), click, tuning)
    return line.to_dict() if line else None


def run_worker(conn, tuning: HighlightTuning = DEFAULT_TUNING) -> None:
    """Message loop of the vision worker process."""
    backend = None
    while True:
        try:
            message = conn.recv()
        except EOFError:
            break
        op = message.get("op")
        if op == "shutdown":
            break
        request_id = message.get("id")
        try:
            if backend is None:
                backend = _load_backend()
            if op == "init":
                conn.send({"op": "ready"})
            elif op == "detectLine":
                conn.send({"op": "result", "id": request_id,
                           "segment": _detect(backend, message, tuning)})
            else:
                conn.send({"op": "error", "id": request_id, "error": f"Unknown op: {op!r}"})
        except Exception as e:
            # Reported to the parent, which decides how to surface it
            conn.send({"op": "error", "id": request_id, "error": f"{type(e).__name__}: {e}"})
    conn.close()


# ---------------------------------------------------------------------------
# Parent side
# ---------------------------------------------------------------------------

class VisionWorker:
    """
    Handle on the vision worker process.

    Startup is memoized: the first caller of ``ensure_ready`` spawns the
    process, later and concurrent callers wait on the same attempt. A failed
    startup is remembered and re-raised (no reload on every click) until
    ``reset`` is called.

    Usage:
        with VisionWorker() as worker:
            line = worker.detect_near(buffer, Point(310, 122))
    """

    def __init__(self, tuning: HighlightTuning = DEFAULT_TUNING,
                 start_method: str = "spawn"):
        self.tuning = tuning
        self._context = multiprocessing.get_context(start_method)
        self._startup_lock = threading.Lock()
        self._request_lock = threading.Lock()
        self._startup: Optional[Future] = None
        self._process = None
        self._conn = None
        self._request_ids = itertools.count(1)
        self.latest_request_id = 0

    @property
    def ready(self) -> bool:
        startup = self._startup
        return (startup is not None and startup.done()
                and startup.exception() is None)

    def ensure_ready(self) -> None:
        """
        Start the worker if needed and wait for its ready handshake.

        Raises:
            VisionBackendError: If the worker cannot start
        """
        with self._startup_lock:
            startup = self._startup
            owner = startup is None
            if owner:
                startup = self._startup = Future()
        if owner:
            self._start(startup)
        try:
            startup.result(timeout=self.tuning.startup_timeout)
        except FutureTimeoutError:
            raise VisionBackendError(
                f"Vision backend unavailable: startup did not finish within "
                f"{self.tuning.startup_timeout:.0f}s"
            ) from None

    def _start(self, startup: Future) -> None:
        parent = process = None
        try:
            with profile_block("vision_startup"):
                parent, child = self._context.Pipe()
                process = self._context.Process(
                    target=run_worker,
                    args=(child, self.tuning),
                    name="tracemark-vision",
                    daemon=True,
                )
                process.start()
                child.close()
                parent.send({"op": "init"})
                if not parent.poll(self.tuning.startup_timeout):
                    raise VisionBackendError(
                        f"Vision backend unavailable: no reply within "
                        f"{self.tuning.startup_timeout:.0f}s"
                    )
                reply = parent.recv()
                if reply.get("op") != "ready":
                    raise VisionBackendError(
                        f"Vision backend unavailable: {reply.get('error', 'unknown error')}"
                    )
        except Exception as e:
            # Resolve the shared attempt on any failure
            error = e if isinstance(e, VisionBackendError) else VisionBackendError(
                f"Vision backend unavailable: {type(e).__name__}: {e}")
            logger.warning(str(error))
            self._discard(parent, process)
            startup.set_exception(error)
            return

        self._conn, self._process = parent, process
        logger.info(f"Vision worker ready (pid {process.pid})")
        startup.set_result(True)

    def detect_near(self, buffer: RasterBuffer, click: Point) -> Optional[LineSegment]:
        """Crop the region of interest around the click and detect a line in it."""
        rx, ry, rw, rh = roi_bounds(buffer.width, buffer.height, click, self.tuning)
        return self.detect_line(buffer.crop_rgba(rx, ry, rw, rh), (rx, ry), click)

    def detect_line(self, rgba: np.ndarray, origin: Tuple[int, int],
                    click: Point) -> Optional[LineSegment]:
        """
        Ask the worker for the line nearest ``click`` in an RGBA region.

        Raises:
            VisionBackendError: If the worker is unavailable or reports an error
            VisionTimeoutError: If no reply arrives within ``request_timeout``
        """
        self.ensure_ready()
        timeout = self.tuning.request_timeout
        with self._request_lock:
            request_id = next(self._request_ids)
            self.latest_request_id = request_id
            h, w = rgba.shape[:2]
            message = {
                "op": "detectLine",
                "id": request_id,
                "roi": {
                    "pixels": rgba.tobytes(),
                    "width": w,
                    "height": h,
                    "originX": int(origin[0]),
                    "originY": int(origin[1]),
                },
                "click": {"x": float(click.x), "y": float(click.y)},
            }
            try:
                self._conn.send(message)
                deadline = time.monotonic() + timeout
                while True:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0 or not self._conn.poll(remaining):
                        raise VisionTimeoutError(
                            f"Vision request {request_id} timed out after {timeout:.1f}s"
                        )
                    reply = self._conn.recv()
                    if reply.get("id") != request_id:
                        logger.debug(f"Discarding stale vision reply {reply.get('id')} "
                                     f"(waiting for {request_id})")
                        continue
                    break
            except (OSError, EOFError) as e:
                self._mark_failed(VisionBackendError(f"Vision backend unavailable: {e}"))
                raise self._startup.exception() from e

        if reply.get("op") == "error":
            raise VisionBackendError(f"Vision request failed: {reply.get('error')}")
        segment = reply.get("segment")
        return LineSegment.from_dict(segment) if segment else None

    def _mark_failed(self, error: VisionBackendError) -> None:
        logger.warning(str(error))
        failed = Future()
        failed.set_exception(error)
        with self._startup_lock:
            self._discard(self._conn, self._process)
            self._conn = self._process = None
            self._startup = failed

    @staticmethod
    def _discard(conn, process) -> None:
        if conn is not None:
            conn.close()
        if process is not None and process.is_alive():
            process.terminate()
            process.join(timeout=1.0)

    def reset(self) -> None:
        """Forget a failed startup so the next request tries again."""
        self.close()
        with self._startup_lock:
            self._startup = None

    def close(self) -> None:
        """Shut the worker process down."""
        conn, process = self._conn, self._process
        self._conn = self._process = None
        if conn is not None:
            try:
                conn.send({"op": "shutdown"})
            except OSError as e:
                logger.debug(f"Vision worker already gone: {e}")
        if process is not None:
            process.join(timeout=1.0)
        self._discard(conn, process)
        with self._startup_lock:
            if self.ready:
                self._startup = None

    def __enter__(self) -> "VisionWorker":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

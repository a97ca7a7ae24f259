"""
Highlight orchestration.

Sequences the stages for one click:

    FAST_SCAN --found--> EXTEND -------------------------> RESULT | NO_SIGNAL
        |
        +--none--> ensure worker --> VISION_DETECT --found--> EXTEND(axis) --> RESULT | NO_SIGNAL
                        |                 |
                        +-- unavailable   +-- timeout / nothing found

Every path ends in exactly one HighlightOutcome; nothing is raised to the
caller.
"""

import itertools
import logging
import threading
from typing import Optional

from tracemark.config import HighlightOptions, HighlightTuning, DEFAULT_TUNING
from tracemark.core.errors import VisionBackendError, VisionTimeoutError
from tracemark.core.scanner import StripeScanner
from tracemark.core.walker import ExtensionWalker, WalkResult
from tracemark.core.worker import VisionWorker
from tracemark.models import (
    Point,
    RasterBuffer,
    HighlightOutcome,
    HighlightResult,
    HighlightStatus,
)
from tracemark.utils.profiling import profile_block

logger = logging.getLogger("tracemark.highlight")


class HighlightEngine:
    """
    Turns a click on a raster into an axis-aligned highlight.

    Args:
        tuning: Heuristic constants shared by every stage
        vision: Vision fallback. None creates a VisionWorker that starts on
            first use; False disables the fallback. Any object with
            ``ensure_ready()`` and ``detect_near(buffer, click)`` works.
    """

    def __init__(self, tuning: HighlightTuning = DEFAULT_TUNING, vision=None):
        self.tuning = tuning
        self.scanner = StripeScanner(tuning)
        self.walker = ExtensionWalker(tuning)
        self._owns_vision = vision is None
        if vision is None:
            vision = VisionWorker(tuning)
        self.vision = vision or None
        self._sessions = itertools.count(1)
        self._session_lock = threading.Lock()
        self._latest_session = 0

    def _begin_session(self) -> int:
        with self._session_lock:
            session = next(self._sessions)
            self._latest_session = session
            return session

    def is_current(self, session: int) -> bool:
        """True if no newer highlight request has started since ``session``."""
        return session == self._latest_session

    def highlight(self, buffer: RasterBuffer, click: Point,
                  options: HighlightOptions = None) -> HighlightOutcome:
        """
        Detect the line at ``click`` and build its highlight.

        Args:
            buffer: Source raster (read only)
            click: Click position in raster coordinates
            options: Highlight tool options (defaults if None)

        Returns:
            A HighlightOutcome; ``outcome.found`` tells whether a line was found
        """
        options = options or HighlightOptions()
        session = self._begin_session()
        try:
            with profile_block("highlight"):
                return self._run(buffer, click, options, session)
        except Exception as e:
            logger.exception(f"highlight:error at ({click.x}, {click.y})")
            return HighlightOutcome(HighlightStatus.FAILED, None, f"Highlight failed: {e}")

    def _run(self, buffer: RasterBuffer, click: Point,
             options: HighlightOptions, session: int) -> HighlightOutcome:
        if not buffer.contains(int(click.x), int(click.y)):
            logger.debug(f"highlight:outside ({click.x}, {click.y})")
            return HighlightOutcome.no_signal()

        seed = self.scanner.scan(buffer, click)
        if seed is not None:
            logger.debug(f"highlight:scan seed {seed}")
            walk = self.walker.extend(buffer, click, options)
            return self._finish(walk, options, "scan")

        if self.vision is None:
            logger.debug(f"highlight:none ({click.x}, {click.y})")
            return HighlightOutcome.no_signal()

        try:
            self.vision.ensure_ready()
            with profile_block("vision_detect"):
                line = self.vision.detect_near(buffer, click)
        except VisionTimeoutError as e:
            logger.warning(f"highlight:cv timeout: {e}")
            return HighlightOutcome(HighlightStatus.TIMEOUT, None, str(e))
        except VisionBackendError as e:
            logger.warning(f"highlight:load-cv error: {e}")
            return HighlightOutcome(HighlightStatus.BACKEND_UNAVAILABLE, None, str(e))

        if not self.is_current(session):
            logger.debug(f"highlight:cv discarded reply for session {session}")
            return HighlightOutcome(HighlightStatus.SUPERSEDED, None,
                                    "A newer highlight request replaced this one")
        if line is None:
            logger.debug(f"highlight:none ({click.x}, {click.y})")
            return HighlightOutcome.no_signal()

        logger.debug(f"highlight:cv seed {line}")
        walk = self.walker.extend(buffer, click, options, line.axis)
        return self._finish(walk, options, "vision")

    def _finish(self, walk: Optional[WalkResult], options: HighlightOptions,
                source: str) -> HighlightOutcome:
        if walk is None:
            logger.debug(f"highlight:none ({source} seed rejected by extension)")
            return HighlightOutcome.no_signal()
        result = HighlightResult(
            segment=walk.segment.normalized(),
            stroke_width=options.stroke_width_hint or walk.stroke_width,
            line_width=walk.line_width,
            source=source,
        )
        logger.info(f"highlight:{source} {result.segment.to_dict()} width={result.stroke_width}")
        return HighlightOutcome.detected(result)

    def close(self) -> None:
        """Stop the vision worker if this engine created it."""
        if self._owns_vision and self.vision is not None:
            self.vision.close()

    def __enter__(self) -> "HighlightEngine":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

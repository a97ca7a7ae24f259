"""Exceptions raised inside the highlight engine.

The orchestrator converts these into HighlightOutcome values; they never
reach the caller of HighlightEngine.highlight.
"""


class HighlightError(Exception):
    """Base class for highlight engine errors."""


class VisionBackendError(HighlightError):
    """The vision worker could not start or reported a failure."""


class VisionTimeoutError(HighlightError):
    """The vision worker did not reply in time."""

"""Exception taxonomy for the paper generation pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from papersmith.orchestrator.state import JobState


class PapersmithError(RuntimeError):
    pass


class PreconditionError(PapersmithError, ValueError):
    """Input rejected before any job state transition (e.g. an empty topic)."""


class AdapterError(PapersmithError):
    """The generative backend failed, rejected the request, or returned nothing usable."""


class ParseError(PapersmithError):
    """The outline response could not be interpreted as a valid outline."""


class InvalidTransitionError(PapersmithError):
    """A job state transition violated the forward-only state machine."""


class PaperGenerationError(PapersmithError):
    """A job ended without producing a document.

    Attributes:
        state: Terminal job state (failed or cancelled).
    """

    def __init__(self, message: str, *, state: JobState) -> None:
        super().__init__(message)
        self.state = state

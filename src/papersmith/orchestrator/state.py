from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from papersmith.errors import InvalidTransitionError
from papersmith.models.document import Document


class JobStatus(str, Enum):
    IDLE = "idle"
    OUTLINING = "outlining"
    RESEARCHING = "researching"
    VISUALIZING = "visualizing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


_RANK: dict[JobStatus, int] = {
    JobStatus.IDLE: 0,
    JobStatus.OUTLINING: 1,
    JobStatus.RESEARCHING: 2,
    JobStatus.VISUALIZING: 3,
}

TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED})

_SECTION_STATUSES = frozenset({JobStatus.RESEARCHING, JobStatus.VISUALIZING})


@dataclass(frozen=True)
class JobState:
    """The live state of one job.

    `section_index` is set for researching/visualizing, `document` for completed and
    `reason` for failed/cancelled.
    """

    status: JobStatus = JobStatus.IDLE
    section_index: int | None = None
    document: Document | None = None
    reason: str | None = None

    @classmethod
    def idle(cls) -> JobState:
        return cls()

    @classmethod
    def outlining(cls) -> JobState:
        return cls(status=JobStatus.OUTLINING)

    @classmethod
    def researching(cls, index: int) -> JobState:
        return cls(status=JobStatus.RESEARCHING, section_index=index)

    @classmethod
    def visualizing(cls, index: int) -> JobState:
        return cls(status=JobStatus.VISUALIZING, section_index=index)

    @classmethod
    def completed(cls, document: Document) -> JobState:
        return cls(status=JobStatus.COMPLETED, document=document)

    @classmethod
    def failed(cls, reason: str) -> JobState:
        return cls(status=JobStatus.FAILED, reason=reason)

    @classmethod
    def cancelled(cls, reason: str = "cancelled by caller") -> JobState:
        return cls(status=JobStatus.CANCELLED, reason=reason)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def snapshot(self) -> dict[str, str | int | None]:
        return {
            "status": self.status.value,
            "section_index": self.section_index,
            "reason": self.reason,
        }


def check_transition(current: JobState, new: JobState) -> None:
    """Validate a forward-only transition.

    Allowed moves: any non-terminal state to a terminal one (except idle straight to
    completed), a strictly later non-terminal status, or the same section status with a
    strictly larger section index.

    Raises:
        InvalidTransitionError: If the move is not allowed.
    """

    if current.is_terminal:
        raise InvalidTransitionError(
            f"job already {current.status.value}; cannot move to {new.status.value}"
        )

    if new.is_terminal:
        if new.status is JobStatus.COMPLETED and current.status is JobStatus.IDLE:
            raise InvalidTransitionError("job cannot complete before it starts")
        return

    cur_rank, new_rank = _RANK[current.status], _RANK[new.status]
    if new_rank > cur_rank:
        return
    if (
        new.status is current.status
        and new.status in _SECTION_STATUSES
        and current.section_index is not None
        and new.section_index is not None
        and new.section_index > current.section_index
    ):
        return
    raise InvalidTransitionError(
        f"illegal transition {current.status.value}({current.section_index}) -> "
        f"{new.status.value}({new.section_index})"
    )

"""Event model used for observing jobs.

A job produces a sequence of events: one per state transition plus per-section milestones.
Observers subscribe to a job or consume the async event stream.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from papersmith.orchestrator.state import JobStatus


class EventType(str, Enum):
    """High-level event categories."""

    SYSTEM = "system"
    LLM = "llm"
    ERROR = "error"


class ContentType(str, Enum):
    """Semantic types within event streams."""

    JOB_STARTED = "job_started"

    # Outline
    OUTLINE_READY = "outline_ready"

    # Content
    SECTION_START = "section_start"
    SECTION_DONE = "section_done"

    # Images
    IMAGE_START = "image_start"
    IMAGE_DONE = "image_done"
    IMAGE_FAILED = "image_failed"

    # Terminal
    JOB_COMPLETED = "job_completed"
    JOB_FAILED = "job_failed"
    JOB_CANCELLED = "job_cancelled"


class JobEvent(BaseModel):
    """A single event in a job."""

    job_id: str
    seq: int = Field(ge=1)
    ts: datetime = Field(default_factory=lambda: datetime.now(UTC))

    event_type: EventType
    content_type: ContentType

    status: JobStatus
    section_index: int | None = None
    percent: int = Field(ge=0, le=100)
    message: str

    data: dict[str, Any] | None = None

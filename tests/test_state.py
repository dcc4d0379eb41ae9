"""Tests for the job state machine."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from papersmith.errors import InvalidTransitionError
from papersmith.models.document import Document
from papersmith.orchestrator.state import JobState, JobStatus, check_transition


def _document() -> Document:
    return Document(title="T", abstract="A", sections=(), generated_at=datetime.now(UTC))


@pytest.mark.parametrize(
    ("current", "new"),
    [
        (JobState.idle(), JobState.outlining()),
        (JobState.outlining(), JobState.researching(0)),
        (JobState.researching(0), JobState.researching(1)),
        (JobState.researching(4), JobState.visualizing(0)),
        (JobState.visualizing(1), JobState.visualizing(3)),
        (JobState.researching(4), JobState.completed(_document())),
        (JobState.visualizing(4), JobState.completed(_document())),
        (JobState.outlining(), JobState.failed("outline")),
        (JobState.researching(1), JobState.failed("content")),
        (JobState.researching(1), JobState.cancelled()),
        (JobState.idle(), JobState.cancelled()),
    ],
)
def test_forward_transitions_are_allowed(current: JobState, new: JobState) -> None:
    check_transition(current, new)


@pytest.mark.parametrize(
    ("current", "new"),
    [
        (JobState.outlining(), JobState.idle()),
        (JobState.researching(2), JobState.researching(2)),
        (JobState.researching(2), JobState.researching(1)),
        (JobState.visualizing(0), JobState.researching(3)),
        (JobState.visualizing(2), JobState.outlining()),
        (JobState.idle(), JobState.completed(_document())),
        (JobState.completed(_document()), JobState.failed("late")),
        (JobState.failed("x"), JobState.outlining()),
        (JobState.cancelled(), JobState.researching(0)),
    ],
)
def test_backward_or_post_terminal_transitions_are_rejected(current: JobState, new: JobState) -> None:
    with pytest.raises(InvalidTransitionError):
        check_transition(current, new)


def test_terminal_flags() -> None:
    assert JobState.completed(_document()).is_terminal
    assert JobState.failed("x").is_terminal
    assert JobState.cancelled().is_terminal
    assert not JobState.researching(0).is_terminal


def test_snapshot() -> None:
    assert JobState.researching(3).snapshot() == {
        "status": "researching",
        "section_index": 3,
        "reason": None,
    }
    assert JobState.failed("boom").status is JobStatus.FAILED

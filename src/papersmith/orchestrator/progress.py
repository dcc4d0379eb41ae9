"""Progress reporting.

Maps a pipeline phase and the number of finished items onto a percentage band and a
user-facing message. Bands are contiguous and ordered, so percentages never decrease as a
job moves forward.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Phase(str, Enum):
    OUTLINE = "outline"
    CONTENT = "content"
    IMAGES = "images"
    COMPLETE = "complete"


# (start, end) percent per phase
PROGRESS_BANDS: dict[Phase, tuple[int, int]] = {
    Phase.OUTLINE: (10, 30),
    Phase.CONTENT: (30, 70),
    Phase.IMAGES: (70, 100),
    Phase.COMPLETE: (100, 100),
}

FAILURE_MESSAGE = "Something went wrong. Please try a different topic."
CANCELLED_MESSAGE = "Generation cancelled."


@dataclass(frozen=True)
class ProgressReport:
    percent: int
    message: str


def report(
    phase: Phase, completed_items: int, total_items: int, *, label: str | None = None
) -> ProgressReport:
    """Compute progress for `completed_items` of `total_items` finished within `phase`.

    Args:
        phase: Current pipeline phase.
        completed_items: Items of this phase already finished (clamped to ``[0, total]``).
        total_items: Items in this phase. Zero means the phase is trivially complete.
        label: Title of the item about to be processed, used in the message.

    Returns:
        Percent in ``[0, 100]`` and a message.
    """

    start, end = PROGRESS_BANDS[phase]
    if total_items <= 0:
        done, total = 1, 1
    else:
        total = total_items
        done = min(max(completed_items, 0), total)
    percent = start + ((end - start) * done) // total
    return ProgressReport(percent=percent, message=_message(phase, done, total, label))


def _message(phase: Phase, done: int, total: int, label: str | None) -> str:
    if phase is Phase.OUTLINE:
        if done >= total:
            return "Outline ready."
        return "Analyzing topic & creating outline..."
    if phase is Phase.CONTENT:
        if done >= total:
            return "Generating scientific visualizations..."
        suffix = f": {label}" if label else ""
        return f"Researching section {done + 1}/{total}{suffix}..."
    if phase is Phase.IMAGES:
        if done >= total:
            return "Finalizing paper..."
        if label:
            return f"Creating visual for: {label}..."
        return f"Creating visual {done + 1}/{total}..."
    return "Paper ready."

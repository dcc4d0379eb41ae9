"""Tests for progress reporting."""

from __future__ import annotations

import pytest

from papersmith.orchestrator.progress import PROGRESS_BANDS, Phase, report


def _sequence(n_sections: int, image_sections: list[int]) -> list[int]:
    """Percents in the order a job reports them."""

    out = [report(Phase.OUTLINE, 0, 1).percent, report(Phase.OUTLINE, 1, 1).percent]
    for i in range(n_sections):
        out.append(report(Phase.CONTENT, i, n_sections).percent)
        out.append(report(Phase.CONTENT, i + 1, n_sections).percent)
    for i in image_sections:
        out.append(report(Phase.IMAGES, i, n_sections).percent)
        out.append(report(Phase.IMAGES, i + 1, n_sections).percent)
    out.append(report(Phase.COMPLETE, 1, 1).percent)
    return out


def test_bands_are_contiguous_and_ordered() -> None:
    phases = [Phase.OUTLINE, Phase.CONTENT, Phase.IMAGES, Phase.COMPLETE]
    for prev, nxt in zip(phases, phases[1:]):
        assert PROGRESS_BANDS[prev][1] == PROGRESS_BANDS[nxt][0]
    assert PROGRESS_BANDS[Phase.COMPLETE] == (100, 100)


@pytest.mark.parametrize("n_sections", [1, 2, 3, 4, 5, 6, 7, 11])
def test_percent_is_monotonic_and_ends_at_100(n_sections: int) -> None:
    image_sections = [i for i in range(n_sections) if i % 2 == 0]
    percents = _sequence(n_sections, image_sections)

    assert percents == sorted(percents)
    assert all(0 <= p <= 100 for p in percents)
    assert percents[-1] == 100


def test_content_band_boundaries() -> None:
    assert report(Phase.CONTENT, 0, 5).percent == 30
    assert report(Phase.CONTENT, 5, 5).percent == 70
    assert report(Phase.CONTENT, 2, 5).percent == 46


def test_image_band_boundaries() -> None:
    assert report(Phase.IMAGES, 0, 4).percent == 70
    assert report(Phase.IMAGES, 4, 4).percent == 100


def test_completed_items_are_clamped() -> None:
    assert report(Phase.CONTENT, 9, 3).percent == 70
    assert report(Phase.CONTENT, -2, 3).percent == 30


def test_zero_total_counts_as_finished_phase() -> None:
    assert report(Phase.IMAGES, 0, 0).percent == 100


def test_messages() -> None:
    assert report(Phase.OUTLINE, 0, 1).message == "Analyzing topic & creating outline..."
    assert (
        report(Phase.CONTENT, 1, 5, label="Methods").message
        == "Researching section 2/5: Methods..."
    )
    assert report(Phase.CONTENT, 5, 5).message == "Generating scientific visualizations..."
    assert report(Phase.IMAGES, 0, 5, label="Results").message == "Creating visual for: Results..."
    assert report(Phase.COMPLETE, 1, 1).message == "Paper ready."

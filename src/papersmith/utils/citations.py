"""Citation merging and deduplication."""

from __future__ import annotations

from typing import Iterable

from papersmith.models.citation import CitationRecord


def dedupe_citations(records: Iterable[CitationRecord]) -> list[CitationRecord]:
    """De-duplicate citation records by `uri`, keeping first-seen order.

    Records with a blank title or uri are dropped; malformed grounding metadata is expected
    and never an error.

    Args:
        records: Citation records, possibly merged from several calls.

    Returns:
        Records with unique uris, in order of first occurrence.
    """

    seen: set[str] = set()
    out: list[CitationRecord] = []
    for rec in records:
        uri = rec.uri.strip()
        if not uri or not rec.title.strip():
            continue
        if uri in seen:
            continue
        seen.add(uri)
        out.append(rec)
    return out

"""Pydantic models used across the project."""

from __future__ import annotations

from papersmith.models.citation import CitationRecord
from papersmith.models.document import Document, DocumentSection, Section
from papersmith.models.outline import Outline, SectionStub

__all__ = [
    "CitationRecord",
    "Document",
    "DocumentSection",
    "Outline",
    "Section",
    "SectionStub",
]

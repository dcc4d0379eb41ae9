"""Document models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from papersmith.models.citation import CitationRecord
from papersmith.models.outline import SectionStub


class Section(BaseModel):
    """A section being materialized by a job.

    Mutated in place as each phase completes for it.
    """

    id: str
    title: str
    image_prompt: str | None = None
    content: str = ""
    image_url: str | None = None
    processing: bool = True

    @classmethod
    def from_stub(cls, stub: SectionStub) -> Section:
        return cls(id=stub.id, title=stub.title, image_prompt=stub.image_prompt)


class DocumentSection(Section):
    """A finished section as published in a :class:`Document`. Read-only."""

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_section(cls, section: Section) -> DocumentSection:
        return cls.model_validate(section.model_dump())


class Document(BaseModel):
    """The finished paper handed to rendering/export."""

    model_config = ConfigDict(frozen=True)

    title: str
    abstract: str
    sections: tuple[DocumentSection, ...]
    references: tuple[CitationRecord, ...] = ()
    generated_at: datetime

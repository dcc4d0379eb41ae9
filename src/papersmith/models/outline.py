"""Outline models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SectionStub(BaseModel):
    """A section placeholder produced by outline parsing.

    `id` is derived from the section's position (`sec-0`, `sec-1`, ...), never from its title.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    image_prompt: str | None = None


class Outline(BaseModel):
    """Parsed skeleton of a paper, prior to content and image fill."""

    model_config = ConfigDict(frozen=True)

    title: str
    abstract: str = ""
    sections: tuple[SectionStub, ...] = Field(min_length=1)

"""Outline parsing.

Turns the loosely formatted outline response into a strict :class:`Outline`. Parsing is
fail-fast: a single malformed section invalidates the whole outline.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import (
    AfterValidator,
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictStr,
    ValidationError,
    field_validator,
)

from papersmith.errors import ParseError
from papersmith.logging import get_logger
from papersmith.models.outline import Outline, SectionStub
from papersmith.utils.tags import extract_json_object

logger = get_logger(__name__)

SECTION_ID_PREFIX = "sec-"


def _strip_required(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


RequiredText = Annotated[StrictStr, AfterValidator(_strip_required)]


class _RawSection(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: RequiredText
    image_prompt: StrictStr | None = Field(
        default=None,
        validation_alias=AliasChoices("description_for_image", "image_prompt", "imagePrompt"),
    )

    @field_validator("image_prompt")
    @classmethod
    def _blank_prompt_is_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class _RawOutline(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: RequiredText
    abstract: StrictStr | None = ""
    sections: list[_RawSection] = Field(min_length=1)

    @field_validator("abstract")
    @classmethod
    def _strip_abstract(cls, value: str | None) -> str:
        return (value or "").strip()


def section_id(position: int) -> str:
    """Return the stable id for the section at `position`."""

    return f"{SECTION_ID_PREFIX}{position}"


def parse_outline(raw: str) -> Outline:
    """Parse a raw outline response.

    Args:
        raw: Model output expected to contain a JSON object with `title`, `abstract` and
            `sections` (each with `title` and optionally `description_for_image`).

    Returns:
        The parsed outline with ids `sec-0`, `sec-1`, ... in input order.

    Raises:
        ParseError: If no JSON object is found, or the title, the section list, or any
            section title is missing or blank.
    """

    data = extract_json_object(raw)
    if data is None:
        logger.error("Outline response is not a JSON object", extra={"chars": len(raw or "")})
        raise ParseError("Failed to parse outline JSON.")

    try:
        parsed = _RawOutline.model_validate(data)
    except ValidationError as e:
        logger.error("Outline response failed validation", extra={"errors": e.error_count()})
        raise ParseError(f"Outline is missing required fields: {_summarize(e)}") from e

    stubs = tuple(
        SectionStub(id=section_id(i), title=s.title, image_prompt=s.image_prompt)
        for i, s in enumerate(parsed.sections)
    )
    return Outline(title=parsed.title, abstract=parsed.abstract, sections=stubs)


def _summarize(error: ValidationError) -> str:
    parts: list[str] = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "<root>"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)

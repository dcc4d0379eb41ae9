"""Generative backend adapter.

The pipeline talks to the generative model through three request shapes only: outline,
section content and section image. :class:`GenerativeAdapter` is that seam; jobs and tests
supply their own implementation, production uses :class:`OpenAIGenerativeAdapter`.

Every call is a single blocking round trip. Retries are not attempted here.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from openai import OpenAI, OpenAIError

from papersmith.config import Settings
from papersmith.errors import AdapterError
from papersmith.llm.client import create_openai_client
from papersmith.logging import get_logger
from papersmith.models.citation import CitationRecord
from papersmith.prompts import (
    OUTLINE_SYSTEM_PROMPT,
    SECTION_SYSTEM_PROMPT,
    build_outline_prompt,
    build_section_prompt,
)
from papersmith.utils.citations import dedupe_citations

logger = get_logger(__name__)


@dataclass(frozen=True)
class OutlineResponse:
    """Raw outline text plus any grounding sources the call surfaced."""

    text: str
    citations: list[CitationRecord] = field(default_factory=list)


@dataclass(frozen=True)
class ContentResponse:
    """Raw section prose plus any grounding sources the call surfaced."""

    text: str
    citations: list[CitationRecord] = field(default_factory=list)


@dataclass(frozen=True)
class ImageBytes:
    """Generated image payload.

    Attributes:
        data: Raw image bytes.
        mime_type: MIME type (e.g., ``image/png``).
    """

    data: bytes
    mime_type: str = "image/png"

    def to_data_url(self) -> str:
        """Encode as a ``data:`` URL suitable for embedding in a document."""

        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


@runtime_checkable
class GenerativeAdapter(Protocol):
    """Generative capability consumed by the pipeline.

    Implementations raise :class:`AdapterError` for transport failures, capability-side
    rejections and empty or malformed responses alike.
    """

    def request_outline(self, topic: str) -> OutlineResponse:
        """Request a JSON-shaped outline for `topic`."""

    def request_section_content(
        self, paper_title: str, section_title: str, abstract: str
    ) -> ContentResponse:
        """Request prose for one section, using the abstract as context."""

    def request_section_image(self, prompt: str) -> ImageBytes:
        """Request an illustrative image for one section."""


_OUTPUT_FORMAT_TO_MIME: dict[str, str] = {
    "png": "image/png",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
}


def _is_gpt_image_model(model: str) -> bool:
    return model.startswith("gpt-image")


class OpenAIGenerativeAdapter:
    """Adapter backed by the OpenAI Responses and Images APIs.

    Outline and content requests run with the web search tool enabled so that
    `url_citation` annotations can be harvested as citation records.
    """

    def __init__(self, settings: Settings, *, client: OpenAI | None = None) -> None:
        self._settings = settings
        self._client = client if client is not None else create_openai_client(settings)

    def request_outline(self, topic: str) -> OutlineResponse:
        text, citations = self._generate_grounded(
            instructions=OUTLINE_SYSTEM_PROMPT,
            prompt=build_outline_prompt(topic),
            what="outline",
        )
        return OutlineResponse(text=text, citations=citations)

    def request_section_content(
        self, paper_title: str, section_title: str, abstract: str
    ) -> ContentResponse:
        text, citations = self._generate_grounded(
            instructions=SECTION_SYSTEM_PROMPT,
            prompt=build_section_prompt(
                paper_title=paper_title, section_title=section_title, abstract=abstract
            ),
            what="section content",
        )
        return ContentResponse(text=text, citations=citations)

    def request_section_image(self, prompt: str) -> ImageBytes:
        model = self._settings.image_model
        kwargs: dict[str, Any] = {
            "model": model,
            "prompt": prompt,
            "size": self._settings.image_size,
            "n": 1,
            "timeout": self._settings.openai_timeout_s,
        }
        if not _is_gpt_image_model(model):
            # dall-e models return URLs unless asked for base64
            kwargs["response_format"] = "b64_json"

        try:
            resp = self._client.images.generate(**kwargs)
        except OpenAIError as e:
            raise AdapterError(f"Image generation failed: {e}") from e

        data = resp.data or []
        b64 = data[0].b64_json if data else None
        if not b64:
            raise AdapterError("Image generation returned no image data.")
        try:
            raw = base64.b64decode(b64, validate=True)
        except (binascii.Error, ValueError) as e:
            raise AdapterError("Image generation returned malformed image data.") from e

        output_format = getattr(resp, "output_format", None) or "png"
        mime_type = _OUTPUT_FORMAT_TO_MIME.get(output_format, "image/png")
        logger.debug(
            "Image generated",
            extra={"model": model, "bytes": len(raw), "mime_type": mime_type},
        )
        return ImageBytes(data=raw, mime_type=mime_type)

    def _generate_grounded(
        self, *, instructions: str, prompt: str, what: str
    ) -> tuple[str, list[CitationRecord]]:
        tools: list[dict[str, Any]] = []
        if self._settings.web_search_enabled:
            tools.append(
                {
                    "type": "web_search_preview",
                    "search_context_size": self._settings.search_context_size,
                }
            )

        try:
            resp = self._client.responses.create(
                model=self._settings.research_model,
                instructions=instructions,
                input=prompt,
                tools=tools,
                timeout=self._settings.openai_timeout_s,
            )
        except OpenAIError as e:
            raise AdapterError(f"Failed to generate {what}: {e}") from e

        text = (resp.output_text or "").strip()
        if not text:
            raise AdapterError(f"Failed to generate {what}: empty response.")

        citations = extract_url_citations(resp)
        logger.debug(
            "Grounded generation done",
            extra={"what": what, "chars": len(text), "citations": len(citations)},
        )
        return text, citations


def extract_url_citations(response: Any) -> list[CitationRecord]:
    """Collect `url_citation` annotations from a Responses API result.

    Annotations without a title or URL are skipped; duplicates by URL are removed.
    """

    records: list[CitationRecord] = []
    for item in getattr(response, "output", None) or []:
        if getattr(item, "type", None) != "message":
            continue
        for part in getattr(item, "content", None) or []:
            if getattr(part, "type", None) != "output_text":
                continue
            for ann in getattr(part, "annotations", None) or []:
                if getattr(ann, "type", None) != "url_citation":
                    continue
                url = getattr(ann, "url", None)
                title = getattr(ann, "title", None)
                if not url or not title:
                    continue
                records.append(CitationRecord(title=title, uri=url))
    return dedupe_citations(records)

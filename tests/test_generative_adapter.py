"""Tests for the OpenAI-backed generative adapter, using a stub SDK client."""

from __future__ import annotations

import base64
from types import SimpleNamespace
from typing import Any

import pytest
from openai import OpenAIError

from fakes import PNG_BYTES
from papersmith.config import Settings
from papersmith.errors import AdapterError
from papersmith.llm.generative import (
    GenerativeAdapter,
    ImageBytes,
    OpenAIGenerativeAdapter,
    extract_url_citations,
)
from papersmith.models.citation import CitationRecord


def _settings(**overrides: Any) -> Settings:
    return Settings(openai_api_key="sk-test", **overrides)


def _annotation(url: str | None, title: str | None, kind: str = "url_citation") -> SimpleNamespace:
    return SimpleNamespace(type=kind, url=url, title=title, start_index=0, end_index=1)


def _response(text: str, annotations: list[SimpleNamespace] | None = None) -> SimpleNamespace:
    part = SimpleNamespace(type="output_text", text=text, annotations=annotations or [])
    return SimpleNamespace(
        output_text=text,
        output=[
            SimpleNamespace(type="web_search_call", id="ws_1"),
            SimpleNamespace(type="message", content=[part]),
        ],
    )


class _StubClient:
    """Records SDK calls and replays scripted results."""

    def __init__(self, *, response: Any = None, image: Any = None, error: Exception | None = None) -> None:
        self.response_calls: list[dict[str, Any]] = []
        self.image_calls: list[dict[str, Any]] = []
        self._response = response
        self._image = image
        self._error = error
        self.responses = SimpleNamespace(create=self._create_response)
        self.images = SimpleNamespace(generate=self._generate_image)

    def _create_response(self, **kwargs: Any) -> Any:
        self.response_calls.append(kwargs)
        if self._error is not None:
            raise self._error
        return self._response

    def _generate_image(self, **kwargs: Any) -> Any:
        self.image_calls.append(kwargs)
        if self._error is not None:
            raise self._error
        return self._image


def _image_result(b64: str | None, output_format: str | None = "png") -> SimpleNamespace:
    return SimpleNamespace(data=[SimpleNamespace(b64_json=b64, url=None)], output_format=output_format)


def test_adapter_satisfies_protocol() -> None:
    adapter = OpenAIGenerativeAdapter(_settings(), client=_StubClient())
    assert isinstance(adapter, GenerativeAdapter)


def test_outline_request_uses_web_search_and_harvests_citations() -> None:
    resp = _response(
        '{"title": "T", "sections": [{"title": "A"}]}',
        [
            _annotation("https://a.example", "A"),
            _annotation("https://a.example", "A duplicate"),
            _annotation(None, "No url"),
            _annotation("https://b.example", ""),
            _annotation("https://c.example", "C"),
        ],
    )
    client = _StubClient(response=resp)
    adapter = OpenAIGenerativeAdapter(_settings(search_context_size="high"), client=client)

    out = adapter.request_outline("Quantum error correction")

    assert out.text.startswith('{"title"')
    assert out.citations == [
        CitationRecord(title="A", uri="https://a.example"),
        CitationRecord(title="C", uri="https://c.example"),
    ]
    call = client.response_calls[0]
    assert call["model"] == "gpt-4.1-mini"
    assert call["tools"] == [{"type": "web_search_preview", "search_context_size": "high"}]
    assert "Quantum error correction" in call["input"]
    assert call["timeout"] == 120.0


def test_section_request_includes_titles_and_abstract() -> None:
    client = _StubClient(response=_response("## Methods\n\nWe measured things."))
    adapter = OpenAIGenerativeAdapter(_settings(research_model="gpt-4.1"), client=client)

    out = adapter.request_section_content("Paper Title", "Methods", "An abstract.")

    assert out.text == "## Methods\n\nWe measured things."
    assert out.citations == []
    prompt = client.response_calls[0]["input"]
    assert "Paper Title" in prompt
    assert "Methods" in prompt
    assert "An abstract." in prompt
    assert client.response_calls[0]["model"] == "gpt-4.1"


def test_web_search_can_be_disabled() -> None:
    client = _StubClient(response=_response("text"))
    adapter = OpenAIGenerativeAdapter(_settings(web_search_enabled=False), client=client)

    adapter.request_outline("topic")

    assert client.response_calls[0]["tools"] == []


@pytest.mark.parametrize("text", ["", "   \n"])
def test_empty_text_is_an_adapter_error(text: str) -> None:
    adapter = OpenAIGenerativeAdapter(_settings(), client=_StubClient(response=_response(text)))

    with pytest.raises(AdapterError, match="empty response"):
        adapter.request_section_content("T", "S", "A")


def test_sdk_errors_become_adapter_errors() -> None:
    adapter = OpenAIGenerativeAdapter(_settings(), client=_StubClient(error=OpenAIError("boom")))

    with pytest.raises(AdapterError, match="Failed to generate outline: boom"):
        adapter.request_outline("topic")
    with pytest.raises(AdapterError, match="Image generation failed: boom"):
        adapter.request_section_image("prompt")


def test_image_request_decodes_base64_payload() -> None:
    encoded = base64.b64encode(PNG_BYTES).decode("ascii")
    client = _StubClient(image=_image_result(encoded))
    adapter = OpenAIGenerativeAdapter(_settings(), client=client)

    image = adapter.request_section_image("A vector diagram of a qubit lattice")

    assert image == ImageBytes(data=PNG_BYTES, mime_type="image/png")
    call = client.image_calls[0]
    assert call["model"] == "gpt-image-1"
    assert call["size"] == "1536x1024"
    assert call["n"] == 1
    assert "response_format" not in call


def test_image_mime_type_follows_output_format() -> None:
    encoded = base64.b64encode(b"jpegbytes").decode("ascii")
    adapter = OpenAIGenerativeAdapter(
        _settings(), client=_StubClient(image=_image_result(encoded, output_format="jpeg"))
    )

    image = adapter.request_section_image("prompt")

    assert image.mime_type == "image/jpeg"
    assert image.to_data_url().startswith("data:image/jpeg;base64,")


def test_dalle_models_request_base64_responses() -> None:
    encoded = base64.b64encode(PNG_BYTES).decode("ascii")
    client = _StubClient(image=_image_result(encoded, output_format=None))
    adapter = OpenAIGenerativeAdapter(
        _settings(image_model="dall-e-3", image_size="1024x1024"), client=client
    )

    adapter.request_section_image("prompt")

    assert client.image_calls[0]["response_format"] == "b64_json"


@pytest.mark.parametrize(
    "result",
    [
        SimpleNamespace(data=[], output_format="png"),
        SimpleNamespace(data=None, output_format="png"),
        _image_result(None),
        _image_result("not base64!!"),
    ],
    ids=["no-data", "null-data", "no-b64", "malformed-b64"],
)
def test_unusable_image_payloads_are_adapter_errors(result: SimpleNamespace) -> None:
    adapter = OpenAIGenerativeAdapter(_settings(), client=_StubClient(image=result))

    with pytest.raises(AdapterError):
        adapter.request_section_image("prompt")


def test_extract_url_citations_ignores_other_annotation_types() -> None:
    resp = _response(
        "text",
        [
            _annotation("https://a.example", "A"),
            _annotation("file_123", "notes.pdf", kind="file_citation"),
        ],
    )
    assert extract_url_citations(resp) == [CitationRecord(title="A", uri="https://a.example")]


def test_extract_url_citations_handles_missing_output() -> None:
    assert extract_url_citations(SimpleNamespace(output_text="x")) == []


def test_missing_api_key_is_reported() -> None:
    with pytest.raises(ValueError, match="PAPERSMITH_OPENAI_API_KEY"):
        OpenAIGenerativeAdapter(Settings(openai_api_key=None))


def test_image_bytes_data_url() -> None:
    assert ImageBytes(data=b"abc").to_data_url() == "data:image/png;base64,YWJj"

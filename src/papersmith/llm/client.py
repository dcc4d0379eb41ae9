"""OpenAI-compatible chat client.

This wraps the `openai` Python SDK and provides a minimal interface for chat completions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Literal, Mapping, Sequence

from openai import OpenAI, OpenAIError

from papersmith.config import Settings
from papersmith.errors import AdapterError
from papersmith.logging import get_logger

logger = get_logger(__name__)

Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    """A chat message."""

    role: Role
    content: str


def create_openai_client(settings: Settings) -> OpenAI:
    """Create the SDK client from settings.

    Raises:
        ValueError: If no API key is configured.
    """

    if not settings.openai_api_key:
        raise ValueError(
            "Missing PAPERSMITH_OPENAI_API_KEY. "
            "Set it in environment variables or a .env file."
        )
    return OpenAI(api_key=settings.openai_api_key, base_url=settings.openai_base_url)


class LLMClient:
    """LLM client using OpenAI-compatible Chat Completions API."""

    def __init__(self, settings: Settings, *, client: OpenAI | None = None) -> None:
        self._settings = settings
        self._client = client if client is not None else create_openai_client(settings)

    def complete(self, messages: Sequence[ChatMessage], *, temperature: float = 0.2) -> str:
        """Generate a completion.

        Args:
            messages: Chat messages.
            temperature: Sampling temperature.

        Returns:
            Assistant message content.

        Raises:
            AdapterError: If the backend call fails.
        """

        payload: list[dict[str, str]] = [{"role": m.role, "content": m.content} for m in messages]
        try:
            resp = self._client.chat.completions.create(
                model=self._settings.chat_model,
                messages=payload,
                temperature=temperature,
                timeout=self._settings.openai_timeout_s,
            )
        except OpenAIError as e:
            logger.warning("Chat completion failed", extra={"model": self._settings.chat_model})
            raise AdapterError(f"Chat completion failed: {e}") from e
        choice = resp.choices[0]
        if not choice.message or choice.message.content is None:
            return ""
        return choice.message.content

    @staticmethod
    def format_messages(messages: Iterable[Mapping[str, Any]]) -> list[ChatMessage]:
        """Convert plain dict messages to ChatMessage."""

        out: list[ChatMessage] = []
        for m in messages:
            out.append(ChatMessage(role=m["role"], content=m["content"]))
        return out

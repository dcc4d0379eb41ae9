"""Research assistant chat session.

A conversational helper next to the generation pipeline: users refine topics or ask for
explanations. History is kept client-side and replayed on every turn.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from papersmith.errors import PreconditionError
from papersmith.llm.client import ChatMessage, LLMClient
from papersmith.logging import get_logger

logger = get_logger(__name__)


class ChatSession:
    """Multi-turn chat with a fixed system instruction."""

    def __init__(
        self,
        llm: LLMClient,
        *,
        system_prompt: str,
        history: Iterable[Mapping[str, Any]] = (),
    ) -> None:
        self._llm = llm
        self._system = ChatMessage(role="system", content=system_prompt)
        self._history: list[ChatMessage] = LLMClient.format_messages(history)

    @property
    def history(self) -> list[ChatMessage]:
        return list(self._history)

    def send(self, message: str) -> str:
        """Send a user message and return the assistant reply.

        The turn is only recorded once the backend answered, so a failed call can be
        retried without duplicating the user message.

        Raises:
            PreconditionError: If `message` is blank.
            AdapterError: If the backend call fails.
        """

        text = message.strip()
        if not text:
            raise PreconditionError("Chat message must not be empty.")

        user = ChatMessage(role="user", content=text)
        reply = self._llm.complete([self._system, *self._history, user], temperature=0.7)
        self._history.append(user)
        self._history.append(ChatMessage(role="assistant", content=reply))
        logger.debug("Chat turn done", extra={"turns": len(self._history) // 2})
        return reply

    def reset(self) -> None:
        self._history.clear()

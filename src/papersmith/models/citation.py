"""Citation models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class CitationRecord(BaseModel):
    """A grounding source returned by a generative call that used web search.

    Identity is the `uri`. Either field may arrive blank from the backend; such records are
    dropped during deduplication rather than rejected here.
    """

    model_config = ConfigDict(frozen=True)

    title: str = ""
    uri: str = ""

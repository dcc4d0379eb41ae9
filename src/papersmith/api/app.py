"""FastAPI app with SSE streaming of paper generation jobs."""

from __future__ import annotations

import json
from collections.abc import AsyncGenerator
from typing import Callable

from fastapi import FastAPI, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from papersmith import __version__
from papersmith.config import Settings, load_settings
from papersmith.llm.generative import GenerativeAdapter, OpenAIGenerativeAdapter
from papersmith.logging import configure_logging, get_logger
from papersmith.orchestrator.progress import FAILURE_MESSAGE
from papersmith.orchestrator.runner import run_paper_stream_async

AdapterFactory = Callable[[Settings], GenerativeAdapter]


class JobRequest(BaseModel):
    """Job request."""

    topic: str = Field(min_length=1, pattern=r"\S")


def create_app(
    settings: Settings | None = None,
    adapter_factory: AdapterFactory | None = None,
) -> FastAPI:
    """Create FastAPI app.

    Args:
        settings: Settings to use; loaded from the environment when omitted.
        adapter_factory: Builds the generative adapter per job. Defaults to the OpenAI adapter.
    """

    settings = settings or load_settings()
    configure_logging(settings.log_level)
    logger = get_logger(__name__)
    make_adapter = adapter_factory or OpenAIGenerativeAdapter

    app = FastAPI(title="Papersmith", version=__version__)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/jobs/stream")
    def jobs_stream(req: JobRequest) -> StreamingResponse:
        logger.info("API job requested", extra={"topic_len": len(req.topic)})
        try:
            adapter = make_adapter(settings)
        except ValueError as e:
            logger.error("Generative backend is not configured", extra={"error": str(e)})
            raise HTTPException(status_code=503, detail=FAILURE_MESSAGE) from e

        async def gen() -> AsyncGenerator[bytes, None]:
            async for ev in run_paper_stream_async(topic=req.topic, adapter=adapter):
                payload = json.dumps(ev.model_dump(mode="json"), ensure_ascii=False)
                yield f"data: {payload}\n\n".encode("utf-8")

        return StreamingResponse(gen(), media_type="text/event-stream")

    return app

"""Paper generation job runner.

A job drives three dependent phases strictly in order: outline, per-section content, and
per-section images. Every backend call is awaited before the next one is issued, so one
job never hits the backend concurrently and progress stays ordered.
"""

from __future__ import annotations

import asyncio
import contextlib
import uuid
from datetime import UTC, datetime
from typing import AsyncIterator, Callable

from papersmith.config import Settings
from papersmith.errors import (
    AdapterError,
    InvalidTransitionError,
    PaperGenerationError,
    ParseError,
    PreconditionError,
)
from papersmith.events import ContentType, EventType, JobEvent
from papersmith.llm.generative import GenerativeAdapter, OpenAIGenerativeAdapter
from papersmith.logging import get_logger, job_context, log_exception, set_phase
from papersmith.models.citation import CitationRecord
from papersmith.models.document import Document, DocumentSection, Section
from papersmith.models.outline import Outline
from papersmith.orchestrator.progress import (
    CANCELLED_MESSAGE,
    FAILURE_MESSAGE,
    Phase,
    ProgressReport,
    report,
)
from papersmith.orchestrator.state import JobState, JobStatus, check_transition
from papersmith.parsers.outline import parse_outline
from papersmith.utils.citations import dedupe_citations

logger = get_logger(__name__)

Subscriber = Callable[[JobEvent], None]
Clock = Callable[[], datetime]

MISSING_ABSTRACT = "No abstract generated."


def _utcnow() -> datetime:
    return datetime.now(UTC)


def new_job_id() -> str:
    # Time-based for readability plus a short random suffix to avoid collisions.
    ts = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")
    return f"{ts}_{uuid.uuid4().hex[:8]}"


class PaperJob:
    """One run of the pipeline for a single topic.

    Observers either subscribe to events or poll :attr:`state`, :attr:`percent` and
    :attr:`message`. A job is single-use; construct a new one per topic.
    """

    def __init__(
        self,
        adapter: GenerativeAdapter,
        *,
        job_id: str | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.job_id = job_id or new_job_id()
        self._adapter = adapter
        self._clock = clock or _utcnow
        self._state = JobState.idle()
        self._percent = 0
        self._message = "Waiting for a topic."
        self._seq = 0
        self._subscribers: list[Subscriber] = []
        self._cancel_requested = False
        self._sections: list[Section] = []

    @property
    def state(self) -> JobState:
        return self._state

    @property
    def percent(self) -> int:
        return self._percent

    @property
    def message(self) -> str:
        return self._message

    @property
    def document(self) -> Document | None:
        return self._state.document

    @property
    def sections(self) -> list[Section]:
        """Copies of the sections materialized so far."""

        return [s.model_copy(deep=True) for s in self._sections]

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register `callback` for every event; returns a function that unsubscribes it."""

        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def cancel(self) -> None:
        """Request cooperative cancellation.

        Takes effect before the next backend call; a call already in flight completes.
        """

        self._cancel_requested = True

    async def start(self, topic: str) -> JobState:
        """Run the job to a terminal state.

        Args:
            topic: Paper topic; must contain non-whitespace text.

        Returns:
            The terminal state (completed, failed or cancelled).

        Raises:
            PreconditionError: If the topic is empty. The job stays idle.
            InvalidTransitionError: If the job was already started.
        """

        if not isinstance(topic, str) or not topic.strip():
            raise PreconditionError("Topic must not be empty.")
        if self._state.status is not JobStatus.IDLE:
            raise InvalidTransitionError(f"job {self.job_id} has already been started")

        topic = topic.strip()
        with job_context(job_id=self.job_id, phase="outline"):
            logger.info("Job started", extra={"topic": topic})
            try:
                await self._run(topic)
            except asyncio.CancelledError:
                if not self._state.is_terminal:
                    self._finish_cancelled("task cancelled")
                raise
            except Exception as e:
                if not self._state.is_terminal:
                    log_exception(logger, "Job crashed", topic=topic)
                    self._fail(f"Internal error: {e}")
                raise
        return self._state

    async def _run(self, topic: str) -> None:
        self._transition(
            JobState.outlining(),
            report(Phase.OUTLINE, 0, 1),
            EventType.SYSTEM,
            ContentType.JOB_STARTED,
            data={"topic": topic},
        )
        if self._stop_if_cancelled():
            return

        try:
            outline_resp = await asyncio.to_thread(self._adapter.request_outline, topic)
            outline = parse_outline(outline_resp.text)
        except (AdapterError, ParseError) as e:
            self._fail(f"Outline generation failed: {e}")
            return

        citations: list[CitationRecord] = dedupe_citations(outline_resp.citations)
        self._sections = [Section.from_stub(stub) for stub in outline.sections]
        self._progress(report(Phase.OUTLINE, 1, 1))
        logger.info(
            "Outline ready",
            extra={"sections": len(self._sections), "citations": len(citations)},
        )
        self._emit(
            EventType.LLM,
            ContentType.OUTLINE_READY,
            data={
                "title": outline.title,
                "section_ids": [s.id for s in self._sections],
                "citations": len(citations),
            },
        )

        if not await self._write_sections(outline, citations):
            return
        if not await self._illustrate_sections():
            return

        references = dedupe_citations(citations)
        document = Document(
            title=outline.title,
            abstract=outline.abstract or MISSING_ABSTRACT,
            sections=tuple(DocumentSection.from_section(s) for s in self._sections),
            references=tuple(references),
            generated_at=self._clock(),
        )
        set_phase("done")
        self._transition(
            JobState.completed(document),
            report(Phase.COMPLETE, 1, 1),
            EventType.SYSTEM,
            ContentType.JOB_COMPLETED,
            data={
                "sections": len(document.sections),
                "images": sum(1 for s in document.sections if s.image_url),
                "references": len(document.references),
            },
        )
        logger.info("Job completed", extra={"references": len(references)})

    async def _write_sections(self, outline: Outline, citations: list[CitationRecord]) -> bool:
        """Fill every section's content in order. Returns False if the job stopped."""

        set_phase("content")
        total = len(self._sections)
        for i, section in enumerate(self._sections):
            if self._stop_if_cancelled():
                return False
            set_phase("content", section_index=i)
            self._transition(
                JobState.researching(i),
                report(Phase.CONTENT, i, total, label=section.title),
                EventType.SYSTEM,
                ContentType.SECTION_START,
                data={"section_id": section.id, "title": section.title},
            )
            try:
                result = await asyncio.to_thread(
                    self._adapter.request_section_content,
                    outline.title,
                    section.title,
                    outline.abstract,
                )
            except AdapterError as e:
                self._fail(f"Content generation failed for section {i + 1} '{section.title}': {e}")
                return False

            section.content = result.text
            section.processing = False
            new_refs = dedupe_citations(result.citations)
            citations.extend(new_refs)
            self._progress(report(Phase.CONTENT, i + 1, total))
            self._emit(
                EventType.LLM,
                ContentType.SECTION_DONE,
                data={"section_id": section.id, "chars": len(result.text), "citations": len(new_refs)},
            )
        return True

    async def _illustrate_sections(self) -> bool:
        """Generate images for sections with a prompt. Returns False if the job stopped.

        Image failures are per-section: the section keeps no image and the job goes on.
        """

        set_phase("images")
        total = len(self._sections)
        for i, section in enumerate(self._sections):
            if not section.image_prompt:
                continue
            if self._stop_if_cancelled():
                return False
            set_phase("images", section_index=i)
            self._transition(
                JobState.visualizing(i),
                report(Phase.IMAGES, i, total, label=section.title),
                EventType.SYSTEM,
                ContentType.IMAGE_START,
                data={"section_id": section.id, "title": section.title},
            )
            try:
                image = await asyncio.to_thread(
                    self._adapter.request_section_image, section.image_prompt
                )
            except AdapterError as e:
                logger.warning(
                    "Image generation failed; continuing without image",
                    extra={"section_id": section.id, "error": str(e)},
                )
                self._progress(report(Phase.IMAGES, i + 1, total))
                self._emit(
                    EventType.ERROR,
                    ContentType.IMAGE_FAILED,
                    data={"section_id": section.id, "error": str(e)},
                )
                continue

            section.image_url = image.to_data_url()
            self._progress(report(Phase.IMAGES, i + 1, total))
            self._emit(
                EventType.LLM,
                ContentType.IMAGE_DONE,
                data={"section_id": section.id, "bytes": len(image.data), "mime_type": image.mime_type},
            )
        return True

    def _stop_if_cancelled(self) -> bool:
        if not self._cancel_requested:
            return False
        self._finish_cancelled("cancelled by caller")
        return True

    def _finish_cancelled(self, reason: str) -> None:
        logger.info("Job cancelled", extra={**self._state.snapshot(), "reason": reason})
        self._transition(
            JobState.cancelled(reason),
            ProgressReport(percent=self._percent, message=CANCELLED_MESSAGE),
            EventType.SYSTEM,
            ContentType.JOB_CANCELLED,
            data={"reason": reason},
        )

    def _fail(self, reason: str) -> None:
        logger.error("Job failed", extra={**self._state.snapshot(), "reason": reason})
        self._transition(
            JobState.failed(reason),
            ProgressReport(percent=self._percent, message=FAILURE_MESSAGE),
            EventType.ERROR,
            ContentType.JOB_FAILED,
            data={"reason": reason},
        )

    def _transition(
        self,
        new_state: JobState,
        progress: ProgressReport,
        event_type: EventType,
        content_type: ContentType,
        *,
        data: dict | None = None,
    ) -> None:
        check_transition(self._state, new_state)
        self._state = new_state
        self._progress(progress)
        self._emit(event_type, content_type, data=data)

    def _progress(self, progress: ProgressReport) -> None:
        # Never move backwards, whatever the caller computed.
        self._percent = max(self._percent, progress.percent)
        self._message = progress.message

    def _emit(
        self, event_type: EventType, content_type: ContentType, *, data: dict | None = None
    ) -> JobEvent:
        self._seq += 1
        ev = JobEvent(
            job_id=self.job_id,
            seq=self._seq,
            event_type=event_type,
            content_type=content_type,
            status=self._state.status,
            section_index=self._state.section_index,
            percent=self._percent,
            message=self._message,
            data=data,
        )
        for callback in list(self._subscribers):
            try:
                callback(ev)
            except Exception:
                log_exception(logger, "Job subscriber raised", content_type=content_type.value)
        return ev


async def run_paper_stream_async(
    *, topic: str, adapter: GenerativeAdapter, job_id: str | None = None
) -> AsyncIterator[JobEvent]:
    """Run a job and yield its events as they happen.

    Closing the iterator early cancels the job before its next backend call and waits for
    the call in flight to return.

    Raises:
        PreconditionError: On first iteration, if the topic is empty.
    """

    job = PaperJob(adapter, job_id=job_id)
    queue: asyncio.Queue[JobEvent | None] = asyncio.Queue()
    unsubscribe = job.subscribe(queue.put_nowait)
    task = asyncio.create_task(job.start(topic))
    task.add_done_callback(lambda _t: queue.put_nowait(None))
    try:
        while True:
            ev = await queue.get()
            if ev is None:
                break
            yield ev
        await task
    finally:
        unsubscribe()
        if not task.done():
            job.cancel()
        # The job has already reported its outcome as events; only drain it here.
        with contextlib.suppress(Exception):
            await task


def generate_paper(
    *,
    topic: str,
    settings: Settings | None = None,
    adapter: GenerativeAdapter | None = None,
    on_event: Subscriber | None = None,
) -> Document:
    """Run a job to completion synchronously and return its document.

    This is a convenience wrapper around :class:`PaperJob` for scripts and the CLI.

    Raises:
        PreconditionError: If the topic is empty.
        PaperGenerationError: If the job failed or was cancelled.
    """

    if adapter is None:
        if settings is None:
            raise ValueError("either settings or adapter is required")
        adapter = OpenAIGenerativeAdapter(settings)

    job = PaperJob(adapter)
    if on_event is not None:
        job.subscribe(on_event)
    state = asyncio.run(job.start(topic))
    if state.status is not JobStatus.COMPLETED or state.document is None:
        raise PaperGenerationError(FAILURE_MESSAGE, state=state)
    return state.document

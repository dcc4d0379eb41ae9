"""CLI entrypoints for Papersmith."""

from __future__ import annotations

from pathlib import Path

import typer

from papersmith.config import load_settings
from papersmith.errors import AdapterError, PaperGenerationError
from papersmith.events import JobEvent
from papersmith.llm.chat import ChatSession
from papersmith.llm.client import LLMClient
from papersmith.llm.generative import OpenAIGenerativeAdapter
from papersmith.logging import configure_logging, get_logger
from papersmith.orchestrator.runner import generate_paper

app = typer.Typer(add_completion=False, help="Papersmith topic-to-paper generation CLI")
logger = get_logger(__name__)

_EXIT_COMMANDS = {"/exit", "/quit"}


def _echo_progress(ev: JobEvent) -> None:
    typer.echo(f"[{ev.percent:3d}%] {ev.message}", err=True)


@app.command()
def generate(
    topic: str = typer.Argument(
        "",
        help="Paper topic. If omitted, you must provide --topic-file pointing to a UTF-8 text file.",
        show_default=False,
    ),
    output: Path = typer.Option(Path("paper.json"), "--output", "-o", help="Output JSON file"),
    topic_file: Path | None = typer.Option(
        None,
        "--topic-file",
        help="Path to a UTF-8 text file containing the topic.",
    ),
) -> None:
    """Generate a paper for TOPIC and write it as JSON."""

    if not topic:
        if topic_file is None:
            raise typer.BadParameter(
                "You must provide either a positional TOPIC or --topic-file pointing to a text file."
            )
        topic = topic_file.read_text(encoding="utf-8").strip()
        if not topic:
            raise typer.BadParameter("The topic file is empty.")

    settings = load_settings()
    configure_logging(settings.log_level)

    logger.info("CLI generate requested")

    adapter = OpenAIGenerativeAdapter(settings)
    try:
        document = generate_paper(topic=topic, adapter=adapter, on_event=_echo_progress)
    except PaperGenerationError as e:
        logger.error("Generation did not complete", extra={"reason": e.state.reason})
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1) from e

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(document.model_dump_json(indent=2), encoding="utf-8")
    typer.echo(str(output))


@app.command()
def chat() -> None:
    """Chat with the research assistant. Type /exit to quit."""

    settings = load_settings()
    configure_logging(settings.log_level)

    session = ChatSession(LLMClient(settings), system_prompt=settings.chat_system_prompt)
    while True:
        message = typer.prompt("you", prompt_suffix="> ").strip()
        if message.lower() in _EXIT_COMMANDS:
            break
        if not message:
            continue
        try:
            reply = session.send(message)
        except AdapterError as e:
            logger.warning("Chat turn failed", extra={"error": str(e)})
            typer.echo("Sorry, I encountered an error. Please try again.", err=True)
            continue
        typer.echo(reply)


if __name__ == "__main__":
    app()

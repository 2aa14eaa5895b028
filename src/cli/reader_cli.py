"""Typer-based command-line interface for one-off extractions and serving."""

import os

os.environ.setdefault("LOGFIRE_IGNORE_NO_CONFIG", "1")

from pathlib import Path

_project_root = Path(__file__).resolve().parent.parent.parent
from dotenv import load_dotenv

load_dotenv(_project_root / ".env")
load_dotenv(_project_root / ".env.local")

import asyncio

import typer

from src.api.extract import build_extraction_request
from src.config import get_settings
from src.dependencies import build_extraction_service
from src.exceptions import ReaderError
from src.services.output_formatter import format_result

app = typer.Typer(help="Extract readable content from web pages.")


@app.command()
def extract(
    url: str = typer.Argument(..., help="Page URL (scheme optional)"),
    output_format: str = typer.Option("text", "--format", "-f", help="text, markdown, json or html"),
    mode: str = typer.Option("readability", "--mode", "-m", help="readability, full or a CSS selector"),
    selector: str | None = typer.Option(None, "--selector", "-s", help="CSS selector for selector mode"),
    keywords: bool = typer.Option(False, "--keywords", help="Include keywords"),
    summary: bool = typer.Option(False, "--summary", help="Include an extractive summary"),
    include_html: bool = typer.Option(False, "--include-html", help="Include the content HTML"),
    max_length: int | None = typer.Option(None, "--max-length", help="Truncate rendered content"),
):
    """Fetch a page and print its extracted content."""
    settings = get_settings()
    params = {
        "format": output_format,
        "mode": mode,
        "selector": selector,
        "keywords": keywords,
        "summary": summary,
        "includeHtml": include_html,
        "maxLength": max_length,
    }
    try:
        request = build_extraction_request(url, params)
        service = build_extraction_service(settings)
        result = asyncio.run(service.extract(request))
    except ReaderError as e:
        typer.secho(f"Error ({e.error_code}): {e.message}", fg=typer.colors.RED, err=True)
        if e.hint:
            typer.echo(f"Hint: {e.hint}", err=True)
        raise typer.Exit(code=1)

    typer.echo(format_result(result, request).body)


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind address"),
    port: int = typer.Option(8000, help="Port"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run("src.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()

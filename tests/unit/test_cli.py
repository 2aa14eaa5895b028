"""Tests for the reader command-line interface."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from typer.testing import CliRunner

from src.cli.reader_cli import app
from src.exceptions import UpstreamError

runner = CliRunner()


@pytest.fixture
def cli_service(sample_result):
    """Patch the CLI's service builder to return a stub service."""
    service = MagicMock()
    service.extract = AsyncMock(return_value=sample_result)
    with patch("src.cli.reader_cli.build_extraction_service", return_value=service) as builder:
        builder.service = service
        yield builder


class TestExtractCommand:
    """Test the extract command."""

    def test_prints_text_output(self, mock_settings, cli_service):
        result = runner.invoke(app, ["extract", "https://example.com/articles/tide-pools"])

        assert result.exit_code == 0
        assert "Title: Understanding Tide Pools" in result.output
        assert "Tide pools form at low tide." in result.output
        cli_service.assert_called_once_with(mock_settings)

    def test_passes_options_to_request(self, mock_settings, cli_service):
        result = runner.invoke(
            app,
            [
                "extract",
                "example.com/articles/tide-pools",
                "--format",
                "json",
                "--mode",
                "main.article",
                "--keywords",
                "--summary",
                "--max-length",
                "10",
            ],
        )

        assert result.exit_code == 0
        request = cli_service.service.extract.await_args.args[0]
        assert request.url == "example.com/articles/tide-pools"
        assert request.format == "json"
        assert request.mode == "selector"
        assert request.selector == "main.article"
        assert request.include_keywords is True
        assert request.include_summary is True
        assert request.include_html is False
        assert request.max_length == 10

        data = json.loads(result.output)["data"]
        assert data["keywords"][0]["term"] == "tide"
        assert data["truncated"] is True

    def test_markdown_output(self, mock_settings, cli_service):
        result = runner.invoke(app, ["extract", "https://example.com/", "-f", "markdown"])

        assert result.exit_code == 0
        assert "**low tide**" in result.output

    def test_invalid_format(self, mock_settings, cli_service):
        result = runner.invoke(app, ["extract", "https://example.com/", "--format", "pdf"])

        assert result.exit_code == 1
        assert "Error (INPUT_ERROR): Unsupported format: pdf" in result.output
        assert "Hint: Use one of: text, markdown, json, html" in result.output
        cli_service.service.extract.assert_not_awaited()

    def test_extraction_error(self, mock_settings, cli_service):
        cli_service.service.extract.side_effect = UpstreamError(
            "Failed to fetch URL: 404 Not Found", status_code=404
        )

        result = runner.invoke(app, ["extract", "https://example.com/missing"])

        assert result.exit_code == 1
        assert "Error (UPSTREAM_ERROR): Failed to fetch URL: 404 Not Found" in result.output


class TestServeCommand:
    """Test the serve command."""

    def test_runs_uvicorn(self):
        with patch("uvicorn.run") as run:
            result = runner.invoke(app, ["serve", "--port", "9000"])

        assert result.exit_code == 0
        run.assert_called_once_with("src.main:app", host="0.0.0.0", port=9000, reload=False)

    def test_reload_flag(self):
        with patch("uvicorn.run") as run:
            runner.invoke(app, ["serve", "--reload"])

        assert run.call_args.kwargs["reload"] is True

"""CLI principal (Typer + Rich).

La CLI es solo el borde: lee el texto (argumento, fichero o stdin), resuelve
la API key (flag o settings) y delega todo en `parse_notice`.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from adapters.gemini_client import GeminiCompletionService
from adapters.json_exporter import export_result_json, result_to_json
from cli.doctor import app as doctor_app
from cli.ui_components import build_record_table, build_text_panel, print_banner
from core.config import AppSettings
from core.domain.language import Language
from core.domain.models import ParseMode
from core.errors import (
    CompletionServiceExhausted,
    DisruptionParserError,
    InputValidationError,
)
from core.interfaces.completion import CompletionService
from core.services.disruption_pipeline import (
    PipelineHooks,
    PipelineResult,
    parse_notice,
    validate_request,
)

app = typer.Typer(
    no_args_is_help=True,
    help="Parse multilingual flight-disruption notices into structured records.",
)
app.add_typer(doctor_app, name="doctor")

_console = Console()
_err_console = Console(stderr=True)


def build_completion_service(settings: AppSettings) -> CompletionService:
    return GeminiCompletionService(settings)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=_err_console, show_path=False, rich_tracebacks=verbose)],
        force=True,
    )
    # httpx registra cada request en INFO; solo interesa con --verbose.
    logging.getLogger("httpx").setLevel(logging.INFO if verbose else logging.WARNING)


def _read_input(text: str | None, file: Path | None) -> str | None:
    if file is not None:
        try:
            return file.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise InputValidationError(
                "Invalid parse request",
                errors=[f"file: {file} is not valid UTF-8 ({exc.reason})"],
            ) from exc
    if text:
        return text
    if not sys.stdin.isatty():
        return sys.stdin.read()
    return None


def _render(result: PipelineResult) -> None:
    if result.record is not None:
        _console.print(build_record_table(result.record))
    if result.translated is not None:
        _console.print(build_text_panel(result.translated, title="Translation"))


def _execute(
    *,
    text: str | None,
    file: Path | None,
    api_key: str | None,
    model: str | None,
    mode: ParseMode,
    include_translation: bool,
    language: Language | None,
    as_json: bool,
    output: Path | None,
    verbose: bool,
) -> None:
    _configure_logging(verbose)
    settings = AppSettings()

    try:
        request = validate_request(
            text=_read_input(text, file),
            api_key=api_key or settings.ai_api_key,
            model=model or settings.ai_model,
            mode=mode,
            include_translation=include_translation,
            target_language=language or settings.default_language,
        )
    except InputValidationError as exc:
        _err_console.print(f"[red]{exc}[/red]")
        for err in exc.errors:
            _err_console.print(f"  - {err}")
        raise typer.Exit(code=2) from exc

    hooks = PipelineHooks(warning=lambda m: _err_console.print(f"[yellow]Warning:[/yellow] {m}"))
    try:
        result = asyncio.run(
            parse_notice(
                settings=settings,
                request=request,
                service=build_completion_service(settings),
                hooks=hooks,
            )
        )
    except CompletionServiceExhausted as exc:
        _err_console.print(
            f"[red]All completion candidates failed[/red] "
            f"(attempts={exc.attempts}, last status={exc.status_code}): {exc.body[:500]}"
        )
        raise typer.Exit(code=1) from exc
    except DisruptionParserError as exc:
        _err_console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    if output is not None:
        path = export_result_json(result=result, output_path=output)
        _err_console.print(f"[green]Saved:[/green] {path}")

    if as_json:
        typer.echo(result_to_json(result))
        return

    print_banner(_console)
    _render(result)


@app.command()
def parse(
    text: Optional[str] = typer.Argument(None, help="Notice text (reads stdin when omitted)."),
    file: Optional[Path] = typer.Option(None, "--file", "-f", exists=True, dir_okay=False, help="Read the notice from a file."),
    with_translation: bool = typer.Option(False, "--translate", "-t", help="Also request a translation of the notice."),
    language: Optional[Language] = typer.Option(None, "--language", "-l", help="Translation target language."),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Preferred model, tried before the fallbacks."),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="Overrides DISRUPTION_PARSER_AI_API_KEY."),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the JSON result to a file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    """Extract a disruption record from a notice."""

    _execute(
        text=text,
        file=file,
        api_key=api_key,
        model=model,
        mode=ParseMode.EXTRACT,
        include_translation=with_translation,
        language=language,
        as_json=as_json,
        output=output,
        verbose=verbose,
    )


@app.command()
def translate(
    text: Optional[str] = typer.Argument(None, help="Notice text (reads stdin when omitted)."),
    file: Optional[Path] = typer.Option(None, "--file", "-f", exists=True, dir_okay=False, help="Read the notice from a file."),
    language: Optional[Language] = typer.Option(None, "--language", "-l", help="Translation target language."),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Preferred model, tried before the fallbacks."),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="Overrides DISRUPTION_PARSER_AI_API_KEY."),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    """Translate a notice without extracting a record."""

    _execute(
        text=text,
        file=file,
        api_key=api_key,
        model=model,
        mode=ParseMode.TRANSLATE,
        include_translation=False,
        language=language,
        as_json=as_json,
        output=None,
        verbose=verbose,
    )


def run() -> None:
    app()

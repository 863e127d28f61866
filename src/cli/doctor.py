"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.http_client import build_async_client
from core.config import AppSettings, write_user_env_vars
from core.domain.calendar import jalali_to_gregorian

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_http(settings: AppSettings) -> tuple[bool, str]:
    try:
        async with build_async_client(settings) as client:
            response = await client.get(settings.ai_base_url)
        return True, f"HTTP {response.status_code}"
    except Exception as exc:
        return False, str(exc)


def _check_calendar() -> tuple[bool, str]:
    """Sanity check of the Jalali conversion against a known date."""

    converted = jalali_to_gregorian(1404, 7, 26).isoformat()
    return converted == "2025-10-18", f"1404/07/26 -> {converted}"


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="Disruption Parser Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    if settings.ai_api_key:
        table.add_row("AI key", "OK", "Key configured")
    else:
        table.add_row("AI key", "MISSING", "Pass --api-key or run `doctor setup-ai`")
    table.add_row("AI base_url", "OK", settings.ai_base_url)
    table.add_row("Preferred model", "OK", settings.ai_model or "(none)")
    table.add_row("Fallback models", "OK", ", ".join(settings.ai_fallback_models))
    table.add_row("API versions", "OK", ", ".join(settings.ai_api_versions))
    table.add_row("Translation target", "OK", settings.default_language.label())

    # Connectivity (best-effort)
    ok_http, detail_http = asyncio.run(_check_http(settings))
    table.add_row("HTTP connectivity", "OK" if ok_http else "FAIL", detail_http)

    ok_cal, detail_cal = _check_calendar()
    table.add_row("Jalali calendar", "OK" if ok_cal else "FAIL", detail_cal)

    _console.print(table)

    if not settings.ai_api_key:
        _console.print(
            "\n[yellow]Note:[/yellow] Without an API key every `parse`/`translate` call fails validation."
        )


@app.command(name="setup-ai")
def setup_ai() -> None:
    """Interactive AI setup (stores config in the user config .env)."""

    current = AppSettings()
    model = typer.prompt(
        "Preferred model (blank for fallbacks only)",
        default=current.ai_model or "",
        show_default=True,
    ).strip()
    api_key = typer.prompt("Gemini API key", hide_input=True, confirmation_prompt=False).strip()

    if not api_key:
        raise typer.BadParameter("api key is required")

    env_path = write_user_env_vars(
        {
            "DISRUPTION_PARSER_AI_API_KEY": api_key,
            "DISRUPTION_PARSER_AI_MODEL": model or None,
        }
    )

    _console.print(f"[green]Saved AI config to:[/green] {env_path}")

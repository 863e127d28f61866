"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import DisruptionRecord


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida.

    Por qué aquí:
    - Evita dependencias circulares (main <-> doctor).
    - Permite desactivar banner en modos no interactivos (`--json`).
    """

    title = Text("DISRUPTION-PARSER", style="bold cyan")
    subtitle = Text("Avisos de vuelo • Jalali/Gregoriano • IA", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_record_table(record: DisruptionRecord) -> Table:
    """Tabla campo/valor con el payload camelCase del registro."""

    table = Table(title="Disruption Record")
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")

    payload = record.model_dump(mode="json", by_alias=True)
    for key, value in payload.items():
        if key == "translatedText":
            continue
        shown = "" if value is None else str(value)
        table.add_row(key, shown or Text("-", style="dim"))
    return table


def build_text_panel(text: str, *, title: str, style: str = "yellow") -> Panel:
    """Panel para traducciones o texto crudo del modelo."""

    return Panel(Text(text.strip() or "(empty)"), title=Text(title, style=f"bold {style}"), border_style=style)

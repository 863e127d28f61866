"""Exportación JSON del resultado del pipeline.

Por qué JSON:
- Es el formato que consume el sistema de reservas (campos camelCase).
- Incluye los textos crudos del modelo para diagnóstico.
"""

from __future__ import annotations

import json
from pathlib import Path

from core.services.disruption_pipeline import PipelineResult


def result_to_json(result: PipelineResult) -> str:
    return json.dumps(result.to_payload(), ensure_ascii=False, indent=2, sort_keys=True)


def export_result_json(*, result: PipelineResult, output_path: Path) -> Path:
    """Exporta `PipelineResult` a JSON UTF-8 con formato estable."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(result_to_json(result) + "\n", encoding="utf-8")
    return output_path

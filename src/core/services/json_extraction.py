"""Extracción tolerante de JSON desde la prosa del LLM.

Por qué fail-soft:
- Un completion malformado no debe abortar el pipeline; se degrada a `{}` y
  el registro sale con campos vacíos.
"""

from __future__ import annotations

import json
import re
from typing import Any

from core.errors import JsonExtractionFailure
from core.services.text_normalizers import normalize_digits

_JSON_FENCE_RE = re.compile(r"```[\w-]*[ \t]*\r?\n(.*?)```", re.DOTALL)


def _candidate_body(text: str) -> str:
    cleaned = text.strip()
    fence = _JSON_FENCE_RE.search(cleaned)
    body = fence.group(1) if fence else cleaned
    start = body.find("{")
    end = body.rfind("}")
    if start >= 0 and end >= 0:
        return body[start : end + 1]
    return body


def _loads_object(candidate: str) -> dict[str, Any]:
    data = json.loads(candidate)
    if not isinstance(data, dict):
        raise JsonExtractionFailure(f"expected a JSON object, got {type(data).__name__}")
    return data


def parse_json_object(text: str) -> dict[str, Any]:
    """Versión estricta: lanza `JsonExtractionFailure` si no hay objeto válido.

    Segundo intento tras normalizar dígitos: los modelos a veces emiten
    dígitos persas dentro de un JSON por lo demás correcto.
    """

    candidate = _candidate_body(text or "")
    try:
        return _loads_object(candidate)
    except (json.JSONDecodeError, RecursionError, JsonExtractionFailure):
        pass
    try:
        return _loads_object(normalize_digits(candidate))
    except (json.JSONDecodeError, RecursionError) as exc:
        raise JsonExtractionFailure(f"no valid JSON object in completion: {exc}") from exc


def extract_json(text: str | None) -> dict[str, Any]:
    """Devuelve el primer objeto JSON del texto o `{}`; nunca lanza."""

    try:
        return parse_json_object(text or "")
    except JsonExtractionFailure:
        return {}

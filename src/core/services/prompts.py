"""Prompts para el proveedor de completions.

Importante: el prompt de extracción pide JSON estricto y fechas tal cual
aparecen (Jalali incluido); la conversión de calendario se hace después, de
forma determinista, en `text_normalizers.resolve_date`.
"""

from __future__ import annotations

from core.domain.language import Language
from core.domain.models import DisruptionType

EXTRACTION_FIELDS: tuple[str, ...] = (
    "airline",
    "flightNumber",
    "date",
    "origin",
    "destination",
    "type",
    "oldTime",
    "newTime",
    "newFlightNumber",
    "newAirline",
)


def build_extraction_prompt(text: str) -> str:
    instruction = "\n".join(
        [
            "You are a flight analyst assistant.",
            "Extract flight details from the text into a valid JSON object.",
            f"Fields: {', '.join(EXTRACTION_FIELDS)}.",
            "Rules:",
            "- origin/destination: IATA codes (3 uppercase letters).",
            "- date: yyyy/MM/dd (Keep Jalali/Shamsi if present).",
            "- time: HH:mm (24h).",
            "- airline: THIS IS MANDATORY to be IATA name of airline only as single word (not a code).",
            f"- type options: {', '.join(DisruptionType.values())}.",
            "- If missing, use empty string.",
            "Respond with ONLY JSON.",
        ]
    )
    return f"{instruction}\n\nText to extract:\n{text}"


def build_translation_prompt(text: str, language: Language) -> str:
    label = language.label()
    instruction = "\n".join(
        [
            "You are a professional translator.",
            f"Translate the text to {label}.",
            (
                f"Translate the entire input text from its original language into {label}. "
                f"Even if the text looks like {label} (e.g. Persian written in Arabic script), "
                f"you MUST translate it to proper {label}."
            ),
            "Maintain numbers and dates exactly as they appear.",
            "Keep the original formatting.",
            "Respond ONLY with the translated text.",
        ]
    )
    return f"{instruction}\n\nText:\n{text}"

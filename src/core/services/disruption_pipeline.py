"""Disruption notice parsing orchestration.

This module composes the whole flow: validate the request, build prompts,
obtain the completion(s), extract JSON and normalize every field into a
`DisruptionRecord`. The CLI delegates to `parse_notice`, which keeps
side-effects (printing, progress) out of the core logic and makes the
pipeline reusable for other entry-points (APIs, batch jobs, tests).

Failure policy:
- Hard failures (`InputValidationError`, `CompletionServiceExhausted`,
  `CompletionTimeout`) abort and propagate.
- Soft failures (bad JSON, unresolvable date/time/airport) never abort; the
  field is omitted or kept best-effort and a warning is recorded.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence

from pydantic import ValidationError

from adapters.gemini_client import GeminiCompletionService
from core.config import AppSettings
from core.domain.language import Language
from core.domain.models import DisruptionRecord, ParseMode, ParseRequest
from core.errors import AirportCodeUnresolved, CompletionTimeout, InputValidationError
from core.interfaces.completion import CompletionService
from core.services.json_extraction import extract_json
from core.services.prompts import build_extraction_prompt, build_translation_prompt
from core.services.text_normalizers import (
    classify_disruption,
    normalize_time,
    parse_airport_code,
    resolve_airport_code,
    resolve_date,
)

logger = logging.getLogger(__name__)

# Alias aceptados por campo, evaluados en este orden; gana el primero no vacío.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "airline": ("airline", "flight_airline"),
    "flightNumber": ("flightNumber", "flight_no", "flight"),
    "date": ("date", "flightDate"),
    "origin": ("origin", "from"),
    "destination": ("destination", "to"),
    "type": ("type",),
    "oldTime": ("oldTime", "old_time"),
    "newTime": ("newTime", "new_time"),
    "newFlightNumber": ("newFlightNumber", "new_flight_number"),
    "newAirline": ("newAirline", "new_airline"),
}


@dataclass
class PipelineHooks:
    """Optional callbacks for UI layers."""

    warning: Callable[[str], None] | None = None


@dataclass
class PipelineResult:
    """Output of a pipeline invocation.

    `record` is `None` only in pure translation mode.
    """

    record: DisruptionRecord | None
    translated: str | None = None
    raw_extraction: str = ""
    raw_translation: str = ""
    warnings: list[str] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {
            "data": self.record.to_payload() if self.record else None,
            "translated": self.translated,
            "raw_extraction": self.raw_extraction,
            "raw_translation": self.raw_translation,
            "warnings": list(self.warnings),
        }


def validate_request(
    *,
    text: str | None,
    api_key: str | None,
    model: str | None = None,
    mode: ParseMode | str = ParseMode.EXTRACT,
    include_translation: bool = False,
    target_language: Language | str = Language.ARABIC,
) -> ParseRequest:
    """Build a `ParseRequest`, raising `InputValidationError` on bad input."""

    try:
        return ParseRequest(
            text=text if text is not None else "",
            api_key=api_key if api_key is not None else "",
            model=model,
            mode=mode,
            include_translation=include_translation,
            target_language=target_language,
        )
    except ValidationError as exc:
        errors = [
            f"{'.'.join(str(p) for p in err['loc']) or 'request'}: {err['msg']}"
            for err in exc.errors()
        ]
        raise InputValidationError("Invalid parse request", errors=errors) from exc


def resolve_field(obj: Mapping[str, Any], name: str) -> str:
    """First non-empty alias value for `name`, as a trimmed string."""

    for alias in FIELD_ALIASES[name]:
        value = obj.get(alias)
        if value is None or isinstance(value, (dict, list, bool)):
            continue
        text = str(value).strip()
        if text:
            return text
    return ""


def build_record(
    obj: Mapping[str, Any],
    *,
    translated: str | None = None,
    warn: Callable[[str], None] | None = None,
) -> DisruptionRecord:
    """Normalize an extracted JSON object into a `DisruptionRecord`."""

    def _warn(message: str) -> None:
        if warn:
            warn(message)

    raw = {name: resolve_field(obj, name) for name in FIELD_ALIASES}

    date = resolve_date(raw["date"])
    if raw["date"] and date is None:
        _warn(f"Could not resolve date {raw['date']!r}; field omitted.")

    times: dict[str, str | None] = {}
    for name in ("oldTime", "newTime"):
        times[name] = normalize_time(raw[name])
        if raw[name] and times[name] is None:
            _warn(f"Could not parse {name} {raw[name]!r}; field omitted.")

    airports: dict[str, str] = {}
    for name in ("origin", "destination"):
        airports[name] = resolve_airport_code(raw[name])
        if raw[name]:
            try:
                parse_airport_code(raw[name])
            except AirportCodeUnresolved:
                _warn(f"No IATA code found for {name} {raw[name]!r}; kept as-is.")

    disruption_type = classify_disruption(
        raw["type"],
        new_flight_number=raw["newFlightNumber"],
        new_time=times["newTime"],
    )
    if raw["type"] and raw["type"].lower() != disruption_type:
        _warn(f"Unknown type {raw['type']!r}; inferred {disruption_type or 'none'!r}.")

    return DisruptionRecord(
        airline=raw["airline"],
        flight_number=raw["flightNumber"],
        date=date,
        origin=airports["origin"],
        destination=airports["destination"],
        disruption_type=disruption_type,
        old_time=times["oldTime"],
        new_time=times["newTime"],
        new_flight_number=raw["newFlightNumber"],
        new_airline=raw["newAirline"],
        translated_text=translated,
    )


async def _complete_all(
    *,
    service: CompletionService,
    prompts: Sequence[str],
    request: ParseRequest,
    timeout: float,
) -> list[str]:
    tasks = [
        asyncio.ensure_future(
            service.complete(prompt, api_key=request.api_key, preferred_model=request.model)
        )
        for prompt in prompts
    ]
    try:
        return list(await asyncio.wait_for(asyncio.gather(*tasks), timeout=timeout))
    except asyncio.TimeoutError as exc:
        raise CompletionTimeout(f"Completion requests exceeded {timeout:.0f}s") from exc
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()


async def parse_notice(
    *,
    settings: AppSettings,
    request: ParseRequest,
    service: CompletionService | None = None,
    hooks: PipelineHooks | None = None,
) -> PipelineResult:
    hooks = hooks or PipelineHooks()
    warnings: list[str] = []

    def warn(message: str) -> None:
        logger.info(message)
        warnings.append(message)
        if hooks.warning:
            hooks.warning(message)

    service = service or GeminiCompletionService(settings)

    translation_prompt = build_translation_prompt(request.text, request.target_language)

    if request.mode is ParseMode.TRANSLATE:
        (translated,) = await _complete_all(
            service=service,
            prompts=[translation_prompt],
            request=request,
            timeout=settings.completion_timeout_seconds,
        )
        return PipelineResult(
            record=None,
            translated=translated.strip(),
            raw_translation=translated,
            warnings=warnings,
        )

    prompts = [build_extraction_prompt(request.text)]
    if request.include_translation:
        prompts.append(translation_prompt)

    results = await _complete_all(
        service=service,
        prompts=prompts,
        request=request,
        timeout=settings.completion_timeout_seconds,
    )
    raw_extraction = results[0]
    raw_translation = results[1] if request.include_translation else ""

    obj = extract_json(raw_extraction)
    if not obj and raw_extraction.strip():
        warn("Completion did not contain a JSON object; record fields are empty.")

    translated = raw_translation.strip() if request.include_translation else None
    record = build_record(obj, translated=translated, warn=warn)

    return PipelineResult(
        record=record,
        translated=translated,
        raw_extraction=raw_extraction,
        raw_translation=raw_translation,
        warnings=warnings,
    )

"""Normalizadores de campos extraídos por el modelo.

Responsabilidad:
- Convertir lo que devuelve el LLM (texto libre, dígitos persas/árabes,
  fechas Jalali) en valores canónicos para `DisruptionRecord`.
- Las variantes `resolve_*`/`normalize_*` nunca lanzan: devuelven `None` o un
  valor best-effort. Las variantes `parse_*` son estrictas y lanzan errores
  del dominio, útiles cuando el llamador quiere distinguir el motivo.
"""

from __future__ import annotations

import datetime as _dt
import re

from core.domain.calendar import jalali_to_gregorian
from core.domain.models import DisruptionType
from core.errors import (
    AirportCodeUnresolved,
    CalendarRangeError,
    InvalidCalendarDate,
    TimeFormatError,
)

# U+0660..0669 (árabe-índico) y U+06F0..06F9 (persa) -> ASCII.
_DIGIT_TABLE = str.maketrans(
    {
        **{chr(0x0660 + i): str(i) for i in range(10)},
        **{chr(0x06F0 + i): str(i) for i in range(10)},
    }
)

_DATE_RE = re.compile(r"^(\d{4})/(\d{1,2})/(\d{1,2})$")
# ":" , "." o el separador decimal árabe U+066B.
_TIME_RE = re.compile(r"(\d{1,2})[:.٫](\d{1,2})")
_THREE_LETTERS_RE = re.compile(r"^[A-Z]{3}$")
_PAREN_CODE_RE = re.compile(r"\(\s*([A-Z]{3})\s*\)")
_TOKEN_CODE_RE = re.compile(r"\b[A-Z]{3}\b", re.ASCII)

JALALI_YEAR_RANGE = (1300, 1499)


def normalize_digits(text: str) -> str:
    """Sustituye dígitos árabe-índicos y persas por ASCII (idempotente)."""

    return text.translate(_DIGIT_TABLE)


def _date_parts(text: str) -> tuple[int, int, int] | None:
    s = normalize_digits(text).replace(".", "/").replace("-", "/").strip()
    m = _DATE_RE.match(s)
    if not m:
        return None
    return int(m.group(1)), int(m.group(2)), int(m.group(3))


def resolve_date(text: str | None) -> str | None:
    """Texto de fecha -> ISO gregoriano, convirtiendo desde Jalali si aplica.

    Reglas de desambiguación del año:
    - [1300, 1499] -> Jalali, se convierte.
    - (1900, 3000) -> ya es gregoriano, se valida y se deja igual.
    - cualquier otro -> `None` (no se puede saber el calendario de origen).

    Fechas inexistentes o fuera de rango también devuelven `None`.
    """

    if not text:
        return None
    parts = _date_parts(str(text))
    if parts is None:
        return None
    year, month, day = parts

    low, high = JALALI_YEAR_RANGE
    if low <= year <= high:
        try:
            return jalali_to_gregorian(year, month, day).isoformat()
        except (CalendarRangeError, InvalidCalendarDate):
            return None

    if 1900 < year < 3000:
        try:
            return _dt.date(year, month, day).isoformat()
        except ValueError:
            return None

    return None


def parse_time(text: str) -> str:
    """Versión estricta de `normalize_time`: lanza `TimeFormatError`."""

    s = re.sub(r"\s", "", normalize_digits(str(text)))
    m = _TIME_RE.search(s)
    if not m:
        raise TimeFormatError(f"no HH:MM time found in {text!r}")
    # Los modelos a veces devuelven minutos u horas fuera de rango; se recortan.
    hh = min(23, max(0, int(m.group(1))))
    mm = min(59, max(0, int(m.group(2))))
    return f"{hh:02d}:{mm:02d}"


def normalize_time(text: str | None) -> str | None:
    if not text:
        return None
    try:
        return parse_time(text)
    except TimeFormatError:
        return None


def _find_airport_code(cleaned: str) -> str | None:
    if _THREE_LETTERS_RE.match(cleaned):
        return cleaned
    m = _PAREN_CODE_RE.search(cleaned)
    if m:
        return m.group(1)
    m = _TOKEN_CODE_RE.search(cleaned)
    if m:
        return m.group(0)
    return None


def parse_airport_code(text: str) -> str:
    """Versión estricta: lanza `AirportCodeUnresolved` si no hay código."""

    code = _find_airport_code((text or "").strip().upper())
    if code is None:
        raise AirportCodeUnresolved(f"no 3-letter airport code in {text!r}")
    return code


def resolve_airport_code(text: str | None) -> str:
    """Texto libre -> código IATA; si no lo encuentra, devuelve el texto limpio."""

    cleaned = (text or "").strip().upper()
    return _find_airport_code(cleaned) or cleaned


def classify_disruption(
    explicit: str | None,
    *,
    new_flight_number: str | None,
    new_time: str | None,
) -> str:
    """Tipo explícito si es válido; si no, se infiere de los campos nuevos."""

    candidate = (explicit or "").strip().lower()
    if candidate in DisruptionType.values():
        return candidate
    if new_flight_number and new_time:
        return DisruptionType.NUMBER_TIME_DELAY.value
    if new_flight_number:
        return DisruptionType.NUMBER_CHANGE.value
    if new_time:
        return DisruptionType.DELAY.value
    return ""

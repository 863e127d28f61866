"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O.
- Los invariantes del registro (fecha ISO, hora HH:MM, tipo cerrado) se
  comprueban al construirlo, no en cada consumidor.

Nota:
- Estos modelos describen *qué* es la información, no *cómo* se obtiene.
"""

from __future__ import annotations

import datetime as _dt
import re
from enum import Enum

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

from core.domain.language import Language

_TIME_RE = re.compile(r"^(?:[01]\d|2[0-3]):[0-5]\d$")


class DisruptionType(str, Enum):
    """Tipos de incidencia que admite el sistema de reservas."""

    DELAY = "delay"
    ADVANCE = "advance"
    CANCEL = "cancel"
    NUMBER_CHANGE = "number_change"
    NUMBER_TIME_DELAY = "number_time_delay"
    NUMBER_TIME_ADVANCE = "number_time_advance"

    @classmethod
    def values(cls) -> tuple[str, ...]:
        return tuple(member.value for member in cls)


class ParseMode(str, Enum):
    """Modo de ejecución del pipeline."""

    EXTRACT = "extract"
    TRANSLATE = "translate"


class DisruptionRecord(BaseModel):
    """Registro estructurado de una incidencia de vuelo.

    Por qué inmutable:
    - Se ensambla una sola vez por invocación y pertenece al llamador.
    - Los alias camelCase son el contrato JSON que consume el sistema de reservas.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    airline: str = Field(
        default="",
        description="Nombre de la aerolínea (una sola palabra, no código).",
    )
    flight_number: str = Field(
        default="",
        alias="flightNumber",
        description="Número de vuelo afectado.",
    )
    date: str | None = Field(
        default=None,
        description="Fecha gregoriana ISO (YYYY-MM-DD) ya resuelta desde Jalali si aplica.",
    )
    origin: str = Field(
        default="",
        description="Código IATA de origen (best effort).",
    )
    destination: str = Field(
        default="",
        description="Código IATA de destino (best effort).",
    )
    disruption_type: str = Field(
        default="",
        alias="type",
        description="Miembro de `DisruptionType` o cadena vacía si no se pudo inferir.",
    )
    old_time: str | None = Field(
        default=None,
        alias="oldTime",
        description="Hora original HH:MM (24h).",
    )
    new_time: str | None = Field(
        default=None,
        alias="newTime",
        description="Hora nueva HH:MM (24h).",
    )
    new_flight_number: str = Field(
        default="",
        alias="newFlightNumber",
        description="Nuevo número de vuelo (cambio de número).",
    )
    new_airline: str = Field(
        default="",
        alias="newAirline",
        description="Nueva aerolínea, si la incidencia la cambia.",
    )
    translated_text: str | None = Field(
        default=None,
        alias="translatedText",
        description="Traducción del aviso original (solo si se solicitó).",
    )

    @field_validator("date")
    @classmethod
    def _check_iso_date(cls, value: str | None) -> str | None:
        if value is None:
            return value
        try:
            parsed = _dt.date.fromisoformat(value)
        except ValueError as exc:
            raise ValueError(f"date must be ISO YYYY-MM-DD, got {value!r}") from exc
        if parsed.isoformat() != value:
            raise ValueError(f"date must be ISO YYYY-MM-DD, got {value!r}")
        return value

    @field_validator("old_time", "new_time")
    @classmethod
    def _check_time(cls, value: str | None) -> str | None:
        if value is not None and not _TIME_RE.match(value):
            raise ValueError(f"time must be zero-padded HH:MM, got {value!r}")
        return value

    @field_validator("disruption_type")
    @classmethod
    def _check_type(cls, value: str) -> str:
        if value and value not in DisruptionType.values():
            raise ValueError(f"unknown disruption type {value!r}")
        return value

    def to_payload(self) -> dict[str, object]:
        """Payload camelCase; los campos opcionales ausentes se omiten."""

        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ParseRequest(BaseModel):
    """Entrada del pipeline (validada en el borde).

    Por qué la API key viaja aquí:
    - El pipeline no consulta variables de entorno; quien lo invoca decide
      de dónde sale la clave (flag, .env de usuario, etc.).
    """

    model_config = ConfigDict(extra="forbid")

    text: str = Field(
        ...,
        description="Aviso libre (árabe/persa/inglés).",
    )
    api_key: str = Field(
        ...,
        description="API key del proveedor de completions.",
    )
    model: str | None = Field(
        default=None,
        description="Modelo preferido; se prueba antes que los de fallback.",
    )
    mode: ParseMode = Field(
        default=ParseMode.EXTRACT,
        description="`extract` (registro) o `translate` (solo traducción).",
    )
    include_translation: bool = Field(
        default=False,
        description="En modo extract, lanza además la petición de traducción.",
    )
    target_language: Language = Field(
        default=Language.ARABIC,
        description="Idioma destino de la traducción.",
    )

    @field_validator("text", "api_key")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("model")
    @classmethod
    def _blank_model_is_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

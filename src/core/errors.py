"""Taxonomía de errores del Core.

Por qué un módulo propio:
- Los adaptadores (HTTP/IA) y los normalizadores lanzan errores del dominio,
  no excepciones de librerías; la CLI solo necesita conocer esta jerarquía.
- Separa fallos "duros" (abortan el pipeline) de fallos "blandos" (el campo
  se omite y se registra un warning).
"""

from __future__ import annotations


class DisruptionParserError(Exception):
    """Base de todos los errores propios del proyecto."""


# --- Fallos duros -----------------------------------------------------------


class InputValidationError(DisruptionParserError):
    """Petición mal formada; se lanza antes de cualquier llamada de red."""

    def __init__(self, message: str, *, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [])


class CompletionServiceExhausted(DisruptionParserError):
    """Todos los candidatos (modelo, versión) fallaron.

    Conserva el último status HTTP observado (puede ser `None` si el último
    fallo fue de red) y el cuerpo de la respuesta.
    """

    def __init__(
        self,
        *,
        status_code: int | None,
        body: str,
        attempts: int,
    ) -> None:
        self.status_code = status_code
        self.body = body
        self.attempts = attempts
        detail = body.strip() or f"Completion request failed with status {status_code}"
        super().__init__(detail)


class CompletionTimeout(DisruptionParserError):
    """El barrido completo de candidatos superó el timeout global."""


# --- Fallos blandos ---------------------------------------------------------


class JsonExtractionFailure(DisruptionParserError):
    """La respuesta del modelo no contiene un objeto JSON parseable."""


class CalendarRangeError(DisruptionParserError, ValueError):
    """Año fuera del rango soportado por la tabla de breakpoints."""


class InvalidCalendarDate(DisruptionParserError, ValueError):
    """Combinación (año, mes, día) inexistente en su calendario."""


class TimeFormatError(DisruptionParserError, ValueError):
    """Texto de hora sin patrón HH:MM reconocible."""


class AirportCodeUnresolved(DisruptionParserError, ValueError):
    """No se encontró un código IATA de 3 letras en el texto."""

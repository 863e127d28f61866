"""Contrato del servicio de completions.

Por qué Protocol:
- El pipeline depende de esta abstracción, no del cliente HTTP de Gemini.
- Permite sustituir el proveedor por un fake en tests sin herencia rígida.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class CompletionService(Protocol):
    """Contrato mínimo para obtener un texto de un modelo generativo.

    Reglas de diseño:
    - `complete` es asíncrono porque típicamente hará I/O (HTTP).
    - Devuelve el texto del primer candidato (`""` si viene vacío).
    - Si ningún (modelo, versión) responde, lanza `CompletionServiceExhausted`.
    """

    async def complete(
        self,
        prompt: str,
        *,
        api_key: str,
        preferred_model: str | None = None,
    ) -> str:
        ...

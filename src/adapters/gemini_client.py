"""Adaptador de completions (Gemini `generateContent` vía httpx).

Responsabilidad:
- Construir la lista ordenada de candidatos (modelo, versión de API).
- Recorrerla de forma estrictamente secuencial hasta el primer éxito.
- Si se agota, lanzar `CompletionServiceExhausted` con el último status/body.

Clasificación de fallos:
- 404 o cuerpo tipo "not found / unsupported": candidato agotado, se avanza.
- Cualquier otro fallo (5xx, 401, red...): se guarda como último error y
  también se avanza. No hay fast-fail: un fallo intermitente en un modelo no
  debe impedir probar el siguiente.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, NamedTuple, Sequence
from urllib.parse import quote

import httpx

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.errors import CompletionServiceExhausted
from core.interfaces.completion import CompletionService

logger = logging.getLogger(__name__)

_NOT_FOUND_RE = re.compile(r"NOT_FOUND|not found|unsupported", re.IGNORECASE)
_LATEST_SUFFIX = "-latest"


class CompletionCandidate(NamedTuple):
    model: str
    api_version: str


@dataclass
class CompletionAttempt:
    """Resultado transitorio de un intento; se descarta al terminar el barrido."""

    candidate: CompletionCandidate
    success: bool
    text: str | None = None
    status_code: int | None = None
    body: str = ""
    candidate_exhausted: bool = False


class SweepState(str, Enum):
    TRYING = "trying"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


@dataclass
class CompletionSweep:
    """Máquina de estados sobre la lista de candidatos.

    `trying` -> `succeeded` con el primer intento exitoso;
    `trying` -> `exhausted` cuando no quedan candidatos.
    """

    candidates: Sequence[CompletionCandidate]
    attempts: list[CompletionAttempt] = field(default_factory=list)
    state: SweepState = SweepState.TRYING
    text: str | None = None

    def __post_init__(self) -> None:
        if not self.candidates:
            self.state = SweepState.EXHAUSTED

    @property
    def current(self) -> CompletionCandidate:
        if self.state is not SweepState.TRYING:
            raise RuntimeError(f"sweep is {self.state.value}, no current candidate")
        return self.candidates[len(self.attempts)]

    @property
    def last_failure(self) -> CompletionAttempt | None:
        for attempt in reversed(self.attempts):
            if not attempt.success:
                return attempt
        return None

    def record(self, attempt: CompletionAttempt) -> SweepState:
        if self.state is not SweepState.TRYING:
            raise RuntimeError(f"cannot record an attempt on a {self.state.value} sweep")
        self.attempts.append(attempt)
        if attempt.success:
            self.text = attempt.text or ""
            self.state = SweepState.SUCCEEDED
        elif len(self.attempts) >= len(self.candidates):
            self.state = SweepState.EXHAUSTED
        return self.state


def build_candidates(
    preferred_model: str | None,
    default_models: Iterable[str],
    api_versions: Iterable[str],
) -> list[CompletionCandidate]:
    """Modelo preferido (crudo y `-latest`), luego los de fallback; x versiones.

    Los duplicados se descartan conservando la primera aparición.
    """

    models: list[str] = []
    preferred = (preferred_model or "").strip()
    if preferred:
        models.append(preferred)
        if not preferred.endswith(_LATEST_SUFFIX):
            models.append(f"{preferred}{_LATEST_SUFFIX}")
    models.extend(m.strip() for m in default_models if m and m.strip())

    versions = [v.strip() for v in api_versions if v and v.strip()]

    out: list[CompletionCandidate] = []
    seen: set[CompletionCandidate] = set()
    for model in models:
        for version in versions:
            candidate = CompletionCandidate(model=model, api_version=version)
            if candidate in seen:
                continue
            seen.add(candidate)
            out.append(candidate)
    return out


def _first_candidate_text(data: Any) -> str:
    """`candidates[0].content.parts[0].text` o `""` si falta algo."""

    if not isinstance(data, dict):
        return ""
    candidates = data.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return ""
    content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
        return ""
    text = parts[0].get("text")
    return text if isinstance(text, str) else ""


def looks_like_not_found(status_code: int | None, body: str) -> bool:
    return status_code == 404 or bool(_NOT_FOUND_RE.search(body or ""))


class GeminiCompletionService(CompletionService):
    """Cliente de `generateContent` con fallback secuencial de modelo/versión."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._transport = transport

    def candidates_for(self, preferred_model: str | None) -> list[CompletionCandidate]:
        return build_candidates(
            preferred_model,
            self._settings.ai_fallback_models,
            self._settings.ai_api_versions,
        )

    def _payload(self, prompt: str) -> dict[str, Any]:
        return {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": self._settings.ai_temperature},
        }

    def _url(self, candidate: CompletionCandidate) -> str:
        base = self._settings.ai_base_url.rstrip("/")
        model = quote(candidate.model, safe="")
        return f"{base}/{candidate.api_version}/models/{model}:generateContent"

    async def _attempt(
        self,
        client: httpx.AsyncClient,
        candidate: CompletionCandidate,
        payload: dict[str, Any],
        api_key: str,
    ) -> CompletionAttempt:
        try:
            response = await client.post(self._url(candidate), params={"key": api_key}, json=payload)
        except httpx.HTTPError as exc:
            return CompletionAttempt(candidate=candidate, success=False, body=str(exc))

        if response.is_success:
            try:
                data = response.json()
            except ValueError:
                return CompletionAttempt(
                    candidate=candidate,
                    success=False,
                    status_code=response.status_code,
                    body=response.text,
                )
            return CompletionAttempt(
                candidate=candidate,
                success=True,
                text=_first_candidate_text(data),
                status_code=response.status_code,
            )

        body = response.text
        return CompletionAttempt(
            candidate=candidate,
            success=False,
            status_code=response.status_code,
            body=body,
            candidate_exhausted=looks_like_not_found(response.status_code, body),
        )

    async def complete(
        self,
        prompt: str,
        *,
        api_key: str,
        preferred_model: str | None = None,
    ) -> str:
        sweep = CompletionSweep(self.candidates_for(preferred_model))
        payload = self._payload(prompt)

        async with build_async_client(self._settings, transport=self._transport) as client:
            while sweep.state is SweepState.TRYING:
                candidate = sweep.current
                attempt = await self._attempt(client, candidate, payload, api_key)
                sweep.record(attempt)
                if attempt.success:
                    logger.debug("completion ok: %s/%s", candidate.api_version, candidate.model)
                elif attempt.candidate_exhausted:
                    logger.debug(
                        "candidate unavailable (%s): %s/%s",
                        attempt.status_code,
                        candidate.api_version,
                        candidate.model,
                    )
                else:
                    logger.warning(
                        "completion attempt failed (%s) on %s/%s: %s",
                        attempt.status_code if attempt.status_code is not None else "network",
                        candidate.api_version,
                        candidate.model,
                        attempt.body[:200],
                    )

        if sweep.state is SweepState.SUCCEEDED:
            return sweep.text or ""

        last = sweep.last_failure
        raise CompletionServiceExhausted(
            status_code=last.status_code if last else None,
            body=last.body if last else "",
            attempts=len(sweep.attempts),
        )

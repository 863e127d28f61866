"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (HTTP/IA) lean config de forma consistente.

Nota: la API key se resuelve en el borde (CLI) y se pasa explícitamente en
cada `ParseRequest`; el pipeline nunca lee el entorno.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.domain.language import Language

DEFAULT_FALLBACK_MODELS: tuple[str, ...] = (
    "gemini-2.0-flash",
    "gemini-2.0-flash-latest",
    "gemini-1.5-flash-latest",
    "gemini-1.5-flash",
)
DEFAULT_API_VERSIONS: tuple[str, ...] = ("v1beta", "v1")


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "disruption-parser"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "disruption-parser"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "disruption-parser"
    return Path.home() / ".config" / "disruption-parser"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str | None], *, env_path: Path | None = None) -> Path:
    """Escribe/actualiza variables en el .env global del usuario."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# disruption-parser user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="DISRUPTION_PARSER_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    http_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout por request HTTP (segundos).",
    )
    completion_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Timeout global para el barrido completo de candidatos (segundos).",
    )
    user_agent: str = Field(
        default="disruption-parser/0.1 (+https://local)",
        min_length=1,
        description="User-Agent para peticiones al proveedor IA.",
    )

    ai_api_key: str | None = Field(
        default=None,
        description="API key para Gemini (Google Generative Language API).",
    )
    ai_base_url: str = Field(
        default="https://generativelanguage.googleapis.com",
        min_length=8,
        description="Base URL del endpoint generateContent.",
    )
    ai_model: str | None = Field(
        default=None,
        description="Modelo preferido; se intenta antes que los de fallback.",
    )
    ai_fallback_models: list[str] = Field(
        default_factory=lambda: list(DEFAULT_FALLBACK_MODELS),
        min_length=1,
        description="Modelos de fallback, en orden.",
    )
    ai_api_versions: list[str] = Field(
        default_factory=lambda: list(DEFAULT_API_VERSIONS),
        min_length=1,
        description="Versiones de API a probar por modelo, en orden.",
    )
    ai_temperature: float = Field(
        default=0.0,
        ge=0.0,
        le=2.0,
        description="Temperatura de muestreo (0 = determinista).",
    )

    default_language: Language = Field(
        default=Language.ARABIC,
        description="Idioma destino por defecto de la traducción (ar/fa/en).",
    )

"""Shared fixtures: isolated settings and a scripted completion service."""

from __future__ import annotations

import asyncio
from typing import Callable

import pytest

from core.config import AppSettings


def make_settings(**overrides) -> AppSettings:
    """AppSettings without reading any .env file."""

    overrides.setdefault("_env_file", None)
    return AppSettings(**overrides)


class FakeCompletionService:
    """Scripted `CompletionService`: answers by prompt kind (extraction/translation)."""

    def __init__(
        self,
        *,
        extraction: str | Exception = "{}",
        translation: str | Exception = "",
        delay: float = 0.0,
        on_call: Callable[[str], object] | None = None,
    ) -> None:
        self.extraction = extraction
        self.translation = translation
        self.delay = delay
        self.on_call = on_call
        self.calls: list[tuple[str, str, str | None]] = []

    async def complete(
        self,
        prompt: str,
        *,
        api_key: str,
        preferred_model: str | None = None,
    ) -> str:
        self.calls.append((prompt, api_key, preferred_model))
        if self.on_call is not None:
            maybe = self.on_call(prompt)
            if asyncio.iscoroutine(maybe):
                await maybe
        if self.delay:
            await asyncio.sleep(self.delay)
        answer = self.extraction if "Text to extract" in prompt else self.translation
        if isinstance(answer, Exception):
            raise answer
        return answer


@pytest.fixture
def settings() -> AppSettings:
    return make_settings()

"""Language utilities for the disruption parser.

This module centralizes the translation targets supported across the
application. Keeping it in the domain layer allows both CLI and service
layers to share a single source of truth without creating circular
imports with adapters.
"""

from __future__ import annotations

from enum import Enum


class Language(str, Enum):
    """Supported target languages for the translation companion request."""

    ARABIC = "ar"
    PERSIAN = "fa"
    ENGLISH = "en"

    def label(self) -> str:
        """Human readable label for prompts and logging."""

        return {
            Language.ARABIC: "Arabic",
            Language.PERSIAN: "Persian",
            Language.ENGLISH: "English",
        }[self]

"""Message catalog for narration, log entries and action responses."""

from .translations import t, load_translations, normalize_language, DEFAULT_LANGUAGE

__all__ = ["t", "load_translations", "normalize_language", "DEFAULT_LANGUAGE"]

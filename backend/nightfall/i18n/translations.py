"""i18n translation management for backend."""
import json
import logging
from pathlib import Path
from typing import Dict, Any

logger = logging.getLogger(__name__)

# Translation file directory
I18N_DIR = Path(__file__).parent

# Translation cache
_translations: Dict[str, Dict[str, Any]] = {}

DEFAULT_LANGUAGE = "en"
SUPPORTED_LANGUAGES = {"en"}


def normalize_language(language: str) -> str:
    """
    Normalize and validate language code.

    Args:
        language: Language code to validate

    Returns:
        Validated language code, defaults to "en" for invalid input
    """
    if not isinstance(language, str):
        return DEFAULT_LANGUAGE

    language = language.strip().lower()

    # Only allow alphanumeric to prevent path traversal
    if not language.isalnum():
        return DEFAULT_LANGUAGE

    return language if language in SUPPORTED_LANGUAGES else DEFAULT_LANGUAGE


def load_translations(language: str) -> Dict[str, Any]:
    """Load translation file for specified language."""
    language = normalize_language(language)

    if language not in _translations:
        file_path = I18N_DIR / f"{language}.json"
        if not file_path.exists():
            logger.warning(f"Translation file missing: {file_path}")
            file_path = I18N_DIR / f"{DEFAULT_LANGUAGE}.json"
        with open(file_path, 'r', encoding='utf-8') as f:
            _translations[language] = json.load(f)
    return _translations[language]


def t(key: str, language: str = DEFAULT_LANGUAGE, **kwargs) -> str:
    """
    Translate a key to specified language.

    Args:
        key: Translation key in dot notation (e.g., "night.wolves_wake")
        language: Target language code
        **kwargs: Interpolation variables

    Returns:
        Translated string, or the key itself when it is unknown
    """
    translations = load_translations(language)

    # Navigate nested dict using dot notation
    value: Any = translations
    for k in key.split('.'):
        if isinstance(value, dict):
            value = value.get(k, key)
        else:
            return key

    if isinstance(value, str) and kwargs:
        try:
            return value.format(**kwargs)
        except (KeyError, ValueError):
            return value
    return value if isinstance(value, str) else key

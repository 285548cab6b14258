"""Internationalization service for translations."""

import json
from functools import lru_cache
from pathlib import Path

from markupsafe import Markup, escape

from memberhub.config import settings

CATALOG_FILE = "messages.json"
FALLBACK_LANGUAGE = "en"


class I18nService:
    """Service for handling translations and internationalization."""

    def __init__(self, translations_dir: Path | None = None):
        self.translations_dir = translations_dir or settings.languages_dir
        self.translations: dict[str, dict] = {}
        self._load_translations()

    def _load_translations(self) -> None:
        """Load all translation files from the translations directory."""
        for lang in settings.supported_languages_list:
            lang_file = self.translations_dir / lang / CATALOG_FILE
            if lang_file.exists():
                with open(lang_file, encoding="utf-8") as f:
                    self.translations[lang] = json.load(f)
            else:
                # Create empty translations for missing languages
                self.translations[lang] = {}

    def has_language(self, lang: str) -> bool:
        """Check whether a message catalog exists on disk for the language."""
        return (self.translations_dir / lang / CATALOG_FILE).is_file()

    def t(self, key: str, lang: str = FALLBACK_LANGUAGE, **kwargs) -> str:
        """Translate a dot-notation key.

        Args:
            key: Dot-notation key (e.g., 'common.save', 'preferences.saved')
            lang: Language code (e.g., 'en', 'de')
            **kwargs: Variables to interpolate (e.g., name='Acme')

        Returns:
            Translated string, or the key if translation not found
        """
        value = self._get_translation(key, lang)
        if value is None and lang != FALLBACK_LANGUAGE:
            value = self._get_translation(key, FALLBACK_LANGUAGE)
        if value is None:
            return key

        if kwargs:
            for param_key, param_value in kwargs.items():
                value = value.replace(f"{{{{{param_key}}}}}", str(param_value))

        return value

    def t_markup(self, key: str, lang: str = FALLBACK_LANGUAGE, **kwargs) -> Markup:
        """Translate a key for html output; interpolated values are escaped."""
        return Markup(self.t(key, lang, **{name: escape(value) for name, value in kwargs.items()}))

    def _get_translation(self, key: str, lang: str) -> str | None:
        """Get a translation value by dot-notation key."""
        keys = key.split(".")
        value = self.translations.get(lang, {})

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return None
            if value is None:
                return None

        return value if isinstance(value, str) else None


@lru_cache
def get_i18n_service() -> I18nService:
    """Get cached i18n service instance."""
    return I18nService()

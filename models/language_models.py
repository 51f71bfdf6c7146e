"""Supported languages and lookup helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

__all__: list[str] = [
    "DEFAULT_SOURCE_LANGUAGE",
    "DEFAULT_TARGET_LANGUAGE",
    "SUPPORTED_LANGUAGES",
    "Language",
    "get_language_by_label",
    "get_language_by_value",
    "language_label",
]


@dataclass(frozen=True)
class Language:
    """A selectable language.

    Attributes:
        value (str): Language code, e.g. 'en'.
        label (str): English display label, e.g. 'English'.
        native_label (str): Label in the language itself, e.g. 'Español'.
    """

    value: str
    label: str
    native_label: str = ""


SUPPORTED_LANGUAGES: Final[tuple[Language, ...]] = (
    Language("en", "English", "English"),
    Language("es", "Spanish", "Español"),
    Language("fr", "French", "Français"),
    Language("de", "German", "Deutsch"),
    Language("it", "Italian", "Italiano"),
    Language("pt", "Portuguese", "Português"),
    Language("ja", "Japanese", "日本語"),
    Language("ko", "Korean", "한국어"),
    Language("zh", "Chinese", "中文"),
    Language("ru", "Russian", "Русский"),
    Language("hi", "Hindi", "हिन्दी"),
    Language("ar", "Arabic", "العربية"),
    Language("bn", "Bengali", "বাংলা"),
    Language("nl", "Dutch", "Nederlands"),
    Language("sv", "Swedish", "Svenska"),
    Language("tr", "Turkish", "Türkçe"),
    Language("vi", "Vietnamese", "Tiếng Việt"),
    Language("pl", "Polish", "Polski"),
    Language("id", "Indonesian", "Bahasa Indonesia"),
    Language("th", "Thai", "ไทย"),
)

DEFAULT_SOURCE_LANGUAGE: Final[str] = "en"
DEFAULT_TARGET_LANGUAGE: Final[str] = "es"


def get_language_by_value(value: str) -> Language | None:
    """Find a language by code, falling back to the base code for regional tags ('zh-CN' -> 'zh')."""
    if not value:
        return None
    base_value: str = value.split("-")[0].lower()
    for lang in SUPPORTED_LANGUAGES:
        if lang.value in (value, base_value):
            return lang
    return None


def language_label(value: str) -> str:
    """Return the display label for a code, or the code itself when it is unknown."""
    lang: Language | None = get_language_by_value(value)
    return lang.label if lang is not None else value


def get_language_by_label(label: str) -> Language | None:
    """Find a language by its English display label (case-insensitive)."""
    if not label:
        return None
    needle: str = label.strip().lower()
    for lang in SUPPORTED_LANGUAGES:
        if lang.label.lower() == needle:
            return lang
    return None

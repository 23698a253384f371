"""
Translation lookup backed by the JSON catalogs in ``freightdesk/locales``.

Keys are dotted paths into the nested catalog (``auth.invalidCredentials``).
Missing keys fall back to the default language, then to the key itself.
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

from freightdesk.core.config import settings

logger = logging.getLogger(__name__)

_LOCALES_DIR = Path(__file__).resolve().parent.parent / "locales"


@lru_cache(maxsize=None)
def _catalog(lang: str) -> dict[str, Any]:
    path = _LOCALES_DIR / f"{lang}.json"
    if not path.is_file():
        logger.warning("No translation catalog for language %r", lang)
        return {}
    with path.open(encoding="utf-8") as fh:
        return json.load(fh)


def _lookup(catalog: dict[str, Any], key: str) -> str | None:
    value: Any = catalog
    for part in key.split("."):
        if not isinstance(value, dict) or part not in value:
            return None
        value = value[part]
    return value if isinstance(value, str) else None


def translate(key: str, lang: str | None = None, params: dict[str, Any] | None = None) -> str:
    """Resolve *key* in *lang* and interpolate ``{param}`` placeholders."""
    lang = lang if lang in settings.SUPPORTED_LANGUAGES else settings.DEFAULT_LANGUAGE
    text = _lookup(_catalog(lang), key)
    if text is None and lang != settings.DEFAULT_LANGUAGE:
        text = _lookup(_catalog(settings.DEFAULT_LANGUAGE), key)
    if text is None:
        return key
    for name, value in (params or {}).items():
        text = text.replace(f"{{{name}}}", str(value))
    return text


def resolve_language(accept_language: str | None) -> str:
    """Pick the primary tag of an ``Accept-Language`` header if we support it.

    ``"el-GR,el;q=0.9,en;q=0.8"`` -> ``"el"``; anything unknown -> default.
    """
    if accept_language:
        primary = accept_language.split(",")[0].split(";")[0].split("-")[0].strip().lower()
        if primary in settings.SUPPORTED_LANGUAGES:
            return primary
    return settings.DEFAULT_LANGUAGE

"""Localised HTTP status phrases and validation messages.

Tables are loaded once from the YAML resources shipped next to this module
(one file per locale, named after the locale tag) into a mapping of
mappings: locale -> status code -> phrase.

Lookup resolves a locale through the chain ``exact tag -> language -> default
locale``, so ``de_AT`` falls back to ``de`` and ``zh-tw`` falls back to the
default table. A status code missing from every table in the chain yields
``None``.
"""

import logging
from importlib import resources
from typing import Dict, List, Optional

import yaml

from ..config import get_settings

logger = logging.getLogger(__name__)

FALLBACK_LOCALE = "en"


def _load_tables() -> Dict[str, Dict[str, dict]]:
    """Load every locale table shipped with the package."""
    tables: Dict[str, Dict[str, dict]] = {}
    for resource in resources.files(__name__).iterdir():
        if not resource.name.endswith(".yaml"):
            continue
        locale = normalize_locale(resource.name[: -len(".yaml")])
        try:
            data = yaml.safe_load(resource.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            logger.warning(f"Failed to parse locale table {resource.name}: {e}")
            continue
        tables[locale] = {
            "status": {int(code): str(phrase) for code, phrase in (data.get("status") or {}).items()},
            "messages": dict(data.get("messages") or {}),
        }
        logger.debug(
            f"Loaded locale table '{locale}'",
            extra={"locale": locale, "phrases": len(tables[locale]["status"])}
        )
    if FALLBACK_LOCALE not in tables:
        raise RuntimeError(f"Missing locale table for fallback locale '{FALLBACK_LOCALE}'")
    return tables


def normalize_locale(locale: str) -> str:
    """Normalise a locale tag: ``de_DE`` and ``DE-de`` both become ``de-de``."""
    return locale.strip().replace("_", "-").lower()


def _locale_chain(locale: Optional[str]) -> List[str]:
    default = normalize_locale(get_settings().default_locale)
    chain = []
    if locale:
        tag = normalize_locale(locale)
        chain.append(tag)
        language = tag.split("-", 1)[0]
        if language != tag:
            chain.append(language)
    for candidate in (default, FALLBACK_LOCALE):
        if candidate not in chain:
            chain.append(candidate)
    return [candidate for candidate in chain if candidate in _TABLES]


def available_locales() -> List[str]:
    """Return the locale tags that have a table, sorted."""
    return sorted(_TABLES)


def find_status_phrase(status_code: int, locale: Optional[str] = None) -> Optional[str]:
    """Find the HTTP status phrase for a status code.

    Args:
        status_code: The HTTP status code
        locale: Locale tag such as ``de`` or ``de_DE``; defaults to the
            configured default locale

    Returns:
        The localised phrase, or None if no table in the chain knows the code
    """
    chain = _locale_chain(locale)
    for candidate in chain:
        phrase = _TABLES[candidate]["status"].get(status_code)
        if phrase is not None:
            if locale and normalize_locale(locale) != candidate:
                logger.debug(
                    f"Status phrase for {status_code} resolved via fallback locale '{candidate}'",
                    extra={"status_code": status_code, "requested_locale": locale}
                )
            return phrase

    logger.debug(
        f"No status phrase for {status_code}",
        extra={"status_code": status_code, "requested_locale": locale}
    )
    return None


def get_message(key: str, locale: Optional[str] = None) -> str:
    """Get a localised message, falling back to the key itself when unknown."""
    for candidate in _locale_chain(locale):
        message = _TABLES[candidate]["messages"].get(key)
        if message is not None:
            return message
    return key


_TABLES = _load_tables()


__all__ = [
    "available_locales",
    "find_status_phrase",
    "get_message",
    "normalize_locale",
]

"""Translation catalogues shipped with the package."""

import json
from functools import lru_cache
from importlib import resources
from typing import Any

DEFAULT_LOCALE = "en"
SUPPORTED_LOCALES = ("en", "de")


@lru_cache(maxsize=len(SUPPORTED_LOCALES))
def _load_catalogue(locale: str) -> dict[str, Any]:
    source = resources.files("dreamland").joinpath("locales").joinpath(f"{locale}.json")
    return json.loads(source.read_text(encoding="utf-8"))


def is_supported(locale: str | None) -> bool:
    return locale in SUPPORTED_LOCALES


def get_translations(locale: str | None) -> dict[str, Any]:
    """Full catalogue for ``locale``, or the default one if unsupported."""
    if not is_supported(locale):
        locale = DEFAULT_LOCALE
    return _load_catalogue(locale)


def _lookup(catalogue: dict[str, Any], key: str) -> str | None:
    node: Any = catalogue
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node if isinstance(node, str) else None


class _KeepMissing(dict):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def translate(locale: str | None, key: str, **params: Any) -> str:
    """Translate a dotted key such as ``email.payment_link.subject``.

    Falls back to the default catalogue, then to the key itself. ``{name}``
    placeholders are filled from ``params``; unknown placeholders are left
    as they are.
    """
    text = _lookup(get_translations(locale), key)
    if text is None and locale != DEFAULT_LOCALE:
        text = _lookup(_load_catalogue(DEFAULT_LOCALE), key)
    if text is None:
        return key
    if params:
        text = text.format_map(_KeepMissing(params))
    return text


def negotiate_locale(accept_language: str | None) -> str:
    """Pick the best supported locale from an Accept-Language header."""
    if not accept_language:
        return DEFAULT_LOCALE

    candidates: list[tuple[float, int, str]] = []
    for position, item in enumerate(accept_language.split(",")):
        tag, _, params = item.strip().partition(";")
        quality = 1.0
        if params.strip().startswith("q="):
            try:
                quality = float(params.strip()[2:])
            except ValueError:
                quality = 0.0
        primary = tag.strip().lower().split("-")[0]
        if primary and quality > 0:
            candidates.append((-quality, position, primary))

    for _, _, primary in sorted(candidates):
        if is_supported(primary):
            return primary
    return DEFAULT_LOCALE

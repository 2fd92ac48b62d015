"""File-based message catalogs for bot replies."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


class I18nService:
    def __init__(self, *, locales_path: str | Path | None = None, default_locale: str = "en") -> None:
        self.locales_path = Path(locales_path or Path(__file__).with_name("locales"))
        self.default_locale = default_locale
        self._catalogs: dict[str, dict[str, str]] = {}

    def resolve_locale(self, language_code: str | None) -> str:
        """Map a Telegram language code such as ``ru-RU`` to a shipped catalog."""

        if not language_code:
            return self.default_locale
        base = language_code.replace("_", "-").split("-")[0].lower()
        return base if base in self.available_locales() else self.default_locale

    def available_locales(self) -> set[str]:
        if not self.locales_path.is_dir():
            return set()
        return {path.stem for path in self.locales_path.glob("*.json")}

    def gettext(self, key: str, *, locale: str | None = None, **kwargs: Any) -> str:
        loc = (locale or self.default_locale).lower()
        text = self._catalog(loc).get(key)
        if text is None and loc != self.default_locale:
            text = self._catalog(self.default_locale).get(key)
        if text is None:
            text = key
        return text.format(**kwargs) if kwargs else text

    def _catalog(self, locale: str) -> dict[str, str]:
        catalog = self._catalogs.get(locale)
        if catalog is None:
            file_path = self.locales_path / f"{locale}.json"
            catalog = {}
            if file_path.exists():
                with file_path.open("r", encoding="utf-8") as fp:
                    catalog = json.load(fp)
            self._catalogs[locale] = catalog
        return catalog


__all__ = ["I18nService"]

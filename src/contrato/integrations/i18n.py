"""String tables for display text."""

from pathlib import Path

import structlog
import yaml

logger = structlog.get_logger(__name__)


class Localizer:
    """
    Looks up display strings by key.

    Missing keys come back unchanged, so an incomplete table degrades to
    showing the key rather than failing.
    """

    def __init__(self, strings: dict[str, str] | None = None, language: str = "pt-BR") -> None:
        self.language = language
        self._strings: dict[str, str] = dict(strings or {})

    @classmethod
    def from_directory(cls, directory: Path, language: str) -> "Localizer":
        """
        Load the `<language>.yaml` string table from a directory.

        A missing table is logged and yields an empty localizer.

        Args:
            directory: Directory holding one YAML file per language
            language: Language code, e.g. "pt-BR"

        Returns:
            Localizer for that language
        """
        path = directory / f"{language}.yaml"
        if not path.exists():
            logger.warning("string_table_missing", language=language, path=str(path))
            return cls(language=language)

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        strings = {str(key): str(value) for key, value in data.items()}
        logger.info("string_table_loaded", language=language, total_strings=len(strings))
        return cls(strings, language=language)

    def localize(self, key: str) -> str:
        """Return the display string for a key, or the key itself."""
        return self._strings.get(key, key)

    def format(self, key: str, **values: object) -> str:
        """Localize a key and substitute `{name}` placeholders."""
        text = self.localize(key)
        for name, value in values.items():
            text = text.replace(f"{{{name}}}", str(value))
        return text

"""Tests for string table lookups."""

from contrato.config import PACKAGE_DATA_DIR
from contrato.integrations.i18n import Localizer


class TestLocalizer:
    """Key lookup and placeholder substitution."""

    def test_localize_known_key(self, localizer):
        assert localizer.localize("CONTRATO.ROLL.BUTTON.SAGRADO") == "Dado Sagrado"

    def test_missing_key_returns_key(self, localizer):
        assert localizer.localize("CONTRATO.NOPE") == "CONTRATO.NOPE"

    def test_format(self, localizer):
        assert localizer.format("CONTRATO.ROLL.DIALOG.TITLE", skill="Briga") == "Rolagem de Briga"

    def test_format_leaves_unknown_placeholders(self):
        localizer = Localizer({"K": "{a} and {b}"})

        assert localizer.format("K", a=1) == "1 and {b}"

    def test_english_table(self):
        localizer = Localizer.from_directory(PACKAGE_DATA_DIR / "lang", "en")

        assert localizer.language == "en"
        assert localizer.localize("CONTRATO.ROLL.BUTTON.UMBRAL") == "Umbral Die"

    def test_tables_share_keys(self):
        pt = Localizer.from_directory(PACKAGE_DATA_DIR / "lang", "pt-BR")
        en = Localizer.from_directory(PACKAGE_DATA_DIR / "lang", "en")

        assert set(pt._strings) == set(en._strings)

    def test_missing_table(self, tmp_path):
        localizer = Localizer.from_directory(tmp_path, "fr")

        assert localizer.language == "fr"
        assert localizer.localize("CONTRATO.ROLL.SKILL") == "CONTRATO.ROLL.SKILL"

"""
Tests for language negotiation and the message catalog.
"""

import pytest

from inmobi.services.i18n import (
    DEFAULT_LANGUAGE,
    MESSAGES,
    get_catalog,
    is_rtl,
    negotiate_language,
    normalize_language,
    parse_accept_language,
    translate,
)


class TestNormalizeLanguage:
    @pytest.mark.parametrize("code,expected", [
        ("en-GB", "en-GB"),
        ("es-mx", "es-MX"),
        ("fr_FR", "fr-FR"),
        ("de", "de-DE"),
        ("es-ES", "es-MX"),
        ("zh-TW", "zh-CN"),
        ("pt-BR", None),
        ("", None),
        (None, None),
    ])
    def test_normalize(self, code, expected):
        assert normalize_language(code) == expected


class TestNegotiation:
    def test_accept_language_ordering(self):
        assert parse_accept_language("fr;q=0.5, de-DE, *;q=0.1, en;q=0.8") == ["de-DE", "en", "fr"]

    def test_zero_quality_dropped(self):
        assert parse_accept_language("ja;q=0, fr") == ["fr"]

    def test_explicit_wins(self):
        assert negotiate_language("ja", "fr-FR", "de") == "ja-JP"

    def test_user_preference_before_header(self):
        assert negotiate_language(None, "fr-FR", "de") == "fr-FR"

    def test_header_skips_unsupported(self):
        assert negotiate_language(None, None, "pt-BR, ar;q=0.9") == "ar-SA"

    def test_default(self):
        assert negotiate_language("xx", None, None) == DEFAULT_LANGUAGE


class TestCatalog:
    def test_every_language_has_every_key(self):
        keys = set(MESSAGES[DEFAULT_LANGUAGE])
        for language, catalog in MESSAGES.items():
            assert set(catalog) == keys, language

    def test_translate_with_params(self):
        assert translate("email.new_message.greeting", "es-MX", name="Ana") == "Hola Ana,"

    def test_translate_falls_back(self):
        assert translate("role.agent", "xx-XX") == "Real Estate Agent"
        assert translate("missing.key", "fr-FR") == "missing.key"

    def test_rtl(self):
        assert is_rtl("ar-SA") is True
        assert is_rtl("en-GB") is False

    def test_catalog_is_complete(self):
        assert get_catalog("de-DE")["role.user"] == "Benutzer"

"""
Tests unitarios para el Canonicalizer (alias + title case).
"""
from __future__ import annotations

import pytest

from stocksync.application.services.canonicalizer import Canonicalizer
from stocksync.infrastructure.external.notion.table_mappings import MANUFACTURER_ALIASES


@pytest.fixture
def canonicalizer() -> Canonicalizer:
    return Canonicalizer(MANUFACTURER_ALIASES)


class TestCanonicalize:
    def test_alias_is_case_insensitive(self, canonicalizer: Canonicalizer) -> None:
        assert canonicalizer("APPLE INC") == "Apple"
        assert canonicalizer("apple pty ltd") == "Apple"

    def test_alias_matches_after_collapsing_spaces(self, canonicalizer: Canonicalizer) -> None:
        assert canonicalizer("  samsung    electronics ") == "Samsung"

    def test_title_case_keeps_rest_of_word(self, canonicalizer: Canonicalizer) -> None:
        """Solo la primera letra de cada palabra cambia: 'iPhone' -> 'IPhone', 'ASUS' queda igual."""
        assert canonicalizer("google pixel") == "Google Pixel"
        assert canonicalizer("ASUS rog") == "ASUS Rog"

    def test_alias_output_is_not_title_cased(self, canonicalizer: Canonicalizer) -> None:
        assert canonicalizer("oppo") == "OPPO"

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_empty_values(self, canonicalizer: Canonicalizer, raw) -> None:
        assert canonicalizer(raw) == ""

    def test_non_string_input(self, canonicalizer: Canonicalizer) -> None:
        assert canonicalizer(12) == "12"


@pytest.mark.parametrize(
    "raw",
    ["apple inc", "  motorola  edge ", "xIAOMI corp", "vivo", "ünïcode wörd", "a  b\tc", "OnePlus", "", "x"],
)
def test_canonicalize_is_idempotent(canonicalizer: Canonicalizer, raw: str) -> None:
    once = canonicalizer(raw)
    assert canonicalizer(once) == once

"""
Tests for OCR text normalization.
"""

import unicodedata
from buyer_portal.services.text_normalizer import normalize_text


def test_empty_and_whitespace_input_yield_no_lines():
    assert normalize_text("") == []
    assert normalize_text(None) == []
    assert normalize_text("   \n\t\n  ") == []


def test_lines_keep_original_casing_and_folded_copy():
    lines = normalize_text("FAKTURANUMMER 1234567890\nSumma (SEK) 100,00 (inkl. moms)")

    assert [line.text for line in lines] == [
        "FAKTURANUMMER 1234567890",
        "Summa (SEK) 100,00 (inkl. moms)",
    ]
    assert lines[0].folded == "fakturanummer 1234567890"
    assert lines[1].folded == "summa (sek) 100,00 (inkl. moms)"


def test_blank_lines_dropped_and_indexes_are_contiguous():
    lines = normalize_text("first\n\n\n  second  \r\nthird\rfourth")

    assert [line.text for line in lines] == ["first", "second", "third", "fourth"]
    assert [line.index for line in lines] == [0, 1, 2, 3]


def test_decomposed_diacritics_are_composed():
    """OCR output with a combining diaeresis still matches the marker"""
    decomposed = unicodedata.normalize("NFD", "Förfallodatum 2026-03-15")
    assert decomposed != "Förfallodatum 2026-03-15"

    lines = normalize_text(decomposed)

    assert "förfallodatum" in lines[0].folded


def test_multi_page_text_is_one_sequence():
    page_one = "Sida 1\nFakturanummer 1234567890"
    page_two = "Sida 2\nFörfallodatum 2026-03-15"

    lines = normalize_text(page_one + "\n" + page_two)

    assert len(lines) == 4
    assert lines[-1].text == "Förfallodatum 2026-03-15"

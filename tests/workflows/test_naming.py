"""Tests for final file name construction."""

from datetime import date, datetime, timezone

import pytest

from workflows import build_final_name, name_stem, sanitize_filename


class TestBuildFinalName:

    def test_date_prefix_and_original_extension(self):
        created = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)
        assert build_final_name("電気代_請求書", created, "scan_001.pdf") == "2024-03-01_電気代_請求書.pdf"

    def test_extension_is_lower_cased(self):
        assert build_final_name("領収書", date(2023, 12, 5), "IMG_0042.JPG") == "2023-12-05_領収書.jpg"

    def test_suggested_extension_is_not_doubled(self):
        assert build_final_name("保証書.pdf", date(2024, 1, 2), "a.pdf") == "2024-01-02_保証書.pdf"

    @pytest.mark.parametrize("suggestion", ["", "  ", "..."])
    def test_unusable_suggestion_raises(self, suggestion):
        assert name_stem(suggestion) == ""
        with pytest.raises(ValueError):
            build_final_name(suggestion, date(2024, 1, 2), "a.png")

    def test_missing_date_uses_today(self):
        name = build_final_name("メモ", None, "a.pdf")
        assert name.startswith(date.today().strftime("%Y-%m-%d") + "_")


class TestSanitizeFilename:

    def test_slashes_replaced(self):
        assert sanitize_filename("2024/03 請求書") == "2024-03 請求書"

    def test_control_characters_and_whitespace(self):
        assert sanitize_filename("電気代\n  請求書\t") == "電気代 請求書"

    def test_length_capped(self):
        assert len(sanitize_filename("あ" * 300)) == 100

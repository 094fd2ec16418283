"""Tests for workflow marker parsing and formatting."""

import pytest

from workflows import Marker, MarkerState, parse_marker, format_marker


class TestParseMarker:
    """Tests for parse_marker()."""

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_empty_is_unseen(self, raw):
        assert parse_marker(raw).state is MarkerState.UNSEEN

    def test_user_description_is_unseen(self):
        assert parse_marker("Scanned at the office").state is MarkerState.UNSEEN

    def test_skip(self):
        marker = parse_marker("SKIP::unsupported type text/plain")
        assert marker.state is MarkerState.SKIPPED
        assert marker.detail == "unsupported type text/plain"

    def test_pending_rename_keeps_exact_name(self):
        marker = parse_marker("PENDING_RENAME::2024-03-01_電気代_請求書.pdf")
        assert marker.state is MarkerState.AWAITING_APPROVAL
        assert marker.final_name == "2024-03-01_電気代_請求書.pdf"

    def test_manual_review(self):
        assert parse_marker("PROCESSED_MANUAL_REVIEW").state is MarkerState.MANUAL_REVIEW

    def test_rejected(self):
        assert parse_marker("REJECTED").state is MarkerState.REJECTED


class TestMarkerProperties:

    def test_only_unseen_is_unhandled(self):
        assert not Marker.unseen().is_handled
        for marker in (Marker.skipped("empty file"), Marker.awaiting_approval("x.pdf"),
                       Marker.manual_review(), Marker.rejected()):
            assert marker.is_handled

    def test_final_name_only_for_awaiting_approval(self):
        assert Marker.manual_review().final_name is None
        assert Marker.skipped("empty file").final_name is None

    @pytest.mark.parametrize("marker", [
        Marker.unseen(),
        Marker.skipped("empty file"),
        Marker.awaiting_approval("2024-01-31_保険証券.pdf"),
        Marker.manual_review(),
        Marker.rejected(),
    ])
    def test_round_trip(self, marker):
        assert parse_marker(format_marker(marker)) == marker

    def test_unseen_formats_to_empty(self):
        assert Marker.unseen().format() == ""

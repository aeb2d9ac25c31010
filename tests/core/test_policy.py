"""Tests for core/policy.py - edit lock and duplicate detection."""

from datetime import datetime, timezone

import pytest

from core.exceptions import PeriodLockedError
from core.periods import period_for_id
from core.policy import can_edit, duplicate_warning, ensure_editable, is_duplicate_deployment

TZ = "Europe/Berlin"
NOW = datetime(2026, 3, 20, 9, 0, tzinfo=timezone.utc)


class TestCanEdit:
    """Tests for can_edit()."""

    @pytest.mark.parametrize("period_id,expected", [
        ("2026-3-15", True),    # current
        ("2026-3-1", True),     # past
        ("2025-12-15", True),   # previous year
        ("2026-4-1", False),    # next period
        ("2027-1-1", False),
    ])
    def test_only_future_periods_are_locked(self, period_id, expected):
        period = period_for_id(period_id, NOW, TZ)
        assert can_edit(period, NOW, TZ) is expected

    def test_evaluated_live_against_clock(self):
        """A period generated as future unlocks once it starts."""
        period = period_for_id("2026-4-1", NOW, TZ)
        assert period.is_future

        later = datetime(2026, 4, 1, 8, 0, tzinfo=timezone.utc)
        assert can_edit(period, later, TZ)

    def test_unlocks_at_local_midnight(self):
        period = period_for_id("2026-4-1", NOW, TZ)

        # 23:59 Berlin on March 31 (CEST)
        assert not can_edit(period, datetime(2026, 3, 31, 21, 59, tzinfo=timezone.utc), TZ)
        # 00:00 Berlin on April 1
        assert can_edit(period, datetime(2026, 3, 31, 22, 0, tzinfo=timezone.utc), TZ)


class TestEnsureEditable:
    """Tests for ensure_editable()."""

    def test_raises_for_future_period(self):
        with pytest.raises(PeriodLockedError) as exc_info:
            ensure_editable(period_for_id("2026-4-15", NOW, TZ), NOW, TZ)

        assert exc_info.value.period_id == "2026-4-15"
        assert "locked" in str(exc_info.value)

    def test_passes_for_current_period(self):
        ensure_editable(period_for_id("2026-3-15", NOW, TZ), NOW, TZ)


class TestDuplicateDeployment:
    """Tests for is_duplicate_deployment()."""

    def test_matches_case_insensitively(self, make_invoice):
        known = [make_invoice("2026-3-1", deployments=("Billing API v2",))]
        assert is_duplicate_deployment("billing api V2", known)

    def test_ignores_surrounding_whitespace(self, make_invoice):
        known = [make_invoice("2026-3-1", deployments=("billing api",))]
        assert is_duplicate_deployment("  billing api  ", known)

    def test_checks_the_draft(self, make_invoice):
        draft = make_invoice(deployments=("mobile release",))
        assert is_duplicate_deployment("Mobile Release", [], draft)

    def test_no_match(self, make_invoice):
        known = [make_invoice("2026-3-1", deployments=("billing api",))]
        draft = make_invoice(deployments=("mobile release",))

        assert not is_duplicate_deployment("billing api v3", known, draft)

    def test_partial_match_is_not_duplicate(self, make_invoice):
        known = [make_invoice("2026-3-1", deployments=("billing api v2",))]
        assert not is_duplicate_deployment("billing api", known)


def test_duplicate_warning_uses_label():
    assert duplicate_warning("App Marketings") == (
        "Warning: This app marketings is a duplicate. Added anyway."
    )

"""
Tests for portal/services/status_mapping.py - ServiceM8 status to BookingStatus.
"""
import pytest

from portal.models.booking import BookingStatus
from portal.services.status_mapping import is_truthy_flag, map_status


class TestMapStatus:
    @pytest.mark.parametrize("raw,expected", [
        ("Quote", BookingStatus.PENDING),
        ("Work Order", BookingStatus.SCHEDULED),
        ("In Progress", BookingStatus.IN_PROGRESS),
        ("Completed", BookingStatus.COMPLETED),
        ("Cancelled", BookingStatus.CANCELLED),
    ])
    def test_known_statuses(self, raw, expected):
        assert map_status(raw, False) == expected

    @pytest.mark.parametrize("raw", ["WORK ORDER", "work order", "wOrK oRdEr", "  Work Order  "])
    def test_case_and_whitespace_insensitive(self, raw):
        assert map_status(raw, False) == BookingStatus.SCHEDULED

    @pytest.mark.parametrize("raw", [
        "Quote", "Work Order", "In Progress", "Completed", "Cancelled", "Unsuccessful", None, "",
    ])
    def test_quoted_is_always_pending(self, raw):
        """Quote-stage jobs are pending whatever the raw status says."""
        assert map_status(raw, True) == BookingStatus.PENDING

    @pytest.mark.parametrize("raw", ["Unsuccessful", "On Hold", "", "completed!", None, 42])
    def test_unknown_falls_back_to_pending(self, raw):
        assert map_status(raw, False) == BookingStatus.PENDING

    def test_default_quoted_flag(self):
        assert map_status("Completed") == BookingStatus.COMPLETED

    def test_string_flags_from_api(self):
        """ServiceM8 sends flags as "1"/"0"; "0" must not count as quoted."""
        assert map_status("Completed", "0") == BookingStatus.COMPLETED
        assert map_status("Completed", "1") == BookingStatus.PENDING

    def test_values_are_storage_strings(self):
        assert map_status("In Progress", False).value == "in_progress"


class TestIsTruthyFlag:
    @pytest.mark.parametrize("value", [True, 1, "1", "true", "Yes", "on"])
    def test_truthy(self, value):
        assert is_truthy_flag(value) is True

    @pytest.mark.parametrize("value", [False, 0, "0", "", " ", "false", "NO", "off", None])
    def test_falsy(self, value):
        assert is_truthy_flag(value) is False

"""
test_reports.py - Unit tests for report normalization, upsert and delete.

Tests cover:
  - required shift/date, unknown shift, invalid date
  - employee resolution: manager override, employee self-only, unknown id
  - permissive numeric coercion (garbage -> 0, never an error)
  - productivity clamping and absent-vs-zero
  - revenue expressions evaluated on write
  - upsert keeps the original id and leaves one record per (employee, shift, date)
  - delete: not found, unauthorized (store unchanged), owner and manager
"""

from datetime import datetime, timezone

import pytest

from errors import AuthorizationError, NotFoundError, ValidationError
from reports import coerce_number, coerce_score, delete_report, normalize_report, submit_report, visible_reports


FIXED_NOW = datetime(2024, 5, 2, 8, 30, tzinfo=timezone.utc)


def normalize(payload, caller, directory, existing=()):
    return normalize_report(payload, caller, directory.list(), list(existing), now=FIXED_NOW)


# ===========================================================================
# Normalizer
# ===========================================================================

class TestRequiredFields:

    @pytest.mark.parametrize("payload", [
        {"date": "2024-05-01"},
        {"shift": "Morning"},
        {"shift": "", "date": "2024-05-01"},
        {"shift": "Morning", "date": ""},
        {},
    ])
    def test_missing_shift_or_date(self, payload, ali, directory):
        with pytest.raises(ValidationError, match="missing required field"):
            normalize(payload, ali, directory)

    def test_unknown_shift(self, ali, directory):
        with pytest.raises(ValidationError, match="unknown shift"):
            normalize({"shift": "Lunch", "date": "2024-05-01"}, ali, directory)

    def test_invalid_date(self, ali, directory):
        with pytest.raises(ValidationError, match="invalid date"):
            normalize({"shift": "Morning", "date": "01/05/2024"}, ali, directory)


class TestCanonicalRecord:

    def test_defaults_and_derived_fields(self, ali, directory):
        report = normalize({"shift": "evening", "date": "2024-05-01"}, ali, directory)
        assert report.employee_id == "e1"
        assert report.employee_name == "Ali"
        assert report.shift == "Evening"
        assert report.day_name == "Wednesday"
        assert (report.shift_start, report.shift_end) == ("17:00", "01:00")
        assert report.visitors_count == 0
        assert report.needs == ""
        assert report.productivity_score is None
        assert report.daily_revenue is None
        assert report.submitted_by == "e1"
        assert report.updated_at == FIXED_NOW.isoformat()
        assert len(report.id) == 32

    def test_garbage_counters_become_zero(self, ali, directory):
        report = normalize({
            "shift": "Morning", "date": "2024-05-01",
            "visitors_count": "lots", "calls_count": None, "social_media_count": "NaN",
            "entry_count": "Infinity", "exit_count": {"x": 1},
        }, ali, directory)
        assert report.visitors_count == 0
        assert report.calls_count == 0
        assert report.social_media_count == 0
        assert report.entry_count == 0
        assert report.exit_count == 0

    def test_numeric_strings_are_parsed(self, ali, directory):
        report = normalize({"shift": "Morning", "date": "2024-05-01",
                            "visitors_count": " 12 ", "calls_count": 7.9}, ali, directory)
        assert report.visitors_count == 12
        assert report.calls_count == 7

    @pytest.mark.parametrize("raw, expected", [
        (150, 100.0),
        (-10, 0.0),
        ("55.5", 55.5),
        (0, 0.0),
        (None, None),
        ("", None),
        ("good", None),
        (float("nan"), None),
    ])
    def test_productivity_score(self, raw, expected, ali, directory):
        report = normalize({"shift": "Morning", "date": "2024-05-01",
                            "productivity_score": raw}, ali, directory)
        assert report.productivity_score == expected

    def test_revenue_expressions(self, ali, directory):
        report = normalize({"shift": "Morning", "date": "2024-05-01",
                            "daily_revenue": "140+20+50", "total_revenue": "10/0"}, ali, directory)
        assert report.daily_revenue == 210
        assert report.total_revenue == 0

    def test_text_fields(self, ali, directory):
        report = normalize({"shift": "Night", "date": "2024-05-01",
                            "needs": "Printer paper", "issues": 404}, ali, directory)
        assert report.needs == "Printer paper"
        assert report.issues == "404"


class TestEmployeeResolution:

    def test_manager_can_target_employee(self, manager, directory):
        report = normalize({"shift": "Morning", "date": "2024-05-01", "employee_id": "e2"},
                           manager, directory)
        assert report.employee_id == "e2"
        assert report.employee_name == "Sara"
        assert report.submitted_by == "m1"

    def test_manager_defaults_to_self(self, manager, directory):
        report = normalize({"shift": "Morning", "date": "2024-05-01"}, manager, directory)
        assert report.employee_id == "m1"

    def test_employee_cannot_target_someone_else(self, ali, directory):
        report = normalize({"shift": "Morning", "date": "2024-05-01", "employee_id": "e2"},
                           ali, directory)
        assert report.employee_id == "e1"

    def test_unknown_employee(self, manager, directory):
        with pytest.raises(ValidationError, match="unknown employee"):
            normalize({"shift": "Morning", "date": "2024-05-01", "employee_id": "ghost"},
                      manager, directory)


# ===========================================================================
# Upsert
# ===========================================================================

class TestSubmit:

    def test_resubmission_replaces_and_keeps_id(self, ali, directory, report_store):
        first, created = submit_report(report_store, directory,
                                       {"shift": "Morning", "date": "2024-05-01", "visitors_count": 3}, ali)
        assert created is True
        second, created = submit_report(report_store, directory,
                                        {"shift": "morning", "date": "2024-05-01", "visitors_count": 9}, ali)
        assert created is False
        assert second.id == first.id

        stored = report_store.list()
        assert len(stored) == 1
        assert stored[0].visitors_count == 9
        assert stored[0].id == first.id

    def test_other_shift_is_a_new_record(self, ali, directory, report_store):
        submit_report(report_store, directory, {"shift": "Morning", "date": "2024-05-01"}, ali)
        submit_report(report_store, directory, {"shift": "Evening", "date": "2024-05-01"}, ali)
        submit_report(report_store, directory, {"shift": "Morning", "date": "2024-05-02"}, ali)
        assert len(report_store.list()) == 3

    def test_failed_validation_writes_nothing(self, ali, directory, report_store):
        with pytest.raises(ValidationError):
            submit_report(report_store, directory, {"shift": "Morning"}, ali)
        assert report_store.list() == []


# ===========================================================================
# Delete and visibility
# ===========================================================================

class TestDelete:

    def test_not_found(self, manager, report_store):
        with pytest.raises(NotFoundError):
            delete_report(report_store, "missing", manager)

    def test_other_employee_is_refused_and_store_unchanged(self, ali, sara, directory, report_store):
        report, _ = submit_report(report_store, directory, {"shift": "Morning", "date": "2024-05-01"}, ali)
        before = report_store.list()
        with pytest.raises(AuthorizationError):
            delete_report(report_store, report.id, sara)
        assert report_store.list() == before

    def test_owner_can_delete(self, ali, directory, report_store):
        report, _ = submit_report(report_store, directory, {"shift": "Morning", "date": "2024-05-01"}, ali)
        delete_report(report_store, report.id, ali)
        assert report_store.list() == []

    def test_manager_can_delete_any(self, ali, manager, directory, report_store):
        report, _ = submit_report(report_store, directory, {"shift": "Morning", "date": "2024-05-01"}, ali)
        delete_report(report_store, report.id, manager)
        assert report_store.get(report.id) is None


def test_visible_reports(ali, manager, directory, report_store, sara):
    submit_report(report_store, directory, {"shift": "Morning", "date": "2024-05-01"}, ali)
    submit_report(report_store, directory, {"shift": "Morning", "date": "2024-05-01"}, sara)
    everything = report_store.list()
    assert len(visible_reports(everything, manager)) == 2
    assert [r.employee_id for r in visible_reports(everything, ali)] == ["e1"]


def test_coercion_helpers_never_raise():
    assert coerce_number(object()) == 0
    assert coerce_number(True) == 0
    assert coerce_number("1e3") == 1000
    assert coerce_score([]) is None


def test_huge_integers_do_not_overflow(ali, directory):
    huge = 10 ** 400
    assert coerce_number(huge) == 0
    assert coerce_score(huge) is None
    report = normalize({"shift": "Morning", "date": "2024-05-01",
                        "visitors_count": huge, "productivity_score": huge}, ali, directory)
    assert report.visitors_count == 0
    assert report.productivity_score is None


class TestDateCanonicalization:

    def test_unpadded_date_is_stored_padded(self, ali, directory):
        report = normalize({"shift": "Morning", "date": "2024-3-1"}, ali, directory)
        assert report.date == "2024-03-01"
        assert report.day_name == "Friday"

    def test_unpadded_resubmission_replaces(self, ali, directory, report_store):
        first, _ = submit_report(report_store, directory, {"shift": "Morning", "date": "2024-03-01"}, ali)
        second, created = submit_report(report_store, directory,
                                        {"shift": "Morning", "date": "2024-3-1", "calls_count": 4}, ali)
        assert created is False
        assert second.id == first.id
        stored = report_store.list()
        assert len(stored) == 1
        assert stored[0].date == "2024-03-01"
        assert stored[0].calls_count == 4

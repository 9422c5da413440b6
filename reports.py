import logging
import math
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from errors import AuthorizationError, NotFoundError, ValidationError
from revenue import evaluate_revenue
from schemas import Employee, Identity, ShiftReport

logger = logging.getLogger(__name__)

# name -> (start, end); Evening runs past midnight
SHIFT_WINDOWS: Dict[str, Tuple[str, str]] = {
    "Night": ("01:00", "09:00"),
    "Morning": ("09:00", "17:00"),
    "Evening": ("17:00", "01:00"),
}

DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

COUNTER_FIELDS = ("visitors_count", "calls_count", "social_media_count", "entry_count", "exit_count")
TEXT_FIELDS = ("needs", "tasks_completed", "issues", "handover_notes", "notes")


# -------------------- Coercion helpers --------------------

def coerce_number(value: Any) -> float:
    """Parse as number, 0 when the value is missing, garbage or not finite. Never raises."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def coerce_counter(value: Any) -> int:
    return int(coerce_number(value))


def coerce_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def coerce_score(value: Any) -> Optional[float]:
    """Clamp to [0, 100]; None stays None so "not rated" is never read as zero."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        score = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(score):
        return None
    return min(100.0, max(0.0, score))


def coerce_revenue(value: Any) -> Optional[float]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return evaluate_revenue(value)


def resolve_shift(value: Any) -> str:
    name = coerce_text(value).strip()
    for shift in SHIFT_WINDOWS:
        if shift.lower() == name.lower():
            return shift
    raise ValidationError(f"unknown shift: {name}")


def parse_shift_date(value: Any) -> Tuple[str, str]:
    """Return (YYYY-MM-DD, weekday name). "2024-3-1" comes back as "2024-03-01"."""
    date_str = coerce_text(value).strip()
    try:
        parsed = datetime.strptime(date_str, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"invalid date: {date_str}")
    return parsed.isoformat(), DAY_NAMES[parsed.weekday()]


# -------------------- Validator / normalizer --------------------

def resolve_employee(payload: Dict[str, Any], caller: Identity, employees: Iterable[Employee]) -> Employee:
    requested = coerce_text(payload.get("employee_id")).strip()
    target_id = requested if caller.is_manager and requested else caller.id
    for employee in employees:
        if employee.id == target_id:
            return employee
    raise ValidationError("unknown employee")


def normalize_report(
    payload: Dict[str, Any],
    caller: Identity,
    employees: Iterable[Employee],
    existing: Iterable[ShiftReport],
    now: Optional[datetime] = None,
) -> ShiftReport:
    """
    Turn a raw submission into the canonical record.

    shift and date are required. A manager may file for another employee by
    passing employee_id; everyone else files for themselves. When a record
    already exists for (employee, shift, date) its id is kept so the write
    replaces it.
    """
    if not payload.get("shift") or not payload.get("date"):
        raise ValidationError("missing required field: shift and date are required")

    shift = resolve_shift(payload["shift"])
    date, day_name = parse_shift_date(payload["date"])
    employee = resolve_employee(payload, caller, employees)

    report_id = None
    for report in existing:
        if report.natural_key() == (employee.id, shift, date):
            report_id = report.id
            break

    start, end = SHIFT_WINDOWS[shift]
    now = now or datetime.now(timezone.utc)
    fields: Dict[str, Any] = {
        "id": report_id or uuid.uuid4().hex,
        "employee_id": employee.id,
        "employee_name": employee.full_name,
        "shift": shift,
        "date": date,
        "day_name": day_name,
        "shift_start": start,
        "shift_end": end,
        "productivity_score": coerce_score(payload.get("productivity_score")),
        "daily_revenue": coerce_revenue(payload.get("daily_revenue")),
        "total_revenue": coerce_revenue(payload.get("total_revenue")),
        "submitted_by": caller.id,
        "updated_at": now.isoformat(),
    }
    for name in COUNTER_FIELDS:
        fields[name] = coerce_counter(payload.get(name))
    for name in TEXT_FIELDS:
        fields[name] = coerce_text(payload.get(name))
    return ShiftReport(**fields)


# -------------------- Store-backed operations --------------------

def visible_reports(reports: Iterable[ShiftReport], caller: Identity) -> List[ShiftReport]:
    if caller.is_manager:
        return list(reports)
    return [r for r in reports if r.employee_id == caller.id]


def submit_report(store, directory, payload: Dict[str, Any], caller: Identity) -> Tuple[ShiftReport, bool]:
    """Normalize and upsert. Returns (record, created)."""
    existing: List[ShiftReport] = []
    if payload.get("date"):
        date, _ = parse_shift_date(payload["date"])
        existing = store.list(date=date)
    report = normalize_report(payload, caller, directory.list(), existing)
    created = not any(r.id == report.id for r in existing)
    saved = store.upsert(report)
    logger.info(
        "Report %s %s", "created" if created else "replaced", saved.id,
        extra={"report_id": saved.id, "employee_id": saved.employee_id, "date": saved.date},
    )
    return saved, created


def delete_report(store, report_id: str, caller: Identity) -> None:
    report = store.get(report_id)
    if report is None:
        raise NotFoundError("report not found")
    if not caller.is_manager and report.employee_id != caller.id:
        raise AuthorizationError("not allowed to delete this report")
    store.delete(report_id)
    logger.info("Report deleted %s", report_id, extra={"report_id": report_id})

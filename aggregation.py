"""
Daily aggregation of shift reports.

build_summary_rows groups a record set by employee, in the order employees
first appear, and reduces each group to totals, a productivity average and
the non-empty free-text entries. It does no I/O and never mutates its input;
callers pass in the already visibility-filtered records for a date or range.
"""

from typing import Dict, Iterable, List, Optional

from schemas import DailySummaryRow, ShiftReport


def _average(scores: List[float]) -> Optional[float]:
    if not scores:
        return None
    return round(sum(scores) / len(scores), 2)


def _collect(reports: List[ShiftReport], field: str) -> List[str]:
    return [getattr(r, field) for r in reports if getattr(r, field)]


def build_summary_rows(reports: Iterable[ShiftReport]) -> List[DailySummaryRow]:
    grouped: Dict[str, List[ShiftReport]] = {}
    for report in reports:
        grouped.setdefault(report.employee_id, []).append(report)

    rows = []
    for employee_id, employee_reports in grouped.items():
        scores = [r.productivity_score for r in employee_reports if r.productivity_score is not None]
        rows.append(DailySummaryRow(
            employee_id=employee_id,
            employee_name=employee_reports[0].employee_name,
            total_shifts=len(employee_reports),
            total_visitors=sum(r.visitors_count or 0 for r in employee_reports),
            total_calls=sum(r.calls_count or 0 for r in employee_reports),
            total_social_media=sum(r.social_media_count or 0 for r in employee_reports),
            total_entry=sum(r.entry_count or 0 for r in employee_reports),
            total_exit=sum(r.exit_count or 0 for r in employee_reports),
            total_daily_revenue=round(sum(r.daily_revenue or 0 for r in employee_reports), 2),
            total_revenue=round(sum(r.total_revenue or 0 for r in employee_reports), 2),
            productivity_average=_average(scores),
            needs=_collect(employee_reports, "needs"),
            tasks=_collect(employee_reports, "tasks_completed"),
            issues=_collect(employee_reports, "issues"),
            handover_notes=_collect(employee_reports, "handover_notes"),
        ))
    return rows

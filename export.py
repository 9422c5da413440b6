"""Spreadsheet export of a day's (or range's) reports and summary rows."""
import io
from datetime import datetime
from typing import List, Sequence, Tuple

import xlsxwriter

from schemas import DailySummaryRow, ShiftReport

REPORT_COLUMNS = [
    ("Date", "date", 12),
    ("Day", "day_name", 12),
    ("Employee", "employee_name", 20),
    ("Shift", "shift", 10),
    ("Shift Start", "shift_start", 11),
    ("Shift End", "shift_end", 11),
    ("Visitors", "visitors_count", 10),
    ("Calls", "calls_count", 10),
    ("Social Media", "social_media_count", 13),
    ("Entries", "entry_count", 10),
    ("Exits", "exit_count", 10),
    ("Productivity", "productivity_score", 13),
    ("Daily Revenue", "daily_revenue", 14),
    ("Total Revenue", "total_revenue", 14),
    ("Needs", "needs", 30),
    ("Tasks Completed", "tasks_completed", 30),
    ("Issues", "issues", 30),
    ("Handover Notes", "handover_notes", 30),
]

SUMMARY_COLUMNS = [
    ("Employee", "employee_name", 20),
    ("Shifts", "total_shifts", 10),
    ("Visitors", "total_visitors", 10),
    ("Calls", "total_calls", 10),
    ("Social Media", "total_social_media", 13),
    ("Entries", "total_entry", 10),
    ("Exits", "total_exit", 10),
    ("Productivity Avg", "productivity_average", 16),
    ("Daily Revenue", "total_daily_revenue", 14),
    ("Total Revenue", "total_revenue", 14),
    ("Needs", "needs", 40),
    ("Tasks", "tasks", 40),
    ("Issues", "issues", 40),
    ("Handover Notes", "handover_notes", 40),
]

LIST_SEPARATOR = " | "


def export_file_name(label: str) -> str:
    return f"daily-report-{label}.xlsx"


def _write_sheet(wb, name: str, columns: Sequence[Tuple[str, str, int]], items, hdr, normal):
    ws = wb.add_worksheet(name)
    for col, (header, _, width) in enumerate(columns):
        ws.set_column(col, col, width)
        ws.write(0, col, header, hdr)
    for row, item in enumerate(items, start=1):
        for col, (_, key, _) in enumerate(columns):
            value = getattr(item, key)
            if isinstance(value, list):
                value = LIST_SEPARATOR.join(value)
            if value is None:
                value = ""
            ws.write(row, col, value, normal)
    ws.freeze_panes(1, 0)
    return ws


def build_workbook(label: str, reports: List[ShiftReport], rows: List[DailySummaryRow]) -> Tuple[bytes, str]:
    """Return (xlsx bytes, file name) with a "Shift Reports" and a "Daily Summary" sheet."""
    buffer = io.BytesIO()
    wb = xlsxwriter.Workbook(buffer, {"in_memory": True})
    wb.set_properties({"title": f"Shift reports {label}", "author": "Shift Report API",
                       "created": datetime.now()})

    hdr = wb.add_format({"bold": True, "bg_color": "#14141E", "font_color": "#FFFFFF",
                         "border": 1, "font_size": 10})
    normal = wb.add_format({"border": 1, "font_size": 9, "text_wrap": True, "valign": "top"})

    _write_sheet(wb, "Shift Reports", REPORT_COLUMNS, reports, hdr, normal)
    _write_sheet(wb, "Daily Summary", SUMMARY_COLUMNS, rows, hdr, normal)
    wb.close()
    return buffer.getvalue(), export_file_name(label)

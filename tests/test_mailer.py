"""
test_mailer.py - Spreadsheet export and summary email tests.

Tests cover:
  - workbook has the two expected sheets and a dated file name
  - send_summary_for_date: NO_REPORTS, TRANSPORT_NOT_CONFIGURED (file saved), sent
  - the scheduled job's yesterday() date
  - transport selection from settings
"""

import io
import zipfile
from datetime import date

from aggregation import build_summary_rows
from export import build_workbook
from mailer import NO_REPORTS, TRANSPORT_NOT_CONFIGURED, SmtpTransport, create_transport, send_summary_for_date, yesterday
from reports import submit_report
from settings import Settings


def seed(report_store, directory, ali, sara):
    submit_report(report_store, directory, {"shift": "Morning", "date": "2024-05-01",
                                            "visitors_count": 4, "needs": "Chairs"}, ali)
    submit_report(report_store, directory, {"shift": "Night", "date": "2024-05-01",
                                            "calls_count": 2, "productivity_score": 75}, sara)
    submit_report(report_store, directory, {"shift": "Morning", "date": "2024-05-02"}, ali)


def workbook_xml(content: bytes):
    with zipfile.ZipFile(io.BytesIO(content)) as archive:
        return archive.read("xl/workbook.xml").decode("utf-8")


class TestWorkbook:

    def test_two_sheets(self, report_store, directory, ali, sara):
        seed(report_store, directory, ali, sara)
        reports = report_store.list(date="2024-05-01")
        content, file_name = build_workbook("2024-05-01", reports, build_summary_rows(reports))
        assert file_name == "daily-report-2024-05-01.xlsx"
        assert content[:2] == b"PK"
        xml = workbook_xml(content)
        assert 'name="Shift Reports"' in xml
        assert 'name="Daily Summary"' in xml

    def test_empty_workbook_is_still_valid(self):
        content, _ = build_workbook("2024-05-01", [], [])
        assert 'name="Daily Summary"' in workbook_xml(content)


class TestSendSummary:

    def test_no_reports(self, report_store, settings, transport):
        result = send_summary_for_date(report_store, "2024-05-01", settings, transport=transport)
        assert result.sent is False
        assert result.reason == NO_REPORTS
        assert transport.messages == []

    def test_transport_not_configured_saves_file(self, report_store, directory, settings, ali, sara, tmp_path):
        seed(report_store, directory, ali, sara)
        result = send_summary_for_date(report_store, "2024-05-01", settings)
        assert result.sent is False
        assert result.reason == TRANSPORT_NOT_CONFIGURED
        assert result.saved_to == str(tmp_path / "daily-report-2024-05-01.xlsx")
        assert (tmp_path / "daily-report-2024-05-01.xlsx").read_bytes()[:2] == b"PK"

    def test_sent(self, report_store, directory, settings, ali, sara, transport):
        seed(report_store, directory, ali, sara)
        result = send_summary_for_date(report_store, "2024-05-01", settings, transport=transport)
        assert result.sent is True
        assert result.reason is None
        (message,) = transport.messages
        assert result.message_id == message["Message-ID"]
        assert message["To"] == "boss@example.com"
        assert "2024-05-01" in message["Subject"]
        (attachment,) = list(message.iter_attachments())
        assert attachment.get_filename() == "daily-report-2024-05-01.xlsx"


def test_yesterday():
    assert yesterday(today=date(2024, 3, 1)) == "2024-02-29"


def test_create_transport():
    assert create_transport(Settings(smtp_host="smtp.example.com", smtp_port=587)) is None
    transport = create_transport(Settings(smtp_host="smtp.example.com", smtp_port=465,
                                          smtp_user="bot", smtp_pass="pw"))
    assert isinstance(transport, SmtpTransport)
    assert transport.port == 465

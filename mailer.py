"""
Daily summary email.

send_summary_for_date builds the workbook for one date and either mails it
or, when SMTP is not configured, saves it under the data directory. The
result is one of three shapes (see schemas.SummaryEmailResult).
"""

import logging
import smtplib
import ssl
from datetime import date as date_cls, datetime, timedelta
from email.message import EmailMessage
from email.utils import make_msgid
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo

from aggregation import build_summary_rows
from export import build_workbook
from schemas import SummaryEmailResult
from settings import Settings

logger = logging.getLogger(__name__)

NO_REPORTS = "NO_REPORTS"
TRANSPORT_NOT_CONFIGURED = "TRANSPORT_NOT_CONFIGURED"

XLSX_MAINTYPE = "application"
XLSX_SUBTYPE = "vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class SmtpTransport:
    def __init__(self, host: str, port: int, user: str, password: str, timeout: float = 30):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.timeout = timeout

    def send(self, message: EmailMessage) -> str:
        context = ssl.create_default_context()
        if self.port == 465:
            smtp = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout, context=context)
        else:
            smtp = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        with smtp:
            if self.port != 465:
                smtp.ehlo()
                if smtp.has_extn("starttls"):
                    smtp.starttls(context=context)
                    smtp.ehlo()
            smtp.login(self.user, self.password)
            smtp.send_message(message)
        return message["Message-ID"]


def yesterday(tz_name: str = "UTC", today: Optional[date_cls] = None) -> str:
    today = today or datetime.now(ZoneInfo(tz_name)).date()
    return (today - timedelta(days=1)).isoformat()


def create_transport(settings: Settings) -> Optional[SmtpTransport]:
    if not settings.smtp_configured:
        return None
    return SmtpTransport(settings.smtp_host, settings.smtp_port, settings.smtp_user, settings.smtp_pass)


def build_message(settings: Settings, date: str, content: bytes, file_name: str) -> EmailMessage:
    message = EmailMessage()
    sender = settings.smtp_from or settings.smtp_user
    if sender:
        message["From"] = sender
    message["To"] = settings.summary_recipient
    message["Subject"] = f"Shift report summary for {date}"
    message["Message-ID"] = make_msgid(domain=(settings.smtp_host or "localhost"))
    message.set_content(f"Attached is the spreadsheet with all shift reports for {date}.")
    message.add_attachment(content, maintype=XLSX_MAINTYPE, subtype=XLSX_SUBTYPE, filename=file_name)
    return message


def send_summary_for_date(store, date: str, settings: Settings, transport=None) -> SummaryEmailResult:
    reports = store.list(date=date)
    if not reports:
        logger.info("No reports for %s, summary not sent", date, extra={"date": date})
        return SummaryEmailResult(sent=False, reason=NO_REPORTS, date=date)

    rows = build_summary_rows(reports)
    content, file_name = build_workbook(date, reports, rows)

    transport = transport or create_transport(settings)
    if transport is None:
        path = Path(settings.data_dir) / file_name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        logger.warning("SMTP not configured, summary for %s saved to %s", date, path, extra={"date": date})
        return SummaryEmailResult(sent=False, reason=TRANSPORT_NOT_CONFIGURED, saved_to=str(path), date=date)

    message_id = transport.send(build_message(settings, date, content, file_name))
    logger.info("Summary for %s sent as %s", date, message_id, extra={"date": date})
    return SummaryEmailResult(sent=True, message_id=message_id, date=date)

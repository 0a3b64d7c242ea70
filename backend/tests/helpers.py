from __future__ import annotations

import io
from contextlib import contextmanager

import xlwt
from openpyxl import Workbook
from sqlalchemy import event, func, select
from sqlalchemy.exc import OperationalError

from usched.db import engine
from usched.mailer import MailDeliveryError


class RecordingMailer:
    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, to_email, subject, text, html=None):
        if self.fail:
            raise MailDeliveryError("SMTP unavailable")
        self.sent.append({"to": to_email, "subject": subject, "text": text, "html": html})


def count(db, model) -> int:
    return db.scalar(select(func.count()).select_from(model))


@contextmanager
def fail_on(statement_prefix: str):
    """Make the engine fail any statement starting with the given SQL prefix."""
    prefix = statement_prefix.upper()

    def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        if statement.lstrip().upper().startswith(prefix):
            raise OperationalError(statement, parameters, Exception("simulated storage fault"))

    event.listen(engine, "before_cursor_execute", before_cursor_execute)
    try:
        yield
    finally:
        event.remove(engine, "before_cursor_execute", before_cursor_execute)


def csv_bytes(rows: list[dict], headers: list[str] | None = None) -> bytes:
    headers = headers or list(rows[0].keys())
    lines = [",".join(headers)]
    for row in rows:
        lines.append(",".join(str(row.get(h, "")) for h in headers))
    return ("\n".join(lines) + "\n").encode("utf-8")


def xlsx_bytes(rows: list[dict], headers: list[str] | None = None) -> bytes:
    headers = headers or list(rows[0].keys())
    wb = Workbook()
    ws = wb.active
    ws.append(headers)
    for row in rows:
        ws.append([row.get(h) for h in headers])
    output = io.BytesIO()
    wb.save(output)
    return output.getvalue()


def xls_bytes(rows: list[dict], headers: list[str] | None = None) -> bytes:
    headers = headers or list(rows[0].keys())
    wb = xlwt.Workbook()
    ws = wb.add_sheet("Curriculum")
    for col, header in enumerate(headers):
        ws.write(0, col, header)
    for row_index, row in enumerate(rows, start=1):
        for col, header in enumerate(headers):
            value = row.get(header)
            if value is not None:
                ws.write(row_index, col, value)
    output = io.BytesIO()
    wb.save(output)
    return output.getvalue()

"""Curriculum upload: read a CSV/XLSX/XLS file, normalize it, replace one program's courses."""
from __future__ import annotations

import csv
import io
import logging
import zipfile
from dataclasses import dataclass
from typing import BinaryIO, Iterable, Iterator, Mapping

import xlrd
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from sqlalchemy import delete, func, insert, select
from sqlalchemy.orm import Session

from . import models
from .db import transaction
from .errors import ReferentialError, ValidationError
from .normalizer import CourseDraft, RawRow, normalize_row

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {"csv", "xlsx", "xls"}


@dataclass(frozen=True)
class IngestionResult:
    college_code: str
    program_code: str
    deleted: int
    inserted: int


def file_extension(filename: str | None) -> str:
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[1].strip().lower()


def iter_csv_rows(stream: BinaryIO) -> Iterator[dict]:
    text_stream = io.TextIOWrapper(stream, encoding="utf-8-sig", newline="")
    try:
        yield from csv.DictReader(text_stream)
    finally:
        text_stream.detach()


def read_xlsx_rows(data: bytes) -> list[dict]:
    try:
        workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        raise ValidationError("Unable to read spreadsheet file.") from exc
    try:
        worksheet = workbook.worksheets[0]
        rows = worksheet.iter_rows(values_only=True)
        header = next(rows, None)
        if header is None:
            return []
        return [dict(zip(header, values)) for values in rows]
    finally:
        workbook.close()


def read_xls_rows(data: bytes) -> list[dict]:
    try:
        book = xlrd.open_workbook(file_contents=data)
    except (xlrd.XLRDError, zipfile.BadZipFile, ValueError, OSError) as exc:
        raise ValidationError("Unable to read spreadsheet file.") from exc
    sheet = book.sheet_by_index(0)
    if sheet.nrows == 0:
        return []
    header = sheet.row_values(0)
    result = []
    for row_index in range(1, sheet.nrows):
        values = []
        for cell in sheet.row(row_index):
            if cell.ctype == xlrd.XL_CELL_BOOLEAN:
                values.append(bool(cell.value))
            else:
                values.append(cell.value)
        result.append(dict(zip(header, values)))
    return result


def read_rows(filename: str | None, stream: BinaryIO) -> Iterable[Mapping]:
    extension = file_extension(filename)
    if extension not in SUPPORTED_EXTENSIONS:
        raise ValidationError("Unsupported file type.")
    if extension == "csv":
        return iter_csv_rows(stream)
    data = stream.read()
    if extension == "xlsx":
        return read_xlsx_rows(data)
    return read_xls_rows(data)


def normalize_rows(
    rows: Iterable[Mapping],
    department: str | None = None,
    program: str | None = None,
) -> list[CourseDraft]:
    drafts = []
    for mapping in rows:
        raw = RawRow.from_mapping(mapping)
        if raw.is_blank():
            continue
        drafts.append(normalize_row(raw, department=department, program=program))
    return drafts


def resolve_program(
    db: Session, college_code: str, program_code: str
) -> tuple[models.College, models.Program]:
    college = db.scalars(
        select(models.College).where(func.upper(models.College.college_code) == college_code.upper())
    ).first()
    if college is None:
        raise ReferentialError("Invalid college code.")
    program = db.scalars(
        select(models.Program).where(
            models.Program.college_id == college.college_id,
            func.upper(models.Program.program_code) == program_code.upper(),
        )
    ).first()
    if program is None:
        raise ReferentialError("Invalid program code.")
    return college, program


def replace_curriculum(
    db: Session, college: models.College, program: models.Program, drafts: list[CourseDraft]
) -> tuple[int, int]:
    """Delete the program's courses and insert the batch in one transaction."""
    rows = [
        {"college_id": college.college_id, "program_id": program.program_id, **draft.as_row()}
        for draft in drafts
    ]
    with transaction(db):
        deleted = db.execute(
            delete(models.CurriculumCourse).where(
                models.CurriculumCourse.college_id == college.college_id,
                models.CurriculumCourse.program_id == program.program_id,
            )
        ).rowcount
        db.execute(insert(models.CurriculumCourse), rows)
    return deleted, len(rows)


def ingest_curriculum(
    db: Session,
    filename: str | None,
    stream: BinaryIO,
    department: str | None = None,
    program: str | None = None,
) -> IngestionResult:
    try:
        drafts = normalize_rows(read_rows(filename, stream), department=department, program=program)
    except (UnicodeDecodeError, csv.Error) as exc:
        raise ValidationError("Unable to read CSV file.") from exc
    if not drafts:
        raise ValidationError("No course data found in file.")

    # The whole batch is filed under the first row's department/program.
    first = drafts[0]
    college, program_row = resolve_program(db, first.department, first.program)
    deleted, inserted = replace_curriculum(db, college, program_row, drafts)
    logger.info(
        "Curriculum replaced for %s/%s from %s: %d removed, %d inserted",
        college.college_code,
        program_row.program_code,
        file_extension(filename),
        deleted,
        inserted,
    )
    return IngestionResult(
        college_code=college.college_code,
        program_code=program_row.program_code,
        deleted=deleted,
        inserted=inserted,
    )

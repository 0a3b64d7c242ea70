from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, Mapping

NOT_AVAILABLE = "N/A"
DEFAULT_YEAR = "First Year"

# Header text (trimmed, lower-cased) -> draft field.
HEADER_FIELDS = {
    "department": "department",
    "program": "program",
    "year level": "year",
    "semester": "semester",
    "course code": "course_code",
    "course title": "course_title",
    "lec": "lec",
    "lab": "lab",
    "pre/co-requisite": "pre_co_requisite",
    "gened": "is_gened",
}

LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def cell_text(value: Any) -> str:
    """Render a CSV or spreadsheet cell as text so both formats read alike."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value)


@dataclass(frozen=True)
class RawRow:
    cells: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, mapping: Mapping[Any, Any]) -> "RawRow":
        cells = {}
        for header, value in mapping.items():
            if header is None:
                continue
            key = HEADER_FIELDS.get(str(header).strip().lower())
            if key and key not in cells:
                cells[key] = cell_text(value)
        return cls(cells)

    def get(self, name: str) -> str:
        return self.cells.get(name, "").strip()

    def is_blank(self) -> bool:
        return not any(value.strip() for value in self.cells.values())


@dataclass(frozen=True)
class CourseDraft:
    department: str
    program: str
    year: str
    semester: str
    course_code: str
    course_title: str
    lec: int
    lab: int
    pre_co_requisite: str | None
    is_gened: bool

    @property
    def total(self) -> int:
        return self.lec + self.lab

    def as_row(self) -> dict:
        return {
            "year": self.year,
            "semester": self.semester,
            "course_code": self.course_code,
            "course_title": self.course_title,
            "lec": self.lec,
            "lab": self.lab,
            "total": self.total,
            "pre_co_requisite": self.pre_co_requisite,
            "is_gened": self.is_gened,
        }


def title_case(value: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in value.lower().split())


def parse_units(value: str) -> int:
    match = LEADING_INT_RE.match(value or "")
    if not match:
        return 0
    return max(int(match.group(1)), 0)


def _code(value: str, default: str | None) -> str:
    if value:
        return value.upper()
    if default and default.strip():
        return default.strip().upper()
    return NOT_AVAILABLE


def normalize_row(
    row: RawRow | Mapping[Any, Any],
    department: str | None = None,
    program: str | None = None,
) -> CourseDraft:
    if not isinstance(row, RawRow):
        row = RawRow.from_mapping(row)

    prerequisite = row.get("pre_co_requisite")
    return CourseDraft(
        department=_code(row.get("department"), department),
        program=_code(row.get("program"), program),
        year=title_case(row.get("year")) or DEFAULT_YEAR,
        semester=title_case(row.get("semester")),
        course_code=row.get("course_code").upper() or NOT_AVAILABLE,
        course_title=title_case(row.get("course_title")) or NOT_AVAILABLE,
        lec=parse_units(row.get("lec")),
        lab=parse_units(row.get("lab")),
        pre_co_requisite=prerequisite.upper() if prerequisite else None,
        is_gened=row.get("is_gened").upper() == "TRUE",
    )

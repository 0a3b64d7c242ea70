from __future__ import annotations

import logging

from sqlalchemy import case, delete, func, select
from sqlalchemy.orm import Session

from . import models
from .db import transaction
from .errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ReferentialError,
    ValidationError,
    require_fields,
)

logger = logging.getLogger(__name__)

MAIN_BUILDING = "Main Building"
BCH_BUILDINGS = {"Bagong Cabuyao Hall", "BCH"}
NUMBERED_ROOM_TYPES = {"Lecture Room", "Laboratory Room"}
SECTION_FIELDS = ("year_level", "section", "class_size", "program_id", "adviser")


# Curriculum


def list_curriculum(db: Session, year: str | None, program: str | None) -> list[models.CurriculumCourse]:
    if not year or not program:
        raise ValidationError("Year and Program are required.")
    query = (
        select(models.CurriculumCourse)
        .join(models.Program, models.CurriculumCourse.program_id == models.Program.program_id)
        .where(
            models.CurriculumCourse.year == year,
            func.upper(models.Program.program_code) == program.strip().upper(),
        )
        .order_by(models.CurriculumCourse.id)
    )
    return list(db.scalars(query))


def _year_rank(year: str) -> tuple[int, str]:
    if year in models.YEAR_LEVELS:
        return models.YEAR_LEVELS.index(year), year
    return len(models.YEAR_LEVELS), year


def list_curriculum_years(db: Session) -> list[str]:
    """Distinct years in academic order; labels outside YEAR_LEVELS sort last."""
    query = select(models.CurriculumCourse.year).distinct()
    return sorted(db.scalars(query), key=_year_rank)


def list_curriculum_by_department(db: Session, department: str | None) -> list[models.CurriculumCourse]:
    if not department:
        raise ValidationError("Department is required.")
    query = (
        select(models.CurriculumCourse)
        .join(models.College, models.CurriculumCourse.college_id == models.College.college_id)
        .where(func.upper(models.College.college_code) == department.strip().upper())
        .order_by(
            models.CurriculumCourse.program_id,
            models.CurriculumCourse.year,
            models.CurriculumCourse.semester,
            models.CurriculumCourse.id,
        )
    )
    return list(db.scalars(query))


def list_course_titles(db: Session) -> list[dict]:
    query = (
        select(func.min(models.CurriculumCourse.id), models.CurriculumCourse.course_title)
        .group_by(models.CurriculumCourse.course_title)
        .order_by(models.CurriculumCourse.course_title)
    )
    return [{"id": course_id, "name": title} for course_id, title in db.execute(query)]


# Colleges and programs


def list_colleges(db: Session) -> list[models.College]:
    return list(db.scalars(select(models.College).order_by(models.College.college_id)))


def list_programs(db: Session, college_id: int) -> list[models.Program]:
    query = (
        select(models.Program)
        .where(models.Program.college_id == college_id)
        .order_by(models.Program.program_id)
    )
    return list(db.scalars(query))


def _program_values(program: dict) -> dict:
    require_fields(program, ("program_name", "program_code"))
    return {
        "program_name": program["program_name"].strip(),
        "program_code": program["program_code"].strip().upper(),
    }


def create_college(db: Session, college_name: str | None, college_code: str | None, programs: list[dict]) -> models.College:
    if not college_name or not college_code:
        raise ValidationError("College name and code are required")
    program_values = [_program_values(p) for p in programs]
    with transaction(db, conflict_detail="College or program code already exists."):
        college = models.College(
            college_name=college_name.strip(), college_code=college_code.strip().upper()
        )
        college.programs = [models.Program(**values) for values in program_values]
        db.add(college)
    logger.info("Created college %s with %d programs", college.college_code, len(program_values))
    return college


def update_college(
    db: Session, college_id: int, college_name: str | None, college_code: str | None, programs: list[dict]
) -> models.College:
    if not college_name or not college_code:
        raise ValidationError("College name and code are required")
    college = db.get(models.College, college_id)
    if college is None:
        raise NotFoundError("College not found")
    incoming = [(p.get("program_id"), _program_values(p)) for p in programs]
    existing = {p.program_id: p for p in college.programs}

    with transaction(db, conflict_detail="College or program code already exists."):
        college.college_name = college_name.strip()
        college.college_code = college_code.strip().upper()
        keep_ids = {program_id for program_id, _ in incoming if program_id is not None}
        for program_id, program in list(existing.items()):
            if program_id not in keep_ids:
                college.programs.remove(program)
        db.flush()
        for program_id, values in incoming:
            if program_id is None:
                college.programs.append(models.Program(**values))
                continue
            program = existing.get(program_id)
            if program is None:
                raise ReferentialError(f"Program {program_id} does not belong to this college.")
            program.program_name = values["program_name"]
            program.program_code = values["program_code"]
    return college


def delete_college(db: Session, college_id: int) -> None:
    college = db.get(models.College, college_id)
    if college is None:
        raise NotFoundError("College not found")
    with transaction(db, conflict_detail="College still has professors or sections."):
        db.delete(college)


def delete_program(db: Session, program_id: int) -> None:
    """Delete a program; its sections and curriculum courses cascade with it."""
    with transaction(db):
        removed = db.execute(
            delete(models.Program).where(models.Program.program_id == program_id)
        ).rowcount
        if not removed:
            raise NotFoundError("Program not found")


# Buildings and rooms


def list_buildings(db: Session) -> list[models.Building]:
    return list(db.scalars(select(models.Building).order_by(models.Building.building_name)))


def create_building(db: Session, building_name: str | None) -> models.Building:
    if not building_name or not building_name.strip():
        raise ValidationError("Building name is required")
    with transaction(db, conflict_detail="Building already exists."):
        building = models.Building(building_name=building_name.strip())
        db.add(building)
    return building


def list_rooms(db: Session) -> list[dict]:
    building_order = case(
        (models.Building.building_name == MAIN_BUILDING, 1),
        (models.Building.building_name.in_(BCH_BUILDINGS), 2),
        else_=3,
    )
    query = (
        select(models.Room, models.Building.building_name)
        .join(models.Building, models.Room.building_id == models.Building.building_id)
        .order_by(
            building_order,
            models.Building.building_name,
            models.Room.room_type,
            models.Room.room_number,
        )
    )
    return [
        {
            "id": room.room_id,
            "room_number": room.room_number,
            "building": building_name,
            "type": room.room_type,
            "status": room.status,
            "department": room.college_code or "",
            "floor": room.floor_number,
        }
        for room, building_name in db.execute(query)
    ]


def room_options(db: Session) -> dict:
    colleges = db.scalars(
        select(models.College)
        .where(models.College.college_name.not_like("%General Education%"))
        .order_by(models.College.college_name)
    )
    return {
        "statuses": models.ROOM_STATUSES,
        "roomTypes": models.ROOM_TYPES,
        "departments": [{"value": c.college_code, "label": c.college_name} for c in colleges],
        "buildings": [
            {"value": b.building_id, "label": b.building_name} for b in list_buildings(db)
        ],
    }


def next_room_number(db: Session, building_id: int | None, room_type: str | None) -> int:
    if not building_id or not room_type:
        raise ValidationError("Building ID and Room Type are required")
    building = db.get(models.Building, building_id)
    if building is None:
        raise ReferentialError("Invalid building ID")

    last = db.scalars(
        select(func.max(models.Room.room_number)).where(
            models.Room.building_id == building_id, models.Room.room_type == room_type
        )
    ).first()
    if last is not None:
        return last + 1
    if room_type in NUMBERED_ROOM_TYPES:
        return 201 if building.building_name in BCH_BUILDINGS else 101
    return 1


def _validate_room_status(status: str | None, room_type: str | None) -> None:
    if status not in models.ROOM_STATUSES:
        raise ValidationError(
            f"Invalid status. Allowed: {', '.join(models.ROOM_STATUSES)}.", ["status"]
        )
    if room_type is not None and room_type not in models.ROOM_TYPES:
        raise ValidationError(
            f"Invalid room_type. Allowed: {', '.join(models.ROOM_TYPES)}.", ["room_type"]
        )


def _room_college_code(db: Session, status: str, college_code: str | None) -> str | None:
    if status != "Occupied":
        return None
    if not college_code:
        raise ValidationError("college_code is required when a room is Occupied.", ["college_code"])
    exists = db.scalars(
        select(models.College.college_id).where(models.College.college_code == college_code)
    ).first()
    if exists is None:
        raise ReferentialError("Invalid college_code. College does not exist.")
    return college_code


def create_room(db: Session, payload: dict) -> models.Room:
    require_fields(payload, ("building_id", "room_type", "status"))
    status = payload["status"]
    room_type = payload["room_type"]
    _validate_room_status(status, room_type)
    college_code = _room_college_code(db, status, payload.get("college_code"))
    if db.get(models.Building, payload["building_id"]) is None:
        raise ReferentialError("Invalid building ID")
    room_number = payload.get("room_number") or next_room_number(db, payload["building_id"], room_type)

    with transaction(db, conflict_detail="Room number already exists for this building and type."):
        room = models.Room(
            room_number=room_number,
            building_id=payload["building_id"],
            room_type=room_type,
            status=status,
            college_code=college_code,
            floor_number=payload.get("floor_number"),
        )
        db.add(room)
    logger.info("Added room %s (%s) in building %s", room.room_number, room_type, room.building_id)
    return room


def update_room(db: Session, room_id: int, payload: dict) -> models.Room:
    room = db.get(models.Room, room_id)
    if room is None:
        raise NotFoundError("Room not found")
    status = payload.get("status")
    room_type = payload.get("room_type")
    _validate_room_status(status, room_type)
    college_code = _room_college_code(db, status, payload.get("college_code"))

    with transaction(db, conflict_detail="Room number already exists for this building and type."):
        room.status = status
        room.room_type = room_type or room.room_type
        room.college_code = college_code
    return room


# Sections


def _college_by_code(db: Session, college_code: str | None) -> models.College:
    if not college_code:
        raise ValidationError("College code is required")
    college = db.scalars(
        select(models.College).where(models.College.college_code == college_code)
    ).first()
    if college is None:
        raise NotFoundError("College not found")
    return college


def list_sections(db: Session, college_code: str | None) -> list[dict]:
    college = _college_by_code(db, college_code)
    query = (
        select(models.Section, models.Program.program_name)
        .join(models.Program, models.Section.program_id == models.Program.program_id)
        .where(models.Program.college_id == college.college_id)
        .order_by(models.Section.year_level, models.Section.section)
    )
    return [
        {
            "section_id": section.section_id,
            "year_level": section.year_level,
            "section": section.section,
            "class_size": section.class_size,
            "adviser": section.adviser,
            "program_id": section.program_id,
            "program_name": program_name,
        }
        for section, program_name in db.execute(query)
    ]


def list_college_programs(db: Session, college_code: str | None) -> list[models.Program]:
    return list_programs(db, _college_by_code(db, college_code).college_id)


def _section_values(payload: dict) -> dict:
    require_fields(payload, SECTION_FIELDS)
    if payload["class_size"] <= 0:
        raise ValidationError("class_size must be positive.", ["class_size"])
    return {
        "year_level": payload["year_level"].strip(),
        "section": payload["section"].strip(),
        "class_size": payload["class_size"],
        "program_id": payload["program_id"],
        "adviser": payload["adviser"].strip(),
    }


def _ensure_program_in_college(db: Session, program_id: int, college_id: int | None, action: str) -> None:
    program = db.get(models.Program, program_id)
    if program is None or program.college_id != college_id:
        raise ForbiddenError(f"Unauthorized to {action} this program")


def _ensure_section_unique(db: Session, values: dict, section_id: int | None = None) -> None:
    query = select(models.Section.section_id).where(
        models.Section.section == values["section"],
        models.Section.year_level == values["year_level"],
        models.Section.program_id == values["program_id"],
    )
    if section_id is not None:
        query = query.where(models.Section.section_id != section_id)
    if db.scalars(query).first() is not None:
        raise ConflictError("Section already exists in this year level and program")


def create_section(db: Session, college_code: str | None, payload: dict) -> models.Section:
    values = _section_values(payload)
    college = _college_by_code(db, college_code)
    _ensure_program_in_college(db, values["program_id"], college.college_id, "add sections to")
    _ensure_section_unique(db, values)

    with transaction(db, conflict_detail="Section already exists in this year level and program"):
        section = models.Section(college_id=college.college_id, **values)
        db.add(section)
    logger.info("Added section %s (%s) to program %s", section.section, section.year_level, section.program_id)
    return section


def update_section(db: Session, section_id: int, college_id: int | None, payload: dict) -> models.Section:
    values = _section_values(payload)
    section = db.get(models.Section, section_id)
    if section is None:
        raise NotFoundError("Section not found")
    _ensure_program_in_college(db, values["program_id"], college_id, "update section with")
    _ensure_section_unique(db, values, section_id)

    with transaction(db, conflict_detail="Section already exists in this year level and program"):
        for name, value in values.items():
            setattr(section, name, value)
        section.college_id = college_id
    return section

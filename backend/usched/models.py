from __future__ import annotations

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .db import Base

USER_TYPE_ADMIN = "ADMIN"
USER_TYPE_PROFESSOR = "PROFESSOR"

STATUS_ACTIVE = "Active"
STATUS_INACTIVE = "Inactive"
PERSON_STATUSES = [STATUS_ACTIVE, STATUS_INACTIVE]

ROOM_STATUSES = ["Available", "Occupied", "Out of Order"]
ROOM_TYPES = ["Lecture Room", "Laboratory Room", "GYM", "Computer Laboratory"]

YEAR_LEVELS = ["First Year", "Second Year", "Third Year", "Fourth Year", "Fifth Year"]

WEEKDAYS = [
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
]


class College(Base):
    __tablename__ = "college"

    college_id = Column(Integer, primary_key=True)
    college_name = Column(String(150), nullable=False)
    college_code = Column(String(20), unique=True, nullable=False)

    programs = relationship(
        "Program",
        back_populates="college",
        cascade="all, delete-orphan",
        order_by="Program.program_id",
    )


class Program(Base):
    __tablename__ = "program"
    __table_args__ = (UniqueConstraint("college_id", "program_code"),)

    program_id = Column(Integer, primary_key=True)
    college_id = Column(
        Integer, ForeignKey("college.college_id", ondelete="CASCADE"), nullable=False
    )
    program_name = Column(String(150), nullable=False)
    program_code = Column(String(20), nullable=False)

    college = relationship("College", back_populates="programs")


class CurriculumCourse(Base):
    __tablename__ = "curriculum_courses"
    __table_args__ = (
        CheckConstraint("lec >= 0", name="ck_curriculum_lec_non_negative"),
        CheckConstraint("lab >= 0", name="ck_curriculum_lab_non_negative"),
        CheckConstraint("total = lec + lab", name="ck_curriculum_total"),
    )

    id = Column(Integer, primary_key=True, index=True)
    college_id = Column(
        Integer, ForeignKey("college.college_id", ondelete="CASCADE"), nullable=False, index=True
    )
    program_id = Column(
        Integer, ForeignKey("program.program_id", ondelete="CASCADE"), nullable=False, index=True
    )
    year = Column(String(30), nullable=False)
    semester = Column(String(30), nullable=False, default="")
    course_code = Column(String(30), nullable=False)
    course_title = Column(String(255), nullable=False)
    lec = Column(Integer, nullable=False, default=0)
    lab = Column(Integer, nullable=False, default=0)
    total = Column(Integer, nullable=False, default=0)
    pre_co_requisite = Column(String(255), nullable=True)
    is_gened = Column(Boolean, nullable=False, default=False)

    college = relationship("College")
    program = relationship("Program")

    @property
    def department(self) -> str:
        return self.college.college_code

    @property
    def program_code(self) -> str:
        return self.program.program_code


class Admin(Base):
    __tablename__ = "admin"

    admin_id = Column(Integer, primary_key=True)
    first_name = Column(String(100), nullable=False)
    middle_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=False)
    extended_name = Column(String(20), nullable=True)
    email = Column(String(255), nullable=False)
    password = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default=STATUS_ACTIVE)


class Professor(Base):
    __tablename__ = "professor"

    professor_id = Column(Integer, primary_key=True)
    first_name = Column(String(100), nullable=False)
    middle_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=False)
    extended_name = Column(String(20), nullable=True)
    college_id = Column(Integer, ForeignKey("college.college_id"), nullable=False, index=True)
    faculty_type = Column(String(50), nullable=False)
    position = Column(String(50), nullable=False)
    bachelors_degree = Column(String(255), nullable=True)
    masters_degree = Column(String(255), nullable=True)
    doctorate_degree = Column(String(255), nullable=True)
    specialization = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=STATUS_ACTIVE)

    college = relationship("College")
    availability = relationship("TimeAvailability", uselist=False, back_populates="professor")


class TimeAvailability(Base):
    __tablename__ = "time_availability"

    availability_id = Column(Integer, primary_key=True)
    professor_id = Column(
        Integer, ForeignKey("professor.professor_id"), nullable=False, unique=True
    )
    monday = Column(String(255), nullable=False, default="")
    tuesday = Column(String(255), nullable=False, default="")
    wednesday = Column(String(255), nullable=False, default="")
    thursday = Column(String(255), nullable=False, default="")
    friday = Column(String(255), nullable=False, default="")
    saturday = Column(String(255), nullable=False, default="")
    sunday = Column(String(255), nullable=False, default="")

    professor = relationship("Professor", back_populates="availability")

    def as_dict(self) -> dict[str, str]:
        return {day: getattr(self, day.lower()) or "" for day in WEEKDAYS}


class User(Base):
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("user_type", "ref_id"),)

    user_id = Column(Integer, primary_key=True)
    ref_id = Column(Integer, nullable=False)
    user_type = Column(String(20), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)
    role = Column(String(50), nullable=False)
    status = Column(String(20), nullable=False, default=STATUS_ACTIVE)
    reset_token = Column(String(64), nullable=True, index=True)
    reset_expires = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Building(Base):
    __tablename__ = "building"

    building_id = Column(Integer, primary_key=True)
    building_name = Column(String(150), unique=True, nullable=False)


class Room(Base):
    __tablename__ = "room"
    __table_args__ = (UniqueConstraint("building_id", "room_type", "room_number"),)

    room_id = Column(Integer, primary_key=True)
    room_number = Column(Integer, nullable=False)
    building_id = Column(Integer, ForeignKey("building.building_id"), nullable=False)
    room_type = Column(String(50), nullable=False)
    status = Column(String(20), nullable=False, default="Available")
    college_code = Column(String(20), nullable=True)
    floor_number = Column(Integer, nullable=True)

    building = relationship("Building")


class Section(Base):
    __tablename__ = "section"
    __table_args__ = (UniqueConstraint("section", "year_level", "program_id"),)

    section_id = Column(Integer, primary_key=True)
    year_level = Column(String(30), nullable=False)
    section = Column(String(50), nullable=False)
    class_size = Column(Integer, nullable=False)
    program_id = Column(
        Integer, ForeignKey("program.program_id", ondelete="CASCADE"), nullable=False
    )
    college_id = Column(Integer, ForeignKey("college.college_id"), nullable=False)
    adviser = Column(String(150), nullable=False)

    program = relationship("Program")

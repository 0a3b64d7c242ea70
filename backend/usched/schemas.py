from __future__ import annotations

from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field


class Message(BaseModel):
    message: str


# Auth


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class SessionUser(BaseModel):
    user_id: int
    user_type: str
    position: Optional[str] = None
    department: Optional[str] = None
    role: str
    fullName: str
    email: str


class LoginResponse(BaseModel):
    message: str
    token: str
    user: SessionUser


class PasswordResetRequest(BaseModel):
    email: Optional[str] = None


class PasswordResetSubmit(BaseModel):
    token: Optional[str] = None
    new_password: Optional[str] = Field(None, alias="newPassword")

    class Config:
        populate_by_name = True


# Curriculum


class UploadResult(BaseModel):
    message: str
    inserted: int


class CurriculumCourse(BaseModel):
    id: int
    college_id: int
    program_id: int
    department: str
    program_code: str
    year: str
    semester: str
    course_code: str
    course_title: str
    lec: int
    lab: int
    total: int
    pre_co_requisite: Optional[str] = None
    is_gened: bool

    class Config:
        from_attributes = True


# Colleges and programs


class ProgramPayload(BaseModel):
    program_id: Optional[int] = None
    program_name: Optional[str] = None
    program_code: Optional[str] = None


class CollegePayload(BaseModel):
    college_name: Optional[str] = None
    college_code: Optional[str] = None
    programs: List[ProgramPayload] = []


class Program(BaseModel):
    program_id: int
    college_id: int
    program_name: str
    program_code: str

    class Config:
        from_attributes = True


class College(BaseModel):
    college_id: int
    college_name: str
    college_code: str

    class Config:
        from_attributes = True


# People and accounts


class ProfessorPayload(BaseModel):
    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    last_name: Optional[str] = None
    extended_name: Optional[str] = None
    college_id: Optional[int] = None
    faculty_type: Optional[str] = None
    position: Optional[str] = None
    bachelors_degree: Optional[str] = None
    masters_degree: Optional[str] = None
    doctorate_degree: Optional[str] = None
    specialization: Optional[Union[str, List[str]]] = None
    status: Optional[str] = None
    time_availability: Optional[Dict[str, Optional[str]]] = None
    email: Optional[str] = None


class AdminPayload(BaseModel):
    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    last_name: Optional[str] = None
    extended_name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    status: Optional[str] = None


class SendPasswordRequest(BaseModel):
    email: Optional[str] = None


class Professor(BaseModel):
    professor_id: int
    full_name: str
    first_name: str
    middle_name: Optional[str] = None
    last_name: str
    extended_name: Optional[str] = None
    college_id: int
    department: str
    faculty_type: str
    position: str
    bachelors_degree: Optional[str] = None
    masters_degree: Optional[str] = None
    doctorate_degree: Optional[str] = None
    specialization: Optional[str] = None
    status: str
    time_availability: Dict[str, str]
    user_id: Optional[int] = None
    email: Optional[str] = None


class ProvisionResult(BaseModel):
    message: str
    professor_id: Optional[int] = None
    admin_id: Optional[int] = None
    user_id: Optional[int] = None
    email_sent: bool = False


class UserSummary(BaseModel):
    user_id: int
    user_type: str
    full_name: str
    email: str
    department: Optional[str] = None
    faculty_type: Optional[str] = None
    position: Optional[str] = None
    role: str
    status: str


# Rooms and buildings


class BuildingPayload(BaseModel):
    building_name: Optional[str] = None


class Building(BaseModel):
    building_id: int
    building_name: str

    class Config:
        from_attributes = True


class RoomCreate(BaseModel):
    building_id: Optional[int] = None
    room_type: Optional[str] = None
    status: Optional[str] = None
    college_code: Optional[str] = None
    floor_number: Optional[int] = None
    room_number: Optional[int] = None


class RoomUpdate(BaseModel):
    status: Optional[str] = None
    room_type: Optional[str] = None
    college_code: Optional[str] = None


class RoomRow(BaseModel):
    id: int
    room_number: int
    building: str
    type: str
    status: str
    department: str
    floor: Optional[int] = None


class Option(BaseModel):
    value: Union[int, str]
    label: str


class RoomOptions(BaseModel):
    statuses: List[str]
    roomTypes: List[str]
    departments: List[Option]
    buildings: List[Option]


# Sections


class SectionPayload(BaseModel):
    year_level: Optional[str] = None
    section: Optional[str] = None
    class_size: Optional[int] = None
    program_id: Optional[int] = None
    adviser: Optional[str] = None


class SectionRow(BaseModel):
    section_id: int
    year_level: str
    section: str
    class_size: int
    adviser: str
    program_id: int
    program_name: str

from __future__ import annotations

import logging
from typing import List

from fastapi import Depends, FastAPI, File, Form, Header, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from . import auth, crud, identity, ingestion, models, schemas
from .config import Settings, get_settings
from .db import SessionLocal, engine
from .errors import ServiceError, ValidationError
from .mailer import Mailer

logger = logging.getLogger(__name__)

settings = get_settings()

app = FastAPI(title="U-SCHED API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


models.Base.metadata.create_all(bind=engine)


@app.exception_handler(ServiceError)
def handle_service_error(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_app_settings() -> Settings:
    return get_settings()


def get_mailer(app_settings: Settings = Depends(get_app_settings)) -> Mailer:
    return Mailer(app_settings)


def current_claims(
    authorization: str | None = Header(None),
    app_settings: Settings = Depends(get_app_settings),
) -> dict:
    return auth.decode_token(app_settings, auth.bearer_token(authorization))


# Auth


@app.post("/api/login", response_model=schemas.LoginResponse)
def login(
    payload: schemas.LoginRequest,
    db: Session = Depends(get_db),
    app_settings: Settings = Depends(get_app_settings),
):
    return auth.login(db, app_settings, payload.username, payload.password)


@app.get("/api/dashboard")
def dashboard(claims: dict = Depends(current_claims)):
    return {"message": "Welcome to the Dashboard!", "user": claims}


@app.post("/api/logout", response_model=schemas.Message)
def logout():
    return {"message": "Sign out successful."}


@app.post("/api/password-reset/request", response_model=schemas.Message)
def request_password_reset(
    payload: schemas.PasswordResetRequest,
    db: Session = Depends(get_db),
    app_settings: Settings = Depends(get_app_settings),
    mailer: Mailer = Depends(get_mailer),
):
    return {"message": auth.request_password_reset(db, app_settings, mailer, payload.email)}


@app.post("/api/password-reset/reset", response_model=schemas.Message)
def reset_password(payload: schemas.PasswordResetSubmit, db: Session = Depends(get_db)):
    return {"message": auth.reset_password(db, payload.token, payload.new_password)}


# Curriculum


@app.post("/api/curriculum/upload", response_model=schemas.UploadResult)
def upload_curriculum(
    file: UploadFile | None = File(None),
    department: str | None = Form(None),
    program: str | None = Form(None),
    db: Session = Depends(get_db),
):
    if file is None:
        raise ValidationError("No file uploaded.")
    result = ingestion.ingest_curriculum(
        db, file.filename, file.file, department=department, program=program
    )
    return {"message": "File processed and data inserted.", "inserted": result.inserted}


@app.get("/api/curriculum", response_model=List[schemas.CurriculumCourse])
def get_curriculum(
    year: str | None = None, program: str | None = None, db: Session = Depends(get_db)
):
    return crud.list_curriculum(db, year, program)


@app.get("/api/curriculum/years", response_model=List[str])
def get_curriculum_years(db: Session = Depends(get_db)):
    return crud.list_curriculum_years(db)


@app.get("/api/curriculum/curriculum_courses", response_model=List[schemas.CurriculumCourse])
def get_curriculum_by_department(department: str | None = None, db: Session = Depends(get_db)):
    return crud.list_curriculum_by_department(db, department)


# Colleges and programs


@app.get("/api/colleges", response_model=List[schemas.College])
def list_colleges(db: Session = Depends(get_db)):
    return crud.list_colleges(db)


@app.get("/api/colleges/{college_id}/programs", response_model=List[schemas.Program])
def list_programs(college_id: int, db: Session = Depends(get_db)):
    return crud.list_programs(db, college_id)


@app.post("/api/colleges", response_model=schemas.College, status_code=201)
def create_college(payload: schemas.CollegePayload, db: Session = Depends(get_db)):
    programs = [p.model_dump() for p in payload.programs]
    return crud.create_college(db, payload.college_name, payload.college_code, programs)


@app.delete("/api/colleges/programs/{program_id}", response_model=schemas.Message)
def delete_program(program_id: int, db: Session = Depends(get_db)):
    crud.delete_program(db, program_id)
    return {"message": "Program deleted successfully!"}


@app.put("/api/colleges/{college_id}", response_model=schemas.College)
def update_college(college_id: int, payload: schemas.CollegePayload, db: Session = Depends(get_db)):
    programs = [p.model_dump() for p in payload.programs]
    return crud.update_college(db, college_id, payload.college_name, payload.college_code, programs)


@app.delete("/api/colleges/{college_id}", response_model=schemas.Message)
def delete_college(college_id: int, db: Session = Depends(get_db)):
    crud.delete_college(db, college_id)
    return {"message": "College deleted successfully!"}


# Professors


@app.get("/api/professors", response_model=List[schemas.Professor])
def list_professors(db: Session = Depends(get_db)):
    return identity.list_professors(db)


@app.get("/api/professors/subjects")
def list_professor_subjects(db: Session = Depends(get_db)):
    return crud.list_course_titles(db)


@app.get("/api/professors/{professor_id}", response_model=schemas.Professor)
def get_professor(professor_id: int, db: Session = Depends(get_db)):
    return identity.get_professor(db, professor_id)


@app.post("/api/professors", response_model=schemas.ProvisionResult, status_code=201)
def create_professor(
    payload: schemas.ProfessorPayload,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    return identity.create_professor(db, mailer, payload.model_dump())


@app.put("/api/professors/{professor_id}", response_model=schemas.ProvisionResult)
def update_professor(
    professor_id: int,
    payload: schemas.ProfessorPayload,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    return identity.update_professor(db, mailer, professor_id, payload.model_dump())


@app.delete("/api/professors/{professor_id}", response_model=schemas.Message)
def delete_professor(professor_id: int, db: Session = Depends(get_db)):
    identity.delete_professor(db, professor_id)
    return {"message": "Professor deleted successfully!"}


# Users


@app.get("/api/users", response_model=List[schemas.UserSummary])
def list_users(db: Session = Depends(get_db)):
    return identity.list_users(db)


@app.post("/api/users", response_model=schemas.ProvisionResult, status_code=201)
def create_admin_user(payload: schemas.AdminPayload, db: Session = Depends(get_db)):
    return identity.create_admin(db, payload.model_dump())


@app.post("/api/users/deanchair", response_model=schemas.ProvisionResult, status_code=201)
def create_dean_chair_user(
    payload: schemas.ProfessorPayload,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    result = identity.create_professor(db, mailer, payload.model_dump(), require_email=True)
    result["message"] = "Dean/Chair user created successfully"
    return result


@app.put("/api/users/admin/{user_id}", response_model=schemas.ProvisionResult)
def update_admin_user(user_id: int, payload: schemas.AdminPayload, db: Session = Depends(get_db)):
    return identity.update_admin(db, user_id, payload.model_dump())


@app.put("/api/users/deanchair/{user_id}", response_model=schemas.ProvisionResult)
def update_dean_chair_user(
    user_id: int,
    payload: schemas.ProfessorPayload,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    return identity.update_professor_account(db, mailer, user_id, payload.model_dump())


@app.put("/api/users/professor/{user_id}", response_model=schemas.ProvisionResult)
def update_professor_user(
    user_id: int,
    payload: schemas.ProfessorPayload,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    return identity.update_professor_account(db, mailer, user_id, payload.model_dump())


@app.put("/api/users/professor/{professor_id}/send-password", response_model=schemas.ProvisionResult)
def send_professor_password(
    professor_id: int,
    payload: schemas.SendPasswordRequest,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    return identity.send_professor_password(db, mailer, professor_id, payload.email)


# Buildings and rooms


@app.get("/api/buildings", response_model=List[schemas.Building])
def list_buildings(db: Session = Depends(get_db)):
    return crud.list_buildings(db)


@app.post("/api/buildings", response_model=schemas.Building, status_code=201)
def create_building(payload: schemas.BuildingPayload, db: Session = Depends(get_db)):
    return crud.create_building(db, payload.building_name)


@app.get("/api/rooms", response_model=List[schemas.RoomRow])
def list_rooms(db: Session = Depends(get_db)):
    return crud.list_rooms(db)


@app.get("/api/rooms/room-options", response_model=schemas.RoomOptions)
def room_options(db: Session = Depends(get_db)):
    return crud.room_options(db)


@app.get("/api/rooms/latest-room/{building_id}")
def latest_room_number(building_id: int, room_type: str | None = None, db: Session = Depends(get_db)):
    return {"room_number": crud.next_room_number(db, building_id, room_type)}


@app.post("/api/rooms")
def create_room(payload: schemas.RoomCreate, db: Session = Depends(get_db)):
    room = crud.create_room(db, payload.model_dump())
    return {"message": "Room added successfully", "room_number": room.room_number}


@app.put("/api/rooms/{room_id}", response_model=schemas.Message)
def update_room(room_id: int, payload: schemas.RoomUpdate, db: Session = Depends(get_db)):
    crud.update_room(db, room_id, payload.model_dump())
    return {"message": "Room updated successfully"}


# Sections


@app.get("/api/sections/programs")
def list_section_programs(college_code: str | None = None, db: Session = Depends(get_db)):
    return [
        {"program_id": p.program_id, "program_name": p.program_name}
        for p in crud.list_college_programs(db, college_code)
    ]


@app.get("/api/sections", response_model=List[schemas.SectionRow])
def list_sections(college_code: str | None = None, db: Session = Depends(get_db)):
    return crud.list_sections(db, college_code)


@app.post("/api/sections", status_code=201)
def create_section(
    payload: schemas.SectionPayload, college_code: str | None = None, db: Session = Depends(get_db)
):
    section = crud.create_section(db, college_code, payload.model_dump())
    return {"message": "Section added successfully!", "section_id": section.section_id}


@app.put("/api/sections/{section_id}", response_model=schemas.Message)
def update_section(
    section_id: int,
    payload: schemas.SectionPayload,
    college_id: int | None = None,
    db: Session = Depends(get_db),
):
    crud.update_section(db, section_id, college_id, payload.model_dump())
    return {"message": "Section updated successfully!"}

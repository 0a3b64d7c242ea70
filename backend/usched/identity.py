"""Professor, dean/chair and admin identities with their mirrored login accounts.

A login account (``users`` row) points at exactly one concrete identity through
``(user_type, ref_id)``. In code that pair is an :data:`IdentityRef`, either a
:class:`ProfessorRef` or an :class:`AdminRef`, resolved by lookup.

Every write that touches more than one of ``professor``, ``time_availability``,
``admin`` and ``users`` runs inside a single :func:`usched.db.transaction`.
Credential emails are sent only after the commit and never undo it.
"""
from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from typing import ClassVar, Union

from sqlalchemy import delete, select
from sqlalchemy.orm import Session
from werkzeug.security import generate_password_hash

from . import models
from .db import transaction
from .errors import (
    ConflictError,
    NotFoundError,
    ReferentialError,
    ValidationError,
    require_fields,
)
from .mailer import MailDeliveryError, Mailer, credential_message

logger = logging.getLogger(__name__)

PROFESSOR_REQUIRED_FIELDS = (
    "first_name",
    "last_name",
    "college_id",
    "faculty_type",
    "position",
    "status",
)
ADMIN_REQUIRED_FIELDS = ("first_name", "last_name", "email", "password", "status")
ADMIN_UPDATE_REQUIRED_FIELDS = ("first_name", "last_name", "email", "status")

PROFESSOR_COLUMNS = (
    "first_name",
    "middle_name",
    "last_name",
    "extended_name",
    "college_id",
    "faculty_type",
    "position",
    "bachelors_degree",
    "masters_degree",
    "doctorate_degree",
    "specialization",
    "status",
)
ADMIN_COLUMNS = ("first_name", "middle_name", "last_name", "extended_name", "email", "status")

EMAIL_IN_USE = "Email is already in use."


@dataclass(frozen=True)
class ProfessorRef:
    professor_id: int
    user_type: ClassVar[str] = models.USER_TYPE_PROFESSOR

    @property
    def ref_id(self) -> int:
        return self.professor_id


@dataclass(frozen=True)
class AdminRef:
    admin_id: int
    user_type: ClassVar[str] = models.USER_TYPE_ADMIN

    @property
    def ref_id(self) -> int:
        return self.admin_id


IdentityRef = Union[ProfessorRef, AdminRef]


def identity_ref(user: models.User) -> IdentityRef:
    if user.user_type == models.USER_TYPE_PROFESSOR:
        return ProfessorRef(user.ref_id)
    if user.user_type == models.USER_TYPE_ADMIN:
        return AdminRef(user.ref_id)
    raise ValueError(f"Unknown user type {user.user_type!r}")


def resolve_identity(db: Session, ref: IdentityRef):
    if isinstance(ref, ProfessorRef):
        return db.get(models.Professor, ref.professor_id)
    return db.get(models.Admin, ref.admin_id)


def account_for(db: Session, ref: IdentityRef) -> models.User | None:
    return db.scalars(
        select(models.User).where(
            models.User.user_type == ref.user_type, models.User.ref_id == ref.ref_id
        )
    ).first()


def full_name(person) -> str:
    parts = [person.first_name, person.middle_name, person.last_name, person.extended_name]
    return " ".join(part.strip() for part in parts if part and part.strip())


def display_name(person) -> str:
    """``Last, First M. Ext`` as shown in professor listings."""
    if not person.first_name or not person.last_name:
        return "No Name Provided"
    name = f"{person.last_name}, {person.first_name}"
    if person.middle_name:
        name += f" {person.middle_name.strip()[:1]}."
    if person.extended_name:
        name += f" {person.extended_name}"
    return name


def generate_password() -> str:
    return secrets.token_urlsafe(9)


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def _clean(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _specialization(value) -> str | None:
    if isinstance(value, (list, tuple)):
        joined = ", ".join(item.strip() for item in value if item and item.strip())
        return joined or None
    return _clean(value)


def _availability_columns(availability: dict) -> dict[str, str]:
    by_day = {str(key).strip().lower(): value for key, value in availability.items()}
    return {day.lower(): (by_day.get(day.lower()) or "").strip() for day in models.WEEKDAYS}


def _validate_status(status: str) -> None:
    if status not in models.PERSON_STATUSES:
        raise ValidationError(
            f"Invalid status. Allowed: {', '.join(models.PERSON_STATUSES)}.", ["status"]
        )


def _professor_values(db: Session, payload: dict, require_email: bool = False) -> dict:
    required = PROFESSOR_REQUIRED_FIELDS + (("email",) if require_email else ())
    require_fields(payload, required)
    values = {name: _clean(payload.get(name)) for name in PROFESSOR_COLUMNS}
    values["specialization"] = _specialization(payload.get("specialization"))
    _validate_status(values["status"])
    if db.get(models.College, values["college_id"]) is None:
        raise ReferentialError("Invalid college_id. College does not exist.")
    return values


def _ensure_email_free(db: Session, email: str, user_id: int | None = None) -> None:
    query = select(models.User.user_id).where(models.User.email == email)
    if user_id is not None:
        query = query.where(models.User.user_id != user_id)
    if db.scalars(query).first() is not None:
        raise ConflictError(EMAIL_IN_USE)


def upsert_availability(db: Session, professor_id: int, availability: dict) -> models.TimeAvailability:
    columns = _availability_columns(availability)
    row = db.scalars(
        select(models.TimeAvailability).where(models.TimeAvailability.professor_id == professor_id)
    ).first()
    if row is None:
        row = models.TimeAvailability(professor_id=professor_id, **columns)
        db.add(row)
    else:
        for name, value in columns.items():
            setattr(row, name, value)
    return row


def _sync_professor_account(
    db: Session, professor: models.Professor, email: str | None
) -> tuple[models.User | None, str | None]:
    """Update the mirrored account, or create it when absent and an email is given.

    Returns the account and, when one was created, its plaintext initial password.
    """
    user = account_for(db, ProfessorRef(professor.professor_id))
    if user is None:
        if not email:
            return None, None
        password = generate_password()
        user = models.User(
            ref_id=professor.professor_id,
            user_type=models.USER_TYPE_PROFESSOR,
            email=email,
            password=hash_password(password),
            role=professor.position,
            status=professor.status,
        )
        db.add(user)
        db.flush()
        return user, password
    if email:
        user.email = email
    user.role = professor.position
    user.status = professor.status
    return user, None


def _notify_credentials(mailer: Mailer, person, email: str, password: str) -> bool:
    subject, text = credential_message(full_name(person), email, password)
    try:
        mailer.send(email, subject, text)
    except MailDeliveryError:
        logger.warning(
            "Account for %s committed but the credential email was not delivered",
            email,
            exc_info=True,
        )
        return False
    return True


def create_professor(
    db: Session, mailer: Mailer, payload: dict, require_email: bool = False
) -> dict:
    values = _professor_values(db, payload, require_email=require_email)
    email = _clean(payload.get("email"))
    if email:
        _ensure_email_free(db, email)
    availability = payload.get("time_availability")

    with transaction(db, conflict_detail=EMAIL_IN_USE):
        professor = models.Professor(**values)
        db.add(professor)
        db.flush()
        if availability is not None:
            upsert_availability(db, professor.professor_id, availability)
        user, password = _sync_professor_account(db, professor, email)

    professor_id = professor.professor_id
    user_id = user.user_id if user is not None else None
    logger.info("Created professor %s (account %s)", professor_id, user_id)

    email_sent = False
    if password is not None:
        email_sent = _notify_credentials(mailer, professor, email, password)
    return {
        "message": "Professor added successfully!",
        "professor_id": professor_id,
        "user_id": user_id,
        "email_sent": email_sent,
    }


def _apply_professor_update(
    db: Session, mailer: Mailer, professor: models.Professor, payload: dict, user_id: int | None
) -> dict:
    values = _professor_values(db, payload)
    email = _clean(payload.get("email"))
    existing = account_for(db, ProfessorRef(professor.professor_id))
    if email:
        _ensure_email_free(db, email, existing.user_id if existing is not None else None)
    availability = payload.get("time_availability")

    with transaction(db, conflict_detail=EMAIL_IN_USE):
        for name, value in values.items():
            setattr(professor, name, value)
        if availability is not None:
            upsert_availability(db, professor.professor_id, availability)
        user, password = _sync_professor_account(db, professor, email)

    logger.info("Updated professor %s", professor.professor_id)
    email_sent = False
    if password is not None:
        email_sent = _notify_credentials(mailer, professor, email, password)
    return {
        "message": "Professor updated successfully!",
        "professor_id": professor.professor_id,
        "user_id": user.user_id if user is not None else user_id,
        "email_sent": email_sent,
    }


def update_professor(db: Session, mailer: Mailer, professor_id: int, payload: dict) -> dict:
    professor = db.get(models.Professor, professor_id)
    if professor is None:
        raise NotFoundError("Professor not found")
    return _apply_professor_update(db, mailer, professor, payload, None)


def update_professor_account(db: Session, mailer: Mailer, user_id: int, payload: dict) -> dict:
    """Update a dean/chair or professor located through its account id."""
    user = db.get(models.User, user_id)
    if user is None or user.user_type != models.USER_TYPE_PROFESSOR:
        raise NotFoundError("User not found")
    professor = resolve_identity(db, identity_ref(user))
    if professor is None:
        raise NotFoundError("Professor not found")
    return _apply_professor_update(db, mailer, professor, payload, user_id)


def delete_professor(db: Session, professor_id: int) -> None:
    if db.get(models.Professor, professor_id) is None:
        raise NotFoundError("Professor not found")
    with transaction(db):
        db.execute(
            delete(models.TimeAvailability).where(
                models.TimeAvailability.professor_id == professor_id
            )
        )
        db.execute(
            delete(models.User).where(
                models.User.user_type == models.USER_TYPE_PROFESSOR,
                models.User.ref_id == professor_id,
            )
        )
        db.execute(delete(models.Professor).where(models.Professor.professor_id == professor_id))
    logger.info("Deleted professor %s with its account and availability", professor_id)


def send_professor_password(db: Session, mailer: Mailer, professor_id: int, email: str | None) -> dict:
    """Issue a fresh password for a professor's account, creating the account if needed."""
    professor = db.get(models.Professor, professor_id)
    if professor is None:
        raise NotFoundError("Professor not found")
    user = account_for(db, ProfessorRef(professor_id))
    email = _clean(email) or (user.email if user is not None else None)
    if not email:
        raise ValidationError("Missing required fields: email", ["email"])
    _ensure_email_free(db, email, user.user_id if user is not None else None)

    password = generate_password()
    with transaction(db, conflict_detail=EMAIL_IN_USE):
        if user is None:
            user = models.User(
                ref_id=professor_id,
                user_type=models.USER_TYPE_PROFESSOR,
                role=professor.position,
                status=professor.status,
            )
            db.add(user)
        user.email = email
        user.password = hash_password(password)
        db.flush()

    email_sent = _notify_credentials(mailer, professor, email, password)
    return {
        "message": "Password generated and sent." if email_sent else "Password generated.",
        "professor_id": professor_id,
        "user_id": user.user_id,
        "email_sent": email_sent,
    }


def create_admin(db: Session, payload: dict) -> dict:
    require_fields(payload, ADMIN_REQUIRED_FIELDS)
    values = {name: _clean(payload.get(name)) for name in ADMIN_COLUMNS}
    _validate_status(values["status"])
    _ensure_email_free(db, values["email"])
    hashed = hash_password(payload["password"])

    with transaction(db, conflict_detail=EMAIL_IN_USE):
        admin = models.Admin(password=hashed, **values)
        db.add(admin)
        db.flush()
        user = models.User(
            ref_id=admin.admin_id,
            user_type=models.USER_TYPE_ADMIN,
            email=values["email"],
            password=hashed,
            role=models.USER_TYPE_ADMIN,
            status=values["status"],
        )
        db.add(user)
        db.flush()

    logger.info("Created admin %s (account %s)", admin.admin_id, user.user_id)
    return {
        "message": "Admin user created successfully",
        "admin_id": admin.admin_id,
        "user_id": user.user_id,
    }


def update_admin(db: Session, user_id: int, payload: dict) -> dict:
    user = db.get(models.User, user_id)
    if user is None or user.user_type != models.USER_TYPE_ADMIN:
        raise NotFoundError("User not found")
    admin = resolve_identity(db, identity_ref(user))
    if admin is None:
        raise NotFoundError("Admin not found")
    require_fields(payload, ADMIN_UPDATE_REQUIRED_FIELDS)
    values = {name: _clean(payload.get(name)) for name in ADMIN_COLUMNS}
    _validate_status(values["status"])
    _ensure_email_free(db, values["email"], user.user_id)
    password = _clean(payload.get("password"))

    with transaction(db, conflict_detail=EMAIL_IN_USE):
        for name, value in values.items():
            setattr(admin, name, value)
        user.email = values["email"]
        user.status = values["status"]
        if password:
            hashed = hash_password(password)
            admin.password = hashed
            user.password = hashed

    logger.info("Updated admin %s", admin.admin_id)
    return {"message": "Admin user updated successfully", "admin_id": admin.admin_id, "user_id": user_id}


def professor_out(professor: models.Professor, user: models.User | None = None) -> dict:
    availability = professor.availability
    return {
        "professor_id": professor.professor_id,
        "full_name": display_name(professor),
        "first_name": professor.first_name,
        "middle_name": professor.middle_name,
        "last_name": professor.last_name,
        "extended_name": professor.extended_name,
        "college_id": professor.college_id,
        "department": professor.college.college_code,
        "faculty_type": professor.faculty_type,
        "position": professor.position,
        "bachelors_degree": professor.bachelors_degree,
        "masters_degree": professor.masters_degree,
        "doctorate_degree": professor.doctorate_degree,
        "specialization": professor.specialization,
        "status": professor.status,
        "time_availability": (
            availability.as_dict() if availability is not None else {day: "" for day in models.WEEKDAYS}
        ),
        "user_id": user.user_id if user is not None else None,
        "email": user.email if user is not None else None,
    }


def list_professors(db: Session) -> list[dict]:
    professors = db.scalars(
        select(models.Professor).order_by(models.Professor.last_name, models.Professor.first_name)
    )
    accounts = {
        user.ref_id: user
        for user in db.scalars(
            select(models.User).where(models.User.user_type == models.USER_TYPE_PROFESSOR)
        )
    }
    return [professor_out(p, accounts.get(p.professor_id)) for p in professors]


def get_professor(db: Session, professor_id: int) -> dict:
    professor = db.get(models.Professor, professor_id)
    if professor is None:
        raise NotFoundError("Professor not found")
    return professor_out(professor, account_for(db, ProfessorRef(professor_id)))


def list_users(db: Session) -> list[dict]:
    rows = []
    for user in db.scalars(select(models.User).order_by(models.User.user_id)):
        person = resolve_identity(db, identity_ref(user))
        if person is None:
            logger.warning("Account %s points at a missing %s", user.user_id, user.user_type)
            continue
        is_professor = isinstance(person, models.Professor)
        rows.append(
            {
                "user_id": user.user_id,
                "user_type": user.user_type,
                "full_name": full_name(person),
                "email": user.email,
                "department": person.college.college_code if is_professor else None,
                "faculty_type": person.faculty_type if is_professor else None,
                "position": person.position if is_professor else None,
                "role": user.role,
                "status": user.status,
            }
        )
    return rows

from __future__ import annotations

import os

os.environ["SECRET"] = "test-signing-secret-not-for-production"
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient

from helpers import RecordingMailer
from usched import models
from usched.db import SessionLocal, engine
from usched.identity import hash_password
from usched.main import app, get_mailer


@pytest.fixture(autouse=True)
def schema():
    models.Base.metadata.drop_all(bind=engine)
    models.Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def client(mailer):
    app.dependency_overrides[get_mailer] = lambda: mailer
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def ccs(db):
    college = models.College(college_name="College of Computing Studies", college_code="CCS")
    college.programs = [
        models.Program(program_name="BS Computer Science", program_code="BSCS"),
        models.Program(program_name="BS Information Technology", program_code="BSIT"),
    ]
    db.add(college)
    db.commit()
    return college


@pytest.fixture
def admin_account(db):
    hashed = hash_password("admin-pass")
    admin = models.Admin(
        first_name="Ada",
        last_name="Lovelace",
        email="admin@usched.test",
        password=hashed,
        status="Active",
    )
    db.add(admin)
    db.flush()
    user = models.User(
        ref_id=admin.admin_id,
        user_type=models.USER_TYPE_ADMIN,
        email="admin@usched.test",
        password=hashed,
        role="ADMIN",
        status="Active",
    )
    db.add(user)
    db.commit()
    return user

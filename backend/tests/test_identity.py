import pytest
from sqlalchemy import select

from helpers import count, fail_on
from usched import identity, models
from usched.errors import (
    ConflictError,
    MissingFieldsError,
    NotFoundError,
    ReferentialError,
    StorageError,
    ValidationError,
)


def professor_payload(college_id, **overrides):
    payload = {
        "first_name": "Grace",
        "middle_name": "Brewster",
        "last_name": "Hopper",
        "extended_name": None,
        "college_id": college_id,
        "faculty_type": "Full-Time",
        "position": "Chair",
        "bachelors_degree": "BS Mathematics",
        "masters_degree": "MS Mathematics",
        "doctorate_degree": None,
        "specialization": ["Compilers", "Programming Languages"],
        "status": "Active",
        "time_availability": {"Monday": "7:00a-12:00p", "wednesday": "1:00p-5:00p"},
        "email": "grace@usched.test",
    }
    payload.update(overrides)
    return payload


def test_identity_ref_round_trip(db, ccs, mailer):
    result = identity.create_professor(db, mailer, professor_payload(ccs.college_id))
    user = db.get(models.User, result["user_id"])

    ref = identity.identity_ref(user)
    assert ref == identity.ProfessorRef(result["professor_id"])
    assert ref.user_type == models.USER_TYPE_PROFESSOR
    assert identity.resolve_identity(db, ref).last_name == "Hopper"
    assert identity.account_for(db, ref).user_id == user.user_id


def test_create_professor_with_account(db, ccs, mailer):
    result = identity.create_professor(db, mailer, professor_payload(ccs.college_id))

    professor = db.get(models.Professor, result["professor_id"])
    assert professor.specialization == "Compilers, Programming Languages"
    assert professor.availability.as_dict()["Monday"] == "7:00a-12:00p"
    assert professor.availability.as_dict()["Wednesday"] == "1:00p-5:00p"
    assert professor.availability.as_dict()["Sunday"] == ""

    user = db.get(models.User, result["user_id"])
    assert user.email == "grace@usched.test"
    assert user.role == "Chair"
    assert user.status == "Active"
    assert user.ref_id == professor.professor_id

    assert result["email_sent"] is True
    assert mailer.sent[0]["to"] == "grace@usched.test"
    assert "Temporary password" in mailer.sent[0]["text"]


def test_create_professor_without_email_has_no_account(db, ccs, mailer):
    result = identity.create_professor(
        db, mailer, professor_payload(ccs.college_id, email=None, time_availability=None)
    )
    assert result["user_id"] is None
    assert count(db, models.User) == 0
    assert count(db, models.TimeAvailability) == 0
    assert mailer.sent == []


def test_missing_fields_are_enumerated(db, ccs, mailer):
    payload = professor_payload(ccs.college_id, first_name="  ", position=None, status=None)
    with pytest.raises(MissingFieldsError) as excinfo:
        identity.create_professor(db, mailer, payload)
    assert excinfo.value.fields == ["first_name", "position", "status"]
    assert "first_name, position, status" in excinfo.value.detail
    assert count(db, models.Professor) == 0


def test_dean_chair_requires_email(db, ccs, mailer):
    with pytest.raises(MissingFieldsError) as excinfo:
        identity.create_professor(db, mailer, professor_payload(ccs.college_id, email=""), require_email=True)
    assert excinfo.value.fields == ["email"]


def test_invalid_status_is_rejected(db, ccs, mailer):
    with pytest.raises(ValidationError, match="Invalid status"):
        identity.create_professor(db, mailer, professor_payload(ccs.college_id, status="Retired"))


def test_unknown_college_writes_nothing(db, ccs, mailer):
    with pytest.raises(ReferentialError):
        identity.create_professor(db, mailer, professor_payload(9999))
    assert count(db, models.Professor) == 0
    assert count(db, models.User) == 0


def test_duplicate_email_is_a_conflict(db, ccs, mailer, admin_account):
    with pytest.raises(ConflictError):
        identity.create_professor(db, mailer, professor_payload(ccs.college_id, email="admin@usched.test"))
    assert count(db, models.Professor) == 0


def test_failed_account_insert_rolls_back_professor(db, ccs, mailer):
    with fail_on("INSERT INTO users"):
        with pytest.raises(StorageError):
            identity.create_professor(db, mailer, professor_payload(ccs.college_id))

    assert count(db, models.Professor) == 0
    assert count(db, models.TimeAvailability) == 0
    assert count(db, models.User) == 0
    assert mailer.sent == []


def test_mail_failure_keeps_committed_account(db, ccs, mailer):
    mailer.fail = True
    result = identity.create_professor(db, mailer, professor_payload(ccs.college_id))
    assert result["email_sent"] is False
    assert count(db, models.Professor) == 1
    assert count(db, models.User) == 1


def test_update_inserts_missing_availability_once(db, ccs, mailer):
    created = identity.create_professor(
        db, mailer, professor_payload(ccs.college_id, time_availability=None)
    )
    professor_id = created["professor_id"]
    assert count(db, models.TimeAvailability) == 0

    for slot in ("8:00a-10:00a", "9:00a-11:00a"):
        identity.update_professor(
            db,
            mailer,
            professor_id,
            professor_payload(ccs.college_id, time_availability={"Friday": slot}),
        )

    rows = list(db.scalars(select(models.TimeAvailability)))
    assert len(rows) == 1
    assert rows[0].friday == "9:00a-11:00a"
    assert rows[0].monday == ""


def test_update_by_account_id_mirrors_user(db, ccs, mailer):
    created = identity.create_professor(db, mailer, professor_payload(ccs.college_id))
    identity.update_professor_account(
        db,
        mailer,
        created["user_id"],
        professor_payload(
            ccs.college_id, position="Dean", status="Inactive", email="hopper@usched.test"
        ),
    )

    user = db.get(models.User, created["user_id"])
    db.refresh(user)
    assert (user.role, user.status, user.email) == ("Dean", "Inactive", "hopper@usched.test")
    assert db.get(models.Professor, created["professor_id"]).position == "Dean"
    assert count(db, models.User) == 1


def test_update_creates_account_when_email_first_supplied(db, ccs, mailer):
    created = identity.create_professor(db, mailer, professor_payload(ccs.college_id, email=None))
    result = identity.update_professor(
        db, mailer, created["professor_id"], professor_payload(ccs.college_id, email="new@usched.test")
    )
    assert result["user_id"] is not None
    assert result["email_sent"] is True
    assert count(db, models.User) == 1


def test_update_unknown_targets(db, ccs, mailer, admin_account):
    with pytest.raises(NotFoundError):
        identity.update_professor(db, mailer, 4242, professor_payload(ccs.college_id))
    with pytest.raises(NotFoundError):
        identity.update_professor_account(db, mailer, admin_account.user_id, professor_payload(ccs.college_id))


def test_delete_removes_all_three_rows(db, ccs, mailer):
    created = identity.create_professor(db, mailer, professor_payload(ccs.college_id))
    identity.delete_professor(db, created["professor_id"])
    assert count(db, models.Professor) == 0
    assert count(db, models.User) == 0
    assert count(db, models.TimeAvailability) == 0


def test_delete_missing_professor(db, ccs):
    with pytest.raises(NotFoundError):
        identity.delete_professor(db, 77)


def test_delete_is_all_or_nothing(db, ccs, mailer):
    created = identity.create_professor(db, mailer, professor_payload(ccs.college_id))
    with fail_on("DELETE FROM professor"):
        with pytest.raises(StorageError):
            identity.delete_professor(db, created["professor_id"])
    assert count(db, models.Professor) == 1
    assert count(db, models.User) == 1
    assert count(db, models.TimeAvailability) == 1


def test_send_password_creates_then_resets_account(db, ccs, mailer):
    created = identity.create_professor(db, mailer, professor_payload(ccs.college_id, email=None))
    first = identity.send_professor_password(db, mailer, created["professor_id"], "prof@usched.test")
    first_hash = db.get(models.User, first["user_id"]).password

    second = identity.send_professor_password(db, mailer, created["professor_id"], None)
    user = db.get(models.User, second["user_id"])
    db.refresh(user)
    assert second["user_id"] == first["user_id"]
    assert user.password != first_hash
    assert len(mailer.sent) == 2


def test_admin_create_and_update(db):
    created = identity.create_admin(
        db,
        {
            "first_name": "Alan",
            "last_name": "Turing",
            "email": "alan@usched.test",
            "password": "enigma",
            "status": "Active",
        },
    )
    user = db.get(models.User, created["user_id"])
    assert user.role == "ADMIN"
    assert isinstance(identity.identity_ref(user), identity.AdminRef)

    identity.update_admin(
        db,
        created["user_id"],
        {
            "first_name": "Alan",
            "middle_name": "Mathison",
            "last_name": "Turing",
            "email": "turing@usched.test",
            "status": "Active",
            "password": "bombe",
        },
    )
    admin = db.get(models.Admin, created["admin_id"])
    db.refresh(admin)
    db.refresh(user)
    assert admin.middle_name == "Mathison"
    assert user.email == "turing@usched.test"
    assert admin.password == user.password


def test_admin_missing_fields(db):
    with pytest.raises(MissingFieldsError) as excinfo:
        identity.create_admin(db, {"first_name": "Alan"})
    assert excinfo.value.fields == ["last_name", "email", "password", "status"]
    assert count(db, models.Admin) == 0


def test_list_users_covers_both_identity_kinds(db, ccs, mailer, admin_account):
    identity.create_professor(db, mailer, professor_payload(ccs.college_id))
    users = identity.list_users(db)
    assert [u["user_type"] for u in users] == ["ADMIN", "PROFESSOR"]
    assert users[0]["full_name"] == "Ada Lovelace"
    assert users[1]["full_name"] == "Grace Brewster Hopper"
    assert users[1]["department"] == "CCS"


def test_display_name():
    professor = models.Professor(first_name="Grace", middle_name="Brewster", last_name="Hopper", extended_name="Jr.")
    assert identity.display_name(professor) == "Hopper, Grace B. Jr."

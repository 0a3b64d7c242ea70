from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone

import jwt
from sqlalchemy import select
from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash, generate_password_hash

from . import models
from .config import RESET_TTL_MINUTES, TOKEN_TTL_SECONDS, Settings
from .db import transaction
from .errors import AuthenticationError, ValidationError
from .identity import full_name, hash_password, identity_ref, resolve_identity
from .mailer import MailDeliveryError, Mailer, reset_message

logger = logging.getLogger(__name__)

TOKEN_ALGORITHM = "HS256"

INVALID_CREDENTIALS = "Invalid credentials."
RESET_REQUESTED = "If that email exists, a reset link has been sent."
RESET_INVALID = "Password reset token is invalid or has expired."


# Built at import so an unknown email costs one hash check, like a wrong password.
DUMMY_HASH = generate_password_hash(secrets.token_hex(16))


def verify_password(stored_hash: str | None, password: str) -> bool:
    if not stored_hash:
        check_password_hash(DUMMY_HASH, password)
        return False
    try:
        return check_password_hash(stored_hash, password)
    except ValueError:
        logger.warning("Stored password hash has an unrecognized format")
        return False


def authenticate(db: Session, email: str, password: str) -> models.User:
    """Return the account for valid credentials.

    Unknown email and wrong password raise the same error, and both paths run
    one hash comparison.
    """
    user = db.scalars(select(models.User).where(models.User.email == email)).first()
    if not verify_password(user.password if user is not None else None, password):
        raise AuthenticationError(INVALID_CREDENTIALS)
    return user


def session_user(db: Session, user: models.User) -> dict:
    person = resolve_identity(db, identity_ref(user))
    position = department = None
    if isinstance(person, models.Professor):
        position = person.position
        department = person.college.college_code
    return {
        "user_id": user.user_id,
        "user_type": user.user_type,
        "position": position,
        "department": department,
        "role": user.role,
        "fullName": full_name(person) if person is not None else "User",
        "email": user.email,
    }


def issue_token(settings: Settings, profile: dict, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    claims = {
        "user_id": profile["user_id"],
        "email": profile["email"],
        "user_type": profile["user_type"],
        "role": profile["role"],
        "position": profile["position"],
        "department": profile["department"],
        "iat": now,
        "exp": now + timedelta(seconds=TOKEN_TTL_SECONDS),
    }
    return jwt.encode(claims, settings.secret, algorithm=TOKEN_ALGORITHM)


def decode_token(settings: Settings, token: str | None) -> dict:
    if not token:
        raise AuthenticationError("No token provided.")
    try:
        return jwt.decode(token, settings.secret, algorithms=[TOKEN_ALGORITHM])
    except jwt.InvalidTokenError as exc:
        raise AuthenticationError("Invalid token.") from exc


def bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


def login(db: Session, settings: Settings, username: str | None, password: str | None) -> dict:
    if not username or not password:
        raise ValidationError("Username and password are required.")
    user = authenticate(db, username, password)
    profile = session_user(db, user)
    logger.info("Login for account %s", user.user_id)
    return {
        "message": "Login successful.",
        "token": issue_token(settings, profile),
        "user": profile,
    }


def request_password_reset(
    db: Session, settings: Settings, mailer: Mailer, email: str | None
) -> str:
    if not email:
        raise ValidationError("Email is required.")
    user = db.scalars(select(models.User).where(models.User.email == email)).first()
    if user is None:
        return RESET_REQUESTED

    token = secrets.token_hex(20)
    with transaction(db):
        user.reset_token = token
        user.reset_expires = datetime.now(timezone.utc) + timedelta(minutes=RESET_TTL_MINUTES)

    link = f"{settings.frontend_url}/reset-password/set?token={token}"
    subject, text, html = reset_message(link)
    try:
        mailer.send(email, subject, text, html)
    except MailDeliveryError:
        logger.exception("Password reset email for account %s was not delivered", user.user_id)
    return RESET_REQUESTED


def reset_password(db: Session, token: str | None, new_password: str | None) -> str:
    if not token or not new_password:
        raise ValidationError("Token and new password are required.")
    user = db.scalars(
        select(models.User).where(
            models.User.reset_token == token,
            models.User.reset_expires > datetime.now(timezone.utc),
        )
    ).first()
    if user is None:
        raise ValidationError(RESET_INVALID)

    hashed = hash_password(new_password)
    with transaction(db):
        user.password = hashed
        user.reset_token = None
        user.reset_expires = None
        if user.user_type == models.USER_TYPE_ADMIN:
            admin = resolve_identity(db, identity_ref(user))
            if admin is not None:
                admin.password = hashed
    logger.info("Password reset for account %s", user.user_id)
    return "Password has been reset successfully."

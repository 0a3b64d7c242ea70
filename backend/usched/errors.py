from __future__ import annotations

from typing import Iterable


class ServiceError(Exception):
    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def to_body(self) -> dict:
        return {"detail": self.detail}


class ValidationError(ServiceError):
    status_code = 400

    def __init__(self, detail: str, fields: Iterable[str] | None = None):
        super().__init__(detail)
        self.fields = list(fields) if fields else []

    def to_body(self) -> dict:
        body = super().to_body()
        if self.fields:
            body["fields"] = self.fields
        return body


class MissingFieldsError(ValidationError):
    def __init__(self, fields: Iterable[str]):
        fields = list(fields)
        super().__init__(f"Missing required fields: {', '.join(fields)}", fields)


class AuthenticationError(ServiceError):
    status_code = 401


class NotFoundError(ServiceError):
    status_code = 404


class ReferentialError(ServiceError):
    status_code = 400


class ForbiddenError(ServiceError):
    status_code = 403


class ConflictError(ServiceError):
    status_code = 409


class StorageError(ServiceError):
    """Engine failure during a write; the underlying message is kept for logs only."""

    status_code = 500

    def __init__(self, detail: str, cause: str | None = None):
        super().__init__(detail)
        self.cause = cause


def require_fields(payload: dict, names: Iterable[str]) -> None:
    missing = [name for name in names if _is_blank(payload.get(name))]
    if missing:
        raise MissingFieldsError(missing)


def _is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False

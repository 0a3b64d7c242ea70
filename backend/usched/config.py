from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_DATABASE_PATH = Path(__file__).resolve().parents[1] / "usched.db"
KNOWN_INSECURE_SECRETS = {"default_secret_key", "secret", "changeme"}

TOKEN_TTL_SECONDS = 3600
RESET_TTL_MINUTES = 60


class ConfigurationError(RuntimeError):
    pass


@dataclass(frozen=True)
class Settings:
    secret: str
    database_url: str = f"sqlite:///{DEFAULT_DATABASE_PATH}"
    host: str = "127.0.0.1"
    port: int = 3001
    smtp_host: str = "smtp-relay.brevo.com"
    smtp_port: int = 587
    email_user: str = ""
    email_pass: str = ""
    mail_from: str = ""
    frontend_url: str = "http://localhost:5173"
    log_level: str = "INFO"

    @property
    def mail_configured(self) -> bool:
        return bool(self.smtp_host and self.email_user and self.email_pass)

    @property
    def sender(self) -> str:
        return self.mail_from or f"U-SCHED <{self.email_user}>"


def _int_env(environ, name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc


def load_settings(environ=None) -> Settings:
    """Read settings from the environment (and a .env file when present).

    A missing or well-known signing secret is a startup error.
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    secret = (environ.get("SECRET") or "").strip()
    if not secret:
        raise ConfigurationError("SECRET is not set; refusing to start")
    if secret.lower() in KNOWN_INSECURE_SECRETS:
        raise ConfigurationError("SECRET uses a publicly known value; refusing to start")

    return Settings(
        secret=secret,
        database_url=environ.get("DATABASE_URL") or Settings.database_url,
        host=environ.get("HOST") or Settings.host,
        port=_int_env(environ, "PORT", Settings.port),
        smtp_host=environ.get("SMTP_HOST") or Settings.smtp_host,
        smtp_port=_int_env(environ, "SMTP_PORT", Settings.smtp_port),
        email_user=environ.get("EMAIL_USER", ""),
        email_pass=environ.get("EMAIL_PASS", ""),
        mail_from=environ.get("MAIL_FROM", ""),
        frontend_url=(environ.get("FRONTEND_URL") or Settings.frontend_url).rstrip("/"),
        log_level=(environ.get("LOG_LEVEL") or Settings.log_level).upper(),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()

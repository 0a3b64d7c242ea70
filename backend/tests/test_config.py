import pytest

from usched.config import ConfigurationError, Settings, load_settings


def test_missing_secret_refuses_to_start():
    with pytest.raises(ConfigurationError, match="SECRET is not set"):
        load_settings({})
    with pytest.raises(ConfigurationError):
        load_settings({"SECRET": "   "})


@pytest.mark.parametrize("secret", ["default_secret_key", "Secret", "changeme"])
def test_well_known_secret_refuses_to_start(secret):
    with pytest.raises(ConfigurationError, match="publicly known"):
        load_settings({"SECRET": secret})


def test_defaults():
    settings = load_settings({"SECRET": "s3cr3t-value"})
    assert settings.port == 3001
    assert settings.smtp_host == "smtp-relay.brevo.com"
    assert settings.smtp_port == 587
    assert settings.frontend_url == "http://localhost:5173"
    assert settings.database_url == Settings.database_url
    assert settings.mail_configured is False


def test_environment_overrides():
    settings = load_settings(
        {
            "SECRET": "s3cr3t-value",
            "DATABASE_URL": "sqlite:///tmp/usched.db",
            "PORT": "8080",
            "SMTP_PORT": " ",
            "EMAIL_USER": "mailer@usched.test",
            "EMAIL_PASS": "pw",
            "FRONTEND_URL": "https://usched.example.edu/",
            "LOG_LEVEL": "debug",
        }
    )
    assert settings.database_url == "sqlite:///tmp/usched.db"
    assert settings.port == 8080
    assert settings.smtp_port == 587
    assert settings.frontend_url == "https://usched.example.edu"
    assert settings.log_level == "DEBUG"
    assert settings.mail_configured is True
    assert settings.sender == "U-SCHED <mailer@usched.test>"


def test_non_numeric_port_is_a_configuration_error():
    with pytest.raises(ConfigurationError, match="PORT must be an integer"):
        load_settings({"SECRET": "s3cr3t-value", "PORT": "eighty"})

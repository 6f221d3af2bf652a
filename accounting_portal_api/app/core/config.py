"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so that
the API starts in development without any configuration.  In a
production deployment you should at least override ``SECRET_KEY``,
the SMTP credentials and ``ADMIN_EMAIL``.
"""

import os
from dataclasses import dataclass


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Accounting Services Portal API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = _env_flag("DEBUG", "false")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    # Optional path of a log file.  When empty, logs go to the console only.
    log_file: str = os.getenv("LOG_FILE", "")

    # Shared secret used to verify bearer tokens minted by the identity
    # provider.  Tokens carry ``sub`` (user id), ``email``, ``name`` and
    # ``role`` claims.
    secret_key: str = os.getenv("SECRET_KEY", "change_me")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))
    algorithm: str = os.getenv("ALGORITHM", "HS256")

    # Optional static token for the staff back office.  Requests carrying
    # this token are authenticated as a staff user and may change request
    # statuses.  Use with care.
    staff_api_token: str = os.getenv("STAFF_API_TOKEN", "")

    # Path of the SQLite database holding the request collections.  A
    # relative path is resolved against the project root by ``core.db``.
    database_url: str = os.getenv("DATABASE_URL", "accounting_portal.db")

    # Outbound email.  When ``email_enabled`` is false or no SMTP host is
    # configured, notifications are logged and skipped.
    email_enabled: bool = _env_flag("EMAIL_ENABLED", "true")
    smtp_host: str = os.getenv("SMTP_HOST", "")
    smtp_port: int = int(os.getenv("SMTP_PORT", "587"))
    smtp_username: str = os.getenv("SMTP_USERNAME", "")
    smtp_password: str = os.getenv("SMTP_PASSWORD", "")
    smtp_use_tls: bool = _env_flag("SMTP_USE_TLS", "true")
    email_from: str = os.getenv("EMAIL_FROM", "no-reply@example.com")
    # Mailbox of the practice staff receiving new request notifications.
    # Falls back to ``email_from`` when unset.
    admin_email: str = os.getenv("ADMIN_EMAIL", "")

    # Reject submissions for requests that staff already moved to
    # ``in-progress`` or ``completed``.  Disable only to reproduce the
    # legacy client-only behaviour.
    enforce_submission_lock: bool = _env_flag("ENFORCE_SUBMISSION_LOCK", "true")


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Because the dataclass
# computes values at instantiation time, environment variables should
# be set before importing this module.
settings = Settings()

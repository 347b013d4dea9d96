"""Environment-driven configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from .session import TARGET_URL

DEFAULT_DATABASE_URL = "sqlite:///soco_monitor.db"


def _flag(value: str | None, default: bool) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _split_emails(value: str | None) -> Tuple[str, ...]:
    if not value:
        return ()
    return tuple(part.strip() for part in value.split(",") if part.strip())


@dataclass(frozen=True)
class SmtpSettings:
    host: str
    port: int = 587
    user: Optional[str] = None
    password: Optional[str] = None
    sender: Optional[str] = None
    use_tls: bool = True
    timeout: int = 30


@dataclass(frozen=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    target_url: str = TARGET_URL
    headless: bool = True
    smtp: Optional[SmtpSettings] = None
    notification_email_to: Tuple[str, ...] = field(default_factory=tuple)
    slack_webhook: Optional[str] = None
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ

        smtp = None
        smtp_host = (env.get("SMTP_HOST") or "").strip()
        if smtp_host:
            user = (env.get("SMTP_USER") or "").strip() or None
            smtp = SmtpSettings(
                host=smtp_host,
                port=int(env.get("SMTP_PORT") or 587),
                user=user,
                password=env.get("SMTP_PASS") or None,
                sender=(env.get("EMAIL_FROM") or "").strip() or user,
                use_tls=_flag(env.get("SMTP_TLS"), True),
            )

        return cls(
            database_url=env.get("DATABASE_URL") or DEFAULT_DATABASE_URL,
            target_url=env.get("TARGET_URL") or TARGET_URL,
            headless=_flag(env.get("HEADLESS"), True),
            smtp=smtp,
            notification_email_to=_split_emails(env.get("NOTIFICATION_EMAIL_TO")),
            slack_webhook=(env.get("SLACK_WEBHOOK") or "").strip() or None,
            api_host=env.get("API_HOST") or "127.0.0.1",
            api_port=int(env.get("API_PORT") or 8000),
        )

"""Notification helpers for delivering change sets to external channels."""

from __future__ import annotations

import html
import logging
import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from typing import Callable, List, Optional, Protocol, Sequence, Tuple

import requests

from .config import Settings, SmtpSettings
from .models import ListingRecord

logger = logging.getLogger(__name__)

SUBJECT_PREFIX = "[청년안심주택]"
MAX_ITEMS_PER_SLACK_MESSAGE = 10


class Notifier(Protocol):
    """Protocol defining the notifier contract."""

    def send_change_notification(self, changes: Sequence[ListingRecord]) -> None:
        ...


def render_change_email(changes: Sequence[ListingRecord]) -> Tuple[str, str]:
    """Render a subject line and HTML body for a change set."""
    subject = f"{SUBJECT_PREFIX} {len(changes)}건의 변동사항이 감지되었습니다."
    items = []
    for item in changes:
        detail_link = ""
        if item.detail_url:
            detail_link = (
                f'<p style="margin: 0;"><a href="{html.escape(item.detail_url)}">상세보기</a></p>'
            )
        items.append(
            '<div style="margin-bottom: 20px; border-bottom: 1px solid #eee; padding-bottom: 10px;">'
            f'<h3 style="margin: 0 0 5px 0;">{html.escape(item.name)}</h3>'
            f'<p style="margin: 0 0 5px 0; color: #666;">{html.escape(item.district)}</p>'
            f'<p style="margin: 0 0 5px 0;"><strong>상태:</strong> '
            f"{html.escape(item.description or '정보 없음')}</p>"
            f"{detail_link}"
            "</div>"
        )
    body = (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        "<h2>청년안심주택 변동 알림</h2>"
        "<p>다음 주택들의 상태가 변경되었습니다:</p>"
        f'<div style="background-color: #f9f9f9; padding: 15px; border-radius: 5px;">{"".join(items)}</div>'
        '<p style="font-size: 12px; color: #999; margin-top: 20px;">본 메일은 자동 발송되었습니다.</p>'
        "</div>"
    )
    return subject, body


def render_change_text(changes: Sequence[ListingRecord]) -> str:
    lines = [f":house: {len(changes)}건의 변동사항이 감지되었습니다"]
    for item in changes[:MAX_ITEMS_PER_SLACK_MESSAGE]:
        line = f"- {item.name} ({item.district}) | {item.description or '정보 없음'}"
        if item.detail_url:
            line += f" | {item.detail_url}"
        lines.append(line)
    if len(changes) > MAX_ITEMS_PER_SLACK_MESSAGE:
        lines.append(f"...외 {len(changes) - MAX_ITEMS_PER_SLACK_MESSAGE}건")
    return "\n".join(lines)


def render_test_email() -> Tuple[str, str]:
    subject = f"{SUBJECT_PREFIX} 테스트 메일"
    body = (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        "<h2>청년안심주택 알림 테스트</h2>"
        "<p>메일 발송 설정이 정상적으로 동작합니다.</p>"
        '<p style="font-size: 12px; color: #999; margin-top: 20px;">본 메일은 자동 발송되었습니다.</p>'
        "</div>"
    )
    return subject, body


@dataclass
class EmailNotifier:
    """Send change notifications over SMTP, one message per recipient."""

    smtp: SmtpSettings
    recipients: Callable[[], List[str]]

    def send_change_notification(self, changes: Sequence[ListingRecord]) -> None:
        if not changes:
            return
        recipients = self.recipients()
        if not recipients:
            logger.warning("No notification email address configured.")
            return

        subject, body = render_change_email(changes)
        delivered = 0
        for recipient in recipients:
            try:
                self._send(recipient, subject, body)
                delivered += 1
            except Exception:  # noqa: BLE001
                logger.exception("Failed to send notification email to %s", recipient)
        logger.info("Notification sent to %d recipient(s) for %d changes.",
                    delivered, len(changes))

    def send_test(self, recipient: str) -> bool:
        """Send a fixed test message to one address. Returns False on failure."""
        subject, body = render_test_email()
        try:
            self._send(recipient, subject, body)
        except Exception:  # noqa: BLE001
            logger.exception("Failed to send notification email to %s", recipient)
            return False
        logger.info("Test email sent to %s", recipient)
        return True

    def _send(self, recipient: str, subject: str, body: str) -> None:
        message = EmailMessage()
        message["From"] = self.smtp.sender
        message["To"] = recipient
        message["Subject"] = subject
        message.set_content("HTML 메일을 지원하는 클라이언트에서 확인해 주세요.")
        message.add_alternative(body, subtype="html")

        with smtplib.SMTP(self.smtp.host, self.smtp.port, timeout=self.smtp.timeout) as client:
            client.ehlo()
            if self.smtp.use_tls:
                client.starttls()
                client.ehlo()
            if self.smtp.user and self.smtp.password:
                client.login(self.smtp.user, self.smtp.password)
            client.send_message(message)


@dataclass
class SlackNotifier:
    """Send change summaries to Slack via Incoming Webhook."""

    webhook_url: str
    timeout: int = 10

    def send_change_notification(self, changes: Sequence[ListingRecord]) -> None:
        if not changes:
            return
        response = requests.post(
            self.webhook_url,
            json={"text": render_change_text(changes)},
            timeout=self.timeout,
        )
        response.raise_for_status()


@dataclass
class CompositeNotifier:
    """Fan-out notifier that forwards change sets to multiple channels."""

    notifiers: List[Notifier] = field(default_factory=list)

    def send_change_notification(self, changes: Sequence[ListingRecord]) -> None:
        for notifier in self.notifiers:
            try:
                notifier.send_change_notification(changes)
            except Exception:  # noqa: BLE001
                logger.exception("Failed to deliver notification via %s", type(notifier).__name__)


def build_email_notifier(
    settings: Settings,
    subscriber_emails: Optional[Callable[[], List[str]]] = None,
) -> EmailNotifier | None:
    """Email goes to the configured addresses plus active subscribers."""
    if settings.smtp is None:
        return None
    fixed = list(settings.notification_email_to)

    def recipients() -> List[str]:
        emails = list(fixed)
        if subscriber_emails is not None:
            emails.extend(subscriber_emails())
        return list(dict.fromkeys(emails))

    return EmailNotifier(smtp=settings.smtp, recipients=recipients)


def build_notifier(
    settings: Settings,
    subscriber_emails: Optional[Callable[[], List[str]]] = None,
    email: Optional[EmailNotifier] = None,
) -> CompositeNotifier | None:
    """Construct a notifier from configuration.

    ``email`` reuses an already-built email channel instead of creating one.
    """
    notifiers: list[Notifier] = []

    if email is None:
        email = build_email_notifier(settings, subscriber_emails)
    if email is not None:
        notifiers.append(email)

    if settings.slack_webhook:
        notifiers.append(SlackNotifier(webhook_url=settings.slack_webhook))

    if not notifiers:
        return None
    return CompositeNotifier(notifiers=notifiers)


__all__ = [
    "CompositeNotifier",
    "EmailNotifier",
    "Notifier",
    "SlackNotifier",
    "build_email_notifier",
    "build_notifier",
    "render_change_email",
    "render_change_text",
    "render_test_email",
]

"""Status-change notification mails."""

import logging
import webbrowser
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol
from urllib.parse import quote

from .config import Config
from .dates import format_display_date
from .gmail_client import create_draft
from .models import Application, status_to_label

logger = logging.getLogger(__name__)

NO_RECIPIENT_WARNING = "لا يوجد بريد لجهة الاتصال لإرسال الإشعار"


@dataclass
class MailMessage:
    to: str
    subject: str
    body: str


@dataclass
class NotificationResult:
    """Outcome of a notification attempt. Never raised as an error."""

    sent: bool
    message: str
    recipient: Optional[str] = None


def compose_status_change(previous: Application, updated: Application) -> Optional[MailMessage]:
    """Compose the mail announcing a status change, or None without a recipient."""
    to = updated.contact_email or ""
    if not to:
        return None

    subject = f"تحديث حالة طلب وظيفي - {updated.company_name}"
    lines = [
        f"مرحبًا {updated.contact_name or ''}".strip(),
        "",
        f"تم تحديث حالة الطلب الخاص بوظيفة {updated.job_title} لدى {updated.company_name}.",
        f"الحالة القديمة: {status_to_label(previous.status)}",
        f"الحالة الجديدة: {status_to_label(updated.status)}",
        f"رابط الإعلان: {updated.job_link}" if updated.job_link else "",
        f"تاريخ التقديم: {format_display_date(updated.applied_at)}",
        "",
        "مع خالص التحية",
    ]
    body = "\n".join(line for line in lines if line)
    return MailMessage(to=to, subject=subject, body=body)


def build_mailto_url(message: MailMessage) -> str:
    return (
        f"mailto:{quote(message.to, safe='@')}"
        f"?subject={quote(message.subject, safe='')}"
        f"&body={quote(message.body, safe='')}"
    )


class Notifier(Protocol):
    def notify(self, previous: Application, updated: Application) -> NotificationResult:
        ...


class NullNotifier:
    """Composes nothing and sends nothing."""

    def notify(self, previous: Application, updated: Application) -> NotificationResult:
        return NotificationResult(sent=False, message="Notifications are disabled")


class MailtoNotifier:
    """Hands the composed mail to the desktop mail handler."""

    def __init__(self, opener: Callable[[str], Any] = webbrowser.open):
        self.opener = opener

    def notify(self, previous: Application, updated: Application) -> NotificationResult:
        message = compose_status_change(previous, updated)
        if message is None:
            logger.warning(f"No contact email for {updated.company_name}, notification skipped")
            return NotificationResult(sent=False, message=NO_RECIPIENT_WARNING)

        opened = self.opener(build_mailto_url(message))
        if opened is False:
            logger.warning(f"No mail handler accepted the message to {message.to}")
            return NotificationResult(
                sent=False, message="تعذر فتح عميل البريد", recipient=message.to
            )

        logger.info(f"Prepared status-change mail to {message.to}")
        return NotificationResult(
            sent=True, message=f"تم تحضير رسالة البريد إلى: {message.to}", recipient=message.to
        )


class GmailDraftNotifier:
    """Stores the composed mail as a Gmail draft."""

    def __init__(self, service: Any = None):
        self.service = service

    def notify(self, previous: Application, updated: Application) -> NotificationResult:
        message = compose_status_change(previous, updated)
        if message is None:
            logger.warning(f"No contact email for {updated.company_name}, notification skipped")
            return NotificationResult(sent=False, message=NO_RECIPIENT_WARNING)

        create_draft(message.to, message.subject, message.body, service=self.service)
        return NotificationResult(
            sent=True, message=f"تم حفظ مسودة البريد إلى: {message.to}", recipient=message.to
        )


def get_notifier(config: Config) -> Notifier:
    """Pick the notification backend named in the configuration."""
    if config.notifier == "gmail":
        return GmailDraftNotifier()
    if config.notifier == "none":
        return NullNotifier()
    return MailtoNotifier()

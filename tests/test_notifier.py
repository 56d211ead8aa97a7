import base64
import email
from datetime import date, datetime, timezone
from email import policy
from unittest.mock import MagicMock
from urllib.parse import parse_qs, unquote, urlsplit

from tracker.config import Config
from tracker.gmail_client import create_draft, encode_message
from tracker.models import Application, Status
from tracker.notifier import (
    NO_RECIPIENT_WARNING,
    GmailDraftNotifier,
    MailtoNotifier,
    NullNotifier,
    build_mailto_url,
    compose_status_change,
    get_notifier,
)

NOW = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)


def make_pair(**overrides):
    values = dict(
        id="1",
        company_name="Acme",
        job_title="Engineer",
        applied_at=date(2026, 10, 1),
        status=Status.NEW,
        contact_name="Sam",
        contact_email="sam@acme.com",
        created_at=NOW,
        updated_at=NOW,
    )
    values.update(overrides)
    previous = Application(**values)
    updated = previous.model_copy(update={"status": Status.ACCEPTED})
    return previous, updated


def test_compose_status_change_summarizes_old_and_new_status():
    previous, updated = make_pair(job_link="https://acme.com/jobs/1")

    message = compose_status_change(previous, updated)

    assert message.to == "sam@acme.com"
    assert message.subject == "تحديث حالة طلب وظيفي - Acme"
    lines = message.body.split("\n")
    assert lines[0] == "مرحبًا Sam"
    assert "الحالة القديمة: جديد" in lines
    assert "الحالة الجديدة: مقبول" in lines
    assert "رابط الإعلان: https://acme.com/jobs/1" in lines
    assert lines[-1] == "مع خالص التحية"
    assert "" not in lines


def test_compose_without_link_omits_link_line():
    previous, updated = make_pair()

    body = compose_status_change(previous, updated).body

    assert "رابط الإعلان" not in body


def test_compose_without_recipient_returns_none():
    previous, updated = make_pair(contact_email=None)

    assert compose_status_change(previous, updated) is None


def test_mailto_url_encodes_subject_and_body():
    previous, updated = make_pair()
    message = compose_status_change(previous, updated)

    url = build_mailto_url(message)

    parts = urlsplit(url)
    assert parts.scheme == "mailto"
    assert unquote(parts.path) == "sam@acme.com"
    query = parse_qs(parts.query)
    assert query["subject"] == [message.subject]
    assert query["body"] == [message.body]


def test_mailto_notifier_opens_mail_client():
    opened = []
    notifier = MailtoNotifier(opener=lambda url: opened.append(url) or True)
    previous, updated = make_pair()

    result = notifier.notify(previous, updated)

    assert result.sent
    assert result.recipient == "sam@acme.com"
    assert len(opened) == 1
    assert opened[0].startswith("mailto:sam@acme.com?subject=")


def test_mailto_notifier_warns_without_recipient():
    opener = MagicMock()
    previous, updated = make_pair(contact_email=None)

    result = MailtoNotifier(opener=opener).notify(previous, updated)

    assert not result.sent
    assert result.message == NO_RECIPIENT_WARNING
    opener.assert_not_called()


def test_mailto_notifier_reports_unhandled_url():
    previous, updated = make_pair()

    result = MailtoNotifier(opener=lambda url: False).notify(previous, updated)

    assert not result.sent


def test_encode_message_round_trips_headers():
    raw = encode_message("sam@acme.com", "تحديث حالة طلب وظيفي - Acme", "الحالة الجديدة: مقبول")

    parsed = email.message_from_bytes(base64.urlsafe_b64decode(raw), policy=policy.default)

    assert parsed["To"] == "sam@acme.com"
    assert parsed["Subject"] == "تحديث حالة طلب وظيفي - Acme"
    assert parsed.get_content().strip() == "الحالة الجديدة: مقبول"


def test_create_draft_calls_gmail_api():
    service = MagicMock()
    service.users.return_value.drafts.return_value.create.return_value.execute.return_value = {"id": "d1"}

    draft = create_draft("sam@acme.com", "subject", "body", service=service)

    assert draft == {"id": "d1"}
    kwargs = service.users.return_value.drafts.return_value.create.call_args.kwargs
    assert kwargs["userId"] == "me"
    assert "raw" in kwargs["body"]["message"]


def test_gmail_draft_notifier_uses_service():
    service = MagicMock()
    service.users.return_value.drafts.return_value.create.return_value.execute.return_value = {"id": "d1"}
    previous, updated = make_pair()

    result = GmailDraftNotifier(service=service).notify(previous, updated)

    assert result.sent
    assert result.recipient == "sam@acme.com"
    service.users.return_value.drafts.return_value.create.assert_called_once()


def test_gmail_draft_notifier_skips_without_recipient():
    service = MagicMock()
    previous, updated = make_pair(contact_email=None)

    result = GmailDraftNotifier(service=service).notify(previous, updated)

    assert result.message == NO_RECIPIENT_WARNING
    service.users.assert_not_called()


def test_get_notifier_follows_config():
    assert isinstance(get_notifier(Config()), MailtoNotifier)
    assert isinstance(get_notifier(Config(notifier="gmail")), GmailDraftNotifier)
    assert isinstance(get_notifier(Config(notifier="none")), NullNotifier)


def test_null_notifier_never_sends():
    previous, updated = make_pair()

    assert not NullNotifier().notify(previous, updated).sent

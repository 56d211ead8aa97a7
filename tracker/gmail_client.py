"""Gmail API client for storing status-change mails as drafts."""

import base64
import logging
from email.message import EmailMessage
from pathlib import Path
from typing import Any, Optional

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build

from .config import get_config

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/gmail.compose"]


def get_credentials(config_dir: Optional[Path] = None) -> Credentials:
    """Get or refresh Gmail API credentials."""
    if config_dir is None:
        config_dir = get_config().credentials_dir
    token_path = config_dir / "token.json"
    credentials_path = config_dir / "credentials.json"

    creds = None

    if token_path.exists():
        creds = Credentials.from_authorized_user_file(str(token_path), SCOPES)

    if not creds or not creds.valid:
        if creds and creds.expired and creds.refresh_token:
            logger.info("Refreshing expired credentials")
            creds.refresh(Request())
        else:
            if not credentials_path.exists():
                raise FileNotFoundError(
                    f"Credentials file not found: {credentials_path}. "
                    "Download credentials.json from Google Cloud Console."
                )
            logger.info("Starting OAuth flow for Gmail")
            flow = InstalledAppFlow.from_client_secrets_file(
                str(credentials_path), SCOPES
            )
            creds = flow.run_local_server(port=0)

        with open(token_path, "w") as token:
            token.write(creds.to_json())
            logger.info(f"Saved credentials to {token_path}")

    return creds


def encode_message(to: str, subject: str, body: str) -> str:
    """Build a base64url-encoded RFC 2822 message."""
    message = EmailMessage()
    message["To"] = to
    message["Subject"] = subject
    message.set_content(body)
    return base64.urlsafe_b64encode(message.as_bytes()).decode("ascii")


def create_draft(to: str, subject: str, body: str, service: Any = None) -> dict[str, Any]:
    """Create a draft in the user's mailbox."""
    if service is None:
        service = build("gmail", "v1", credentials=get_credentials())

    draft = (
        service.users()
        .drafts()
        .create(userId="me", body={"message": {"raw": encode_message(to, subject, body)}})
        .execute()
    )
    logger.info(f"Created Gmail draft {draft.get('id')} to {to}")
    return draft

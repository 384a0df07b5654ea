"""Email composition and dispatch of summaries through Resend."""

from __future__ import annotations

import base64
import json
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Union

import httpx
import structlog

from .config import runtime_config
from .errors import (
    EmailSendFailed,
    EmailShareNotFound,
    InvalidRecipients,
    MailNotConfigured,
    SummaryNotFound,
    TranscriptNotFound,
)
from .models import EmailShare, Summary, Transcript
from .storage import RecordStore

logger = structlog.get_logger(__name__)

RESEND_URL = "https://api.resend.com/emails"
SUMMARY_HEADER = "MEETING SUMMARY"
SEPARATOR = "---"
DEFAULT_ATTACHMENT_NAME = "transcript.txt"

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass(slots=True)
class Attachment:
    filename: str
    content: str
    content_type: str = "text/plain"


@dataclass(slots=True)
class OutgoingEmail:
    sender: str
    to: List[str]
    subject: str
    text: Optional[str] = None
    html: Optional[str] = None
    attachments: List[Attachment] = field(default_factory=list)


class Mailer(Protocol):
    """Transport that delivers one message and returns the provider's message id."""

    def send(self, email: OutgoingEmail) -> str:
        ...


class ResendMailer:
    """Send mail through the Resend HTTP API."""

    def __init__(self, api_key: str, timeout: float = 60.0, client: Optional[httpx.Client] = None) -> None:
        self._api_key = api_key
        self._timeout = timeout
        self._client = client

    def _payload(self, email: OutgoingEmail) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "from": email.sender,
            "to": email.to,
            "subject": email.subject,
        }
        if email.text is not None:
            payload["text"] = email.text
        if email.html is not None:
            payload["html"] = email.html
        if email.attachments:
            payload["attachments"] = [
                {
                    "filename": attachment.filename,
                    "content": base64.b64encode(attachment.content.encode("utf-8")).decode("ascii"),
                    "content_type": attachment.content_type,
                }
                for attachment in email.attachments
            ]
        return payload

    def send(self, email: OutgoingEmail) -> str:
        headers = {"Authorization": f"Bearer {self._api_key}"}
        try:
            if self._client is not None:
                response = self._client.post(RESEND_URL, headers=headers, json=self._payload(email))
            else:
                with httpx.Client(timeout=self._timeout) as client:
                    response = client.post(RESEND_URL, headers=headers, json=self._payload(email))
        except httpx.HTTPError as exc:
            raise EmailSendFailed(str(exc) or exc.__class__.__name__) from exc

        if response.is_error:
            raise EmailSendFailed(_error_message(response))
        try:
            return response.json().get("id", "")
        except ValueError:
            return ""


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(payload, dict):
        return str(payload.get("message") or payload.get("error") or payload)
    return str(payload)


def default_mailer() -> Mailer:
    """Build a mailer from credentials read at call time."""

    config = runtime_config()
    if not config.resend_api_key:
        raise MailNotConfigured()
    return ResendMailer(config.resend_api_key, timeout=config.api_timeout)


def default_sender() -> str:
    return runtime_config().mail_from


def parse_recipients(raw: Union[str, Sequence[str], None]) -> List[str]:
    """Decode and validate a recipient list.

    Accepts the JSON encoded array sent by clients or an already decoded
    list. Duplicates are dropped, first occurrence wins.
    """

    if raw is None:
        raise InvalidRecipients()
    if isinstance(raw, str):
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise InvalidRecipients("Recipients must be a JSON encoded list of addresses") from exc
    else:
        decoded = raw
    if not isinstance(decoded, (list, tuple)) or not decoded:
        raise InvalidRecipients()

    recipients: List[str] = []
    for entry in decoded:
        if not isinstance(entry, str) or not _EMAIL_RE.match(entry.strip()):
            raise InvalidRecipients(f"Invalid email address: {entry!r}")
        address = entry.strip()
        if address not in recipients:
            recipients.append(address)
    return recipients


def split_recipients(text: str) -> List[str]:
    """Split a comma separated address line into a list."""

    return [part.strip() for part in text.split(",") if part.strip()]


def default_subject(today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"Meeting Summary - {today.isoformat()}"


def compose_body(summary: Summary, message: Optional[str] = None) -> str:
    body = f"{message}\n\n{SEPARATOR}\n\n" if message else ""
    return body + f"{SUMMARY_HEADER}\n\n{summary.effective_content}"


def transcript_attachments(transcript: Transcript, include_transcript: bool) -> List[Attachment]:
    if not include_transcript or not transcript.content:
        return []
    return [Attachment(filename=transcript.filename or DEFAULT_ATTACHMENT_NAME, content=transcript.content)]


class EmailDispatcher:
    """Send summaries to recipients and record each completed send.

    The message goes out before the share record is written. If writing the
    record fails the email is not recalled and no share exists for it.
    """

    def __init__(
        self,
        store: RecordStore,
        mailer_factory: Optional[Callable[[], Mailer]] = None,
        sender: Optional[Callable[[], str]] = None,
    ) -> None:
        self.store = store
        self._mailer_factory = mailer_factory or default_mailer
        self._sender = sender or default_sender

    def send_summary_email(
        self,
        summary_id: str,
        recipients: Union[str, Sequence[str], None],
        subject: Optional[str] = None,
        message: Optional[str] = None,
        include_transcript: bool = False,
    ) -> EmailShare:
        summary = self.store.get_summary(summary_id)
        if summary is None:
            raise SummaryNotFound(summary_id)
        transcript = self.store.get_transcript(summary.transcript_id)
        if transcript is None:
            raise TranscriptNotFound(summary.transcript_id)
        addresses = parse_recipients(recipients)

        subject = subject or default_subject()
        email = OutgoingEmail(
            sender=self._sender(),
            to=addresses,
            subject=subject,
            text=compose_body(summary, message),
            attachments=transcript_attachments(transcript, include_transcript),
        )

        mailer = self._mailer_factory()
        try:
            message_id = mailer.send(email)
        except EmailSendFailed as exc:
            logger.error("email_send_failed", summary_id=summary_id, error=exc.detail)
            raise
        logger.info(
            "email_sent",
            summary_id=summary_id,
            recipients=len(addresses),
            attachments=len(email.attachments),
            message_id=message_id,
        )

        return self.store.create_email_share(
            summary_id=summary_id,
            recipients=json.dumps(addresses),
            subject=subject,
            message=message or None,
            include_transcript=include_transcript,
        )

    def send_raw(
        self,
        to: Union[str, Sequence[str]],
        subject: str,
        html: str,
        attachment: Optional[Attachment] = None,
    ) -> str:
        """Deliver a hand-written HTML message, for checking the mail setup."""

        addresses = [to] if isinstance(to, str) else list(to)
        email = OutgoingEmail(
            sender=self._sender(),
            to=parse_recipients(addresses),
            subject=subject,
            html=html,
            attachments=[attachment] if attachment else [],
        )
        message_id = self._mailer_factory().send(email)
        logger.info("test_email_sent", recipients=len(email.to), message_id=message_id)
        return message_id

    def get_email_share(self, share_id: str) -> EmailShare:
        share = self.store.get_email_share(share_id)
        if share is None:
            raise EmailShareNotFound(share_id)
        return share

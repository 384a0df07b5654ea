import base64
import json
from datetime import date

import httpx
import pytest

from recapmail import mailer as mailer_mod
from recapmail.errors import (
    EmailSendFailed,
    EmailShareNotFound,
    InvalidRecipients,
    MailNotConfigured,
    SummaryNotFound,
    TranscriptNotFound,
)
from recapmail.mailer import (
    Attachment,
    EmailDispatcher,
    OutgoingEmail,
    ResendMailer,
    compose_body,
    default_subject,
    parse_recipients,
    split_recipients,
)

from conftest import FakeMailer


def _dispatcher(store, mailer):
    return EmailDispatcher(store, mailer_factory=lambda: mailer, sender=lambda: "notes@example.com")


def _summary(store, content="Transcript body", filename=None):
    transcript = store.create_transcript(content, filename=filename)
    return store.create_summary(transcript.id, "p", "AI summary")


def test_parse_recipients_accepts_json_and_lists():
    assert parse_recipients('["a@x.com", "b@y.org"]') == ["a@x.com", "b@y.org"]
    assert parse_recipients([" a@x.com ", "a@x.com"]) == ["a@x.com"]


@pytest.mark.parametrize("raw", [None, "", "[]", "not json", '"a@x.com"', '["nope"]', "[1]", []])
def test_parse_recipients_rejects_invalid(raw):
    with pytest.raises(InvalidRecipients):
        parse_recipients(raw)


def test_split_recipients():
    assert split_recipients("a@x.com, b@y.org,,") == ["a@x.com", "b@y.org"]


def test_compose_body_with_and_without_message(store):
    summary = _summary(store)
    assert compose_body(summary) == "MEETING SUMMARY\n\nAI summary"

    edited = store.update_summary_content(summary.id, "Edited")
    assert compose_body(edited, "Hi team") == "Hi team\n\n---\n\nMEETING SUMMARY\n\nEdited"


def test_default_subject():
    assert default_subject(date(2024, 3, 5)) == "Meeting Summary - 2024-03-05"


def test_send_attaches_transcript_and_records_share(store):
    summary = _summary(store, filename="standup.txt")
    fake = FakeMailer()

    share = _dispatcher(store, fake).send_summary_email(
        summary.id, '["a@x.com"]', "Notes", "FYI", include_transcript=True
    )

    [email] = fake.sent
    assert email.sender == "notes@example.com"
    assert email.to == ["a@x.com"]
    assert email.text.startswith("FYI\n\n---\n\nMEETING SUMMARY")
    assert email.attachments == [Attachment("standup.txt", "Transcript body")]
    assert share.recipient_list == ["a@x.com"]
    assert share.subject == "Notes"
    assert share.include_transcript is True
    assert store.get_email_share(share.id) == share


def test_attachment_defaults_name_and_is_optional(store):
    summary = _summary(store)
    fake = FakeMailer()
    dispatcher = _dispatcher(store, fake)

    dispatcher.send_summary_email(summary.id, ["a@x.com"], "s", include_transcript=True)
    dispatcher.send_summary_email(summary.id, ["a@x.com"], "s", include_transcript=False)

    assert fake.sent[0].attachments[0].filename == "transcript.txt"
    assert fake.sent[1].attachments == []


def test_blank_subject_gets_default(store):
    summary = _summary(store)
    share = _dispatcher(store, FakeMailer()).send_summary_email(summary.id, ["a@x.com"], "")
    assert share.subject.startswith("Meeting Summary - ")


def test_validation_order(store):
    fake = FakeMailer()
    dispatcher = _dispatcher(store, fake)

    with pytest.raises(SummaryNotFound):
        dispatcher.send_summary_email("missing", "[]", "s")

    orphan = store.create_summary("gone", "p", "text")
    with pytest.raises(TranscriptNotFound):
        dispatcher.send_summary_email(orphan.id, "[]", "s")

    summary = _summary(store)
    with pytest.raises(InvalidRecipients):
        dispatcher.send_summary_email(summary.id, "[]", "s")
    assert fake.sent == []


def test_send_failure_records_nothing(store):
    summary = _summary(store)
    fake = FakeMailer(error=EmailSendFailed("domain not verified"))

    with pytest.raises(EmailSendFailed) as excinfo:
        _dispatcher(store, fake).send_summary_email(summary.id, ["a@x.com"], "s")
    assert excinfo.value.message == "Resend error: domain not verified"


def test_missing_mail_key_is_configuration_error(store):
    summary = _summary(store)
    with pytest.raises(MailNotConfigured):
        EmailDispatcher(store).send_summary_email(summary.id, ["a@x.com"], "s")


def test_default_mailer_uses_environment(monkeypatch):
    monkeypatch.setenv("RESEND_API_KEY", "re_key")
    monkeypatch.setenv("RECAPMAIL_MAIL_FROM", "bot@example.com")
    assert isinstance(mailer_mod.default_mailer(), ResendMailer)
    assert mailer_mod.default_sender() == "bot@example.com"


def test_resend_payload_and_auth():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "email-123"})

    client = httpx.Client(transport=httpx.MockTransport(handler))
    email = OutgoingEmail(
        sender="notes@example.com",
        to=["a@x.com"],
        subject="Notes",
        text="MEETING SUMMARY\n\nbody",
        attachments=[Attachment("t.txt", "Alice: hi")],
    )

    assert ResendMailer("re_key", client=client).send(email) == "email-123"
    assert seen["auth"] == "Bearer re_key"
    body = seen["body"]
    assert body["from"] == "notes@example.com"
    assert body["to"] == ["a@x.com"]
    assert "html" not in body
    assert base64.b64decode(body["attachments"][0]["content"]).decode() == "Alice: hi"


def test_resend_error_message_is_forwarded():
    client = httpx.Client(
        transport=httpx.MockTransport(
            lambda request: httpx.Response(403, json={"statusCode": 403, "message": "API key is invalid"})
        )
    )
    email = OutgoingEmail(sender="s@example.com", to=["a@x.com"], subject="s", text="t")
    with pytest.raises(EmailSendFailed) as excinfo:
        ResendMailer("bad", client=client).send(email)
    assert excinfo.value.detail == "API key is invalid"


def test_send_raw_and_share_lookup(store):
    fake = FakeMailer()
    dispatcher = _dispatcher(store, fake)

    assert dispatcher.send_raw("a@x.com", "Test", "<p>hi</p>") == "msg-1"
    assert fake.sent[0].html == "<p>hi</p>"
    with pytest.raises(EmailShareNotFound):
        dispatcher.get_email_share("missing")


def test_empty_edit_falls_back_to_generated_content(store):
    summary = _summary(store)
    edited = store.update_summary_content(summary.id, "")
    assert compose_body(edited) == "MEETING SUMMARY\n\nAI summary"


def test_empty_transcript_is_not_attached(store):
    summary = _summary(store, content="")
    fake = FakeMailer()

    share = _dispatcher(store, fake).send_summary_email(summary.id, ["a@x.com"], "s", include_transcript=True)

    assert fake.sent[0].attachments == []
    assert share.include_transcript is True

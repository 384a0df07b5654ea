from typing import List, Optional

import pytest

from recapmail import config
from recapmail.errors import ProviderError
from recapmail.mailer import OutgoingEmail
from recapmail.providers import Provider
from recapmail.storage import MemoryStorage

CREDENTIAL_ENV = (
    "GOOGLE_API_KEY",
    "OPENAI_API_KEY",
    "GROQ_API_KEY",
    "VITE_GROQ_API_KEY",
    "RESEND_API_KEY",
    "RECAPMAIL_MAIL_FROM",
)


class FakeProvider(Provider):
    def __init__(self, name: str, reply: Optional[str] = None, error: Optional[Exception] = None) -> None:
        self.name = name
        self.reply = reply
        self.error = error
        self.calls: List[tuple] = []

    def _complete(self, transcript, prompt):
        self.calls.append((transcript, prompt))
        if self.error is not None:
            raise self.error
        return self.reply


class FakeMailer:
    def __init__(self, error: Optional[Exception] = None) -> None:
        self.sent: List[OutgoingEmail] = []
        self.error = error

    def send(self, email: OutgoingEmail) -> str:
        if self.error is not None:
            raise self.error
        self.sent.append(email)
        return f"msg-{len(self.sent)}"


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "CONFIG_PATH", tmp_path / "config.json")
    for name in CREDENTIAL_ENV:
        monkeypatch.delenv(name, raising=False)
    return tmp_path / "config.json"


@pytest.fixture
def store():
    return MemoryStorage()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def failing_provider():
    return FakeProvider("Broken", error=ProviderError("Broken", "HTTP 503: unavailable"))

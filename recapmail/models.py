"""Dataclasses describing the records and settings of recapmail."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional


@dataclass(slots=True)
class Transcript:
    """Stored text of a meeting conversation."""

    id: str
    content: str
    filename: Optional[str]
    created_at: datetime


@dataclass(slots=True)
class Summary:
    """AI generated summary of a transcript, optionally overridden by the user."""

    id: str
    transcript_id: str
    prompt: str
    content: str
    edited_content: Optional[str]
    created_at: datetime

    @property
    def effective_content(self) -> str:
        return self.edited_content or self.content


@dataclass(slots=True)
class EmailShare:
    """Record of one completed email dispatch of a summary."""

    id: str
    summary_id: str
    recipients: str
    subject: str
    message: Optional[str]
    include_transcript: bool
    sent_at: datetime

    @property
    def recipient_list(self) -> List[str]:
        return json.loads(self.recipients)


@dataclass(slots=True)
class Config:
    """User configuration stored on disk."""

    google_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    groq_api_key: Optional[str] = None
    resend_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.0-flash"
    openai_model: str = "gpt-3.5-turbo"
    groq_model: str = "llama-3.3-70b-versatile"
    temperature: float = 0.3
    max_tokens: int = 2048
    mail_from: str = "no-reply@resend.dev"
    api_timeout: float = 60.0

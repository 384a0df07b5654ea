"""Record persistence for transcripts, summaries and email shares."""

from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol

from .models import EmailShare, Summary, Transcript


class RecordStore(Protocol):
    """Persistence interface used by the summary and email services."""

    def create_transcript(self, content: str, filename: Optional[str] = None) -> Transcript:
        ...

    def get_transcript(self, transcript_id: str) -> Optional[Transcript]:
        ...

    def create_summary(self, transcript_id: str, prompt: str, content: str) -> Summary:
        ...

    def get_summary(self, summary_id: str) -> Optional[Summary]:
        ...

    def update_summary_content(self, summary_id: str, edited_content: str) -> Optional[Summary]:
        ...

    def get_summaries_by_transcript(self, transcript_id: str) -> List[Summary]:
        ...

    def create_email_share(
        self,
        summary_id: str,
        recipients: str,
        subject: str,
        message: Optional[str] = None,
        include_transcript: bool = False,
    ) -> EmailShare:
        ...

    def get_email_share(self, share_id: str) -> Optional[EmailShare]:
        ...


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MemoryStorage:
    """Process local record store backed by dictionaries.

    Records are append only and live for the lifetime of the instance. Lookups
    of unknown ids return ``None``; callers translate that into a not-found
    error. There is no locking: concurrent updates of one summary resolve to
    the last write.
    """

    def __init__(self) -> None:
        self._transcripts: Dict[str, Transcript] = {}
        self._summaries: Dict[str, Summary] = {}
        self._email_shares: Dict[str, EmailShare] = {}

    def create_transcript(self, content: str, filename: Optional[str] = None) -> Transcript:
        transcript = Transcript(id=_new_id(), content=content, filename=filename, created_at=_now())
        self._transcripts[transcript.id] = transcript
        return transcript

    def get_transcript(self, transcript_id: str) -> Optional[Transcript]:
        return self._transcripts.get(transcript_id)

    def create_summary(self, transcript_id: str, prompt: str, content: str) -> Summary:
        summary = Summary(
            id=_new_id(),
            transcript_id=transcript_id,
            prompt=prompt,
            content=content or "",
            edited_content=None,
            created_at=_now(),
        )
        self._summaries[summary.id] = summary
        return summary

    def get_summary(self, summary_id: str) -> Optional[Summary]:
        return self._summaries.get(summary_id)

    def update_summary_content(self, summary_id: str, edited_content: str) -> Optional[Summary]:
        summary = self._summaries.get(summary_id)
        if summary is None:
            return None
        updated = replace(summary, edited_content=edited_content)
        self._summaries[summary_id] = updated
        return updated

    def get_summaries_by_transcript(self, transcript_id: str) -> List[Summary]:
        return [s for s in self._summaries.values() if s.transcript_id == transcript_id]

    def create_email_share(
        self,
        summary_id: str,
        recipients: str,
        subject: str,
        message: Optional[str] = None,
        include_transcript: bool = False,
    ) -> EmailShare:
        share = EmailShare(
            id=_new_id(),
            summary_id=summary_id,
            recipients=recipients,
            subject=subject,
            message=message,
            include_transcript=include_transcript,
            sent_at=_now(),
        )
        self._email_shares[share.id] = share
        return share

    def get_email_share(self, share_id: str) -> Optional[EmailShare]:
        return self._email_shares.get(share_id)

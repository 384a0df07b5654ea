"""Summary generation and editing."""

from __future__ import annotations

from typing import Callable, List, Optional

import structlog

from .config import runtime_config
from .errors import MissingField, SummaryNotFound, TranscriptNotFound
from .models import Summary
from .providers import ProviderChain
from .storage import RecordStore

logger = structlog.get_logger(__name__)

ChainFactory = Callable[[], ProviderChain]


def default_chain() -> ProviderChain:
    """Build a chain from credentials read at call time."""

    return ProviderChain.from_config(runtime_config())


class SummaryService:
    """Generate summaries for stored transcripts and apply user edits.

    Every call to :meth:`create_summary` produces a new record, so regenerating
    a summary for the same transcript simply adds another one.
    """

    def __init__(self, store: RecordStore, chain_factory: Optional[ChainFactory] = None) -> None:
        self.store = store
        self._chain_factory = chain_factory or default_chain

    def create_summary(self, transcript_id: str, prompt: str) -> Summary:
        if not transcript_id:
            raise MissingField("transcriptId")
        if not prompt:
            raise MissingField("prompt")

        transcript = self.store.get_transcript(transcript_id)
        if transcript is None:
            raise TranscriptNotFound(transcript_id)

        chain = self._chain_factory()
        text, provider = chain.generate(transcript.content, prompt)

        summary = self.store.create_summary(transcript_id=transcript_id, prompt=prompt, content=text)
        logger.info(
            "summary_generated",
            summary_id=summary.id,
            transcript_id=transcript_id,
            provider=provider,
        )
        return summary

    def edit_summary(self, summary_id: str, edited_content: str) -> Summary:
        summary = self.store.update_summary_content(summary_id, edited_content)
        if summary is None:
            raise SummaryNotFound(summary_id)
        return summary

    def get_summary(self, summary_id: str) -> Summary:
        summary = self.store.get_summary(summary_id)
        if summary is None:
            raise SummaryNotFound(summary_id)
        return summary

    def summaries_for_transcript(self, transcript_id: str) -> List[Summary]:
        if self.store.get_transcript(transcript_id) is None:
            raise TranscriptNotFound(transcript_id)
        return self.store.get_summaries_by_transcript(transcript_id)

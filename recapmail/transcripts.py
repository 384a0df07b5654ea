"""Transcript intake from pasted text or uploaded ``.txt`` files."""

from __future__ import annotations

from typing import Optional

import structlog

from .errors import InvalidUpload, MissingField, TranscriptNotFound
from .models import Transcript
from .storage import RecordStore

logger = structlog.get_logger(__name__)

MAX_UPLOAD_BYTES = 10 * 1024 * 1024


def create_transcript_from_text(store: RecordStore, content: Optional[str]) -> Transcript:
    if not isinstance(content, str) or not content.strip():
        raise MissingField("content")
    transcript = store.create_transcript(content)
    logger.info("transcript_created", transcript_id=transcript.id, length=len(content))
    return transcript


def is_plain_text(filename: Optional[str], content_type: Optional[str]) -> bool:
    if content_type and content_type.split(";")[0].strip().lower() == "text/plain":
        return True
    return bool(filename) and filename.lower().endswith(".txt")


def create_transcript_from_upload(
    store: RecordStore,
    filename: Optional[str],
    content_type: Optional[str],
    data: bytes,
) -> Transcript:
    if not is_plain_text(filename, content_type):
        raise InvalidUpload("Only .txt files are allowed")
    if len(data) > MAX_UPLOAD_BYTES:
        raise InvalidUpload("File too large (limit is 10MB)")
    try:
        content = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidUpload("Transcript file must be UTF-8 encoded text") from exc
    if not content.strip():
        raise InvalidUpload("Transcript file is empty")

    transcript = store.create_transcript(content, filename=filename)
    logger.info(
        "transcript_created",
        transcript_id=transcript.id,
        filename=filename,
        length=len(content),
    )
    return transcript


def get_transcript(store: RecordStore, transcript_id: str) -> Transcript:
    transcript = store.get_transcript(transcript_id)
    if transcript is None:
        raise TranscriptNotFound(transcript_id)
    return transcript

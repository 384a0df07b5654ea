import pytest

from recapmail.errors import InvalidUpload, MissingField, TranscriptNotFound
from recapmail.transcripts import (
    MAX_UPLOAD_BYTES,
    create_transcript_from_text,
    create_transcript_from_upload,
    get_transcript,
)


def test_create_from_text(store):
    record = create_transcript_from_text(store, "Alice: hello")
    assert record.filename is None
    assert get_transcript(store, record.id).content == "Alice: hello"


@pytest.mark.parametrize("content", [None, "", "   ", 42])
def test_create_from_text_requires_content(store, content):
    with pytest.raises(MissingField):
        create_transcript_from_text(store, content)


def test_upload_accepts_txt_name_or_plain_text_type(store):
    by_name = create_transcript_from_upload(store, "standup.txt", "application/octet-stream", b"notes")
    by_type = create_transcript_from_upload(store, "standup", "text/plain; charset=utf-8", "café".encode())

    assert by_name.filename == "standup.txt"
    assert by_type.content == "café"


def test_upload_rejects_other_files(store):
    with pytest.raises(InvalidUpload) as excinfo:
        create_transcript_from_upload(store, "slides.pdf", "application/pdf", b"%PDF")
    assert excinfo.value.message == "Only .txt files are allowed"


def test_upload_rejects_oversize_and_binary(store):
    with pytest.raises(InvalidUpload):
        create_transcript_from_upload(store, "big.txt", "text/plain", b"a" * (MAX_UPLOAD_BYTES + 1))
    with pytest.raises(InvalidUpload):
        create_transcript_from_upload(store, "bad.txt", "text/plain", b"\xff\xfe\xfa")


def test_get_unknown_transcript(store):
    with pytest.raises(TranscriptNotFound):
        get_transcript(store, "missing")

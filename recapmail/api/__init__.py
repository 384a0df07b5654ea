"""FastAPI application for the recapmail summary service."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional, Union

import structlog
from fastapi import Depends, FastAPI, File, Request, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from ..config import runtime_config
from ..errors import (
    ConfigurationError,
    NotFoundError,
    RecapmailError,
    UpstreamServiceError,
    ValidationError,
)
from ..logging import configure_logging
from ..mailer import Attachment, EmailDispatcher
from ..models import EmailShare, Summary, Transcript
from ..prompts import PRESETS
from ..providers import configured_provider_names
from ..storage import MemoryStorage, RecordStore
from ..summaries import SummaryService
from ..transcripts import (
    MAX_UPLOAD_BYTES,
    create_transcript_from_text,
    create_transcript_from_upload,
    get_transcript,
)

logger = structlog.get_logger(__name__)


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class TranscriptPayload(_Payload):
    id: str
    content: str
    filename: Optional[str] = None
    created_at: datetime = Field(alias="createdAt")


class SummaryPayload(_Payload):
    id: str
    transcript_id: str = Field(alias="transcriptId")
    prompt: str
    content: str
    edited_content: Optional[str] = Field(default=None, alias="editedContent")
    created_at: datetime = Field(alias="createdAt")


class EmailSharePayload(_Payload):
    id: str
    summary_id: str = Field(alias="summaryId")
    recipients: str
    subject: str
    message: Optional[str] = None
    include_transcript: bool = Field(alias="includeTranscript")
    sent_at: datetime = Field(alias="sentAt")


class CreateTranscriptRequest(_Payload):
    content: Optional[str] = None


class CreateSummaryRequest(_Payload):
    transcript_id: Optional[str] = Field(default=None, alias="transcriptId")
    prompt: Optional[str] = None


class EditSummaryRequest(_Payload):
    edited_content: Any = Field(default=None, alias="editedContent")


class SendEmailRequest(_Payload):
    summary_id: str = Field(alias="summaryId")
    recipients: Union[str, List[Any]]
    subject: Optional[str] = None
    message: Optional[str] = None
    include_transcript: bool = Field(default=False, alias="includeTranscript")


class AttachmentPayload(_Payload):
    filename: str
    content: str
    type: str = "text/plain"


class SendTestEmailRequest(_Payload):
    to: Union[str, List[str]]
    subject: str
    html: str
    attachment: Optional[AttachmentPayload] = None


class MessageResponse(_Payload):
    message: str


class PromptPreset(_Payload):
    name: str
    title: str
    prompt: str


class HealthResponse(_Payload):
    status: str = "ok"
    providers: List[str]
    mail_configured: bool = Field(alias="mailConfigured")


def _transcript_payload(record: Transcript) -> TranscriptPayload:
    return TranscriptPayload(
        id=record.id,
        content=record.content,
        filename=record.filename,
        created_at=record.created_at,
    )


def _summary_payload(record: Summary) -> SummaryPayload:
    return SummaryPayload(
        id=record.id,
        transcript_id=record.transcript_id,
        prompt=record.prompt,
        content=record.content,
        edited_content=record.edited_content,
        created_at=record.created_at,
    )


def _share_payload(record: EmailShare) -> EmailSharePayload:
    return EmailSharePayload(
        id=record.id,
        summary_id=record.summary_id,
        recipients=record.recipients,
        subject=record.subject,
        message=record.message,
        include_transcript=record.include_transcript,
        sent_at=record.sent_at,
    )


def _status_for(exc: RecapmailError) -> int:
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def _recapmail_error_handler(request: Request, exc: RecapmailError) -> JSONResponse:
    code = _status_for(exc)
    if isinstance(exc, (UpstreamServiceError, ConfigurationError)):
        logger.error("request_failed", path=request.url.path, status=code, error=exc.message)
    return JSONResponse(status_code=code, content={"message": exc.message})


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        details.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "; ".join(details) or "Invalid request"},
    )


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def get_summary_service(request: Request) -> SummaryService:
    return request.app.state.summaries


def get_dispatcher(request: Request) -> EmailDispatcher:
    return request.app.state.dispatcher


def create_app(
    store: Optional[RecordStore] = None,
    summaries: Optional[SummaryService] = None,
    dispatcher: Optional[EmailDispatcher] = None,
) -> FastAPI:
    """Build the API with one shared record store wired into both services."""

    store = store if store is not None else MemoryStorage()
    application = FastAPI(
        title="recapmail API",
        description="Generate, edit and email AI summaries of meeting transcripts.",
        version="0.1.0",
    )
    application.state.store = store
    application.state.summaries = summaries or SummaryService(store)
    application.state.dispatcher = dispatcher or EmailDispatcher(store)
    application.add_exception_handler(RecapmailError, _recapmail_error_handler)
    application.add_exception_handler(RequestValidationError, _request_validation_handler)

    @application.on_event("startup")
    async def setup_logging() -> None:
        configure_logging()

    @application.get("/health", response_model=HealthResponse)
    async def healthcheck() -> HealthResponse:
        config = runtime_config()
        return HealthResponse(
            providers=configured_provider_names(config),
            mail_configured=bool(config.resend_api_key),
        )

    @application.get("/prompts", response_model=List[PromptPreset])
    async def list_prompts() -> List[PromptPreset]:
        return [PromptPreset(name=name, **preset) for name, preset in PRESETS.items()]

    @application.post("/transcripts/upload", response_model=TranscriptPayload)
    async def upload_transcript(
        file: UploadFile = File(...),
        store: RecordStore = Depends(get_store),
    ) -> TranscriptPayload:
        # Read one byte past the limit so oversize files are detected without buffering them whole.
        data = await file.read(MAX_UPLOAD_BYTES + 1)
        record = create_transcript_from_upload(store, file.filename, file.content_type, data)
        return _transcript_payload(record)

    @application.post("/transcripts", response_model=TranscriptPayload)
    async def create_transcript(
        body: CreateTranscriptRequest,
        store: RecordStore = Depends(get_store),
    ) -> TranscriptPayload:
        return _transcript_payload(create_transcript_from_text(store, body.content))

    @application.get("/transcripts/{transcript_id}", response_model=TranscriptPayload)
    async def read_transcript(
        transcript_id: str,
        store: RecordStore = Depends(get_store),
    ) -> TranscriptPayload:
        return _transcript_payload(get_transcript(store, transcript_id))

    @application.get("/transcripts/{transcript_id}/summaries", response_model=List[SummaryPayload])
    async def list_transcript_summaries(
        transcript_id: str,
        service: SummaryService = Depends(get_summary_service),
    ) -> List[SummaryPayload]:
        return [_summary_payload(record) for record in service.summaries_for_transcript(transcript_id)]

    @application.post("/summaries", response_model=SummaryPayload)
    async def create_summary(
        body: CreateSummaryRequest,
        service: SummaryService = Depends(get_summary_service),
    ) -> SummaryPayload:
        record = await run_in_threadpool(service.create_summary, body.transcript_id or "", body.prompt or "")
        return _summary_payload(record)

    @application.get("/summaries/{summary_id}", response_model=SummaryPayload)
    async def read_summary(
        summary_id: str,
        service: SummaryService = Depends(get_summary_service),
    ) -> SummaryPayload:
        return _summary_payload(service.get_summary(summary_id))

    @application.patch("/summaries/{summary_id}", response_model=SummaryPayload)
    async def edit_summary(
        summary_id: str,
        body: EditSummaryRequest,
        service: SummaryService = Depends(get_summary_service),
    ) -> SummaryPayload:
        if not isinstance(body.edited_content, str):
            raise ValidationError("editedContent must be a string")
        return _summary_payload(service.edit_summary(summary_id, body.edited_content))

    @application.post("/email/send", response_model=EmailSharePayload)
    async def send_email(
        body: SendEmailRequest,
        dispatcher: EmailDispatcher = Depends(get_dispatcher),
    ) -> EmailSharePayload:
        share = await run_in_threadpool(
            dispatcher.send_summary_email,
            body.summary_id,
            body.recipients,
            body.subject,
            body.message,
            body.include_transcript,
        )
        return _share_payload(share)

    @application.get("/email/shares/{share_id}", response_model=EmailSharePayload)
    async def read_email_share(
        share_id: str,
        dispatcher: EmailDispatcher = Depends(get_dispatcher),
    ) -> EmailSharePayload:
        return _share_payload(dispatcher.get_email_share(share_id))

    @application.post("/email/send-test", response_model=MessageResponse)
    async def send_test_email(
        body: SendTestEmailRequest,
        dispatcher: EmailDispatcher = Depends(get_dispatcher),
    ) -> MessageResponse:
        attachment = None
        if body.attachment is not None:
            attachment = Attachment(
                filename=body.attachment.filename,
                content=body.attachment.content,
                content_type=body.attachment.type,
            )
        await run_in_threadpool(dispatcher.send_raw, body.to, body.subject, body.html, attachment)
        return MessageResponse(message="Email sent successfully!")

    return application


app = create_app()

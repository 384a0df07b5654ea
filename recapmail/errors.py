"""Exception hierarchy shared by the services and the HTTP layer."""

from __future__ import annotations

from typing import Dict, Optional


class RecapmailError(RuntimeError):
    """Base class for every failure surfaced to callers."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(RecapmailError):
    """Malformed or missing input."""


class MissingField(ValidationError):
    def __init__(self, field: str) -> None:
        super().__init__(f"{field} is required")
        self.field = field


class InvalidRecipients(ValidationError):
    def __init__(self, message: str = "Invalid recipients") -> None:
        super().__init__(message)


class InvalidUpload(ValidationError):
    """Uploaded file was not an acceptable plain text transcript."""


class NotFoundError(RecapmailError):
    """Unknown identifier."""


class TranscriptNotFound(NotFoundError):
    def __init__(self, transcript_id: str) -> None:
        super().__init__("Transcript not found")
        self.transcript_id = transcript_id


class SummaryNotFound(NotFoundError):
    def __init__(self, summary_id: str) -> None:
        super().__init__("Summary not found")
        self.summary_id = summary_id


class EmailShareNotFound(NotFoundError):
    def __init__(self, share_id: str) -> None:
        super().__init__("Email share not found")
        self.share_id = share_id


class UpstreamServiceError(RecapmailError):
    """An AI or mail provider failed."""


class ProviderError(UpstreamServiceError):
    """A single AI provider failed to produce text."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.detail = message


class AllProvidersFailed(UpstreamServiceError):
    """Every configured AI provider failed."""

    def __init__(self, failures: Optional[Dict[str, str]] = None) -> None:
        self.failures = dict(failures or {})
        message = "Failed to generate summary with available AI services"
        if self.failures:
            details = "; ".join(f"{name}: {error}" for name, error in self.failures.items())
            message = f"{message} ({details})"
        super().__init__(message)


class EmailSendFailed(UpstreamServiceError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Resend error: {detail}")
        self.detail = detail


class ConfigurationError(RecapmailError):
    """Required credentials are missing."""


class NoProviderConfigured(ConfigurationError):
    def __init__(self) -> None:
        super().__init__(
            "No AI API key configured (GOOGLE_API_KEY, OPENAI_API_KEY, or GROQ_API_KEY required)"
        )


class MailNotConfigured(ConfigurationError):
    def __init__(self) -> None:
        super().__init__("No mail API key configured (RESEND_API_KEY required)")

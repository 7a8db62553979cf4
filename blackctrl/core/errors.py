"""Error taxonomy for the BLACK CTRL client.

Every error raised by the client derives from ``OutreachError`` and carries a
user-facing ``message``, the HTTP ``status_code`` that caused it (when one
exists) and a machine-readable ``kind`` so callers can branch without parsing
message strings.
"""

from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation_error"
    NOT_WHITELISTED = "not_whitelisted"
    INVALID_OR_EXPIRED_TOKEN = "invalid_or_expired_token"
    SESSION_EXPIRED = "session_expired"
    AUTH_REQUIRED = "auth_required"
    VERIFICATION_IN_PROGRESS = "verification_in_progress"
    GENERATION = "generation_error"
    GENERATION_IN_PROGRESS = "generation_in_progress"
    NO_RESULT = "no_result"
    EXPORT = "export_error"
    TRANSPORT = "transport_error"


class OutreachError(Exception):
    """Base exception for client errors."""

    kind: ErrorKind = ErrorKind.TRANSPORT
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None, status_code: int | None = None):
        self.message = message or self.default_message
        self.status_code = status_code
        super().__init__(self.message)

    @property
    def error_code(self) -> str:
        return self.kind.value


class ValidationError(OutreachError):
    """Raised locally when a required input is blank. Never reaches the network."""

    kind = ErrorKind.VALIDATION
    default_message = "A required field is missing"

    def __init__(self, field: str, message: str | None = None):
        self.field = field
        super().__init__(message or f"{field} is required")


class AuthError(OutreachError):
    """Base exception for authentication failures."""

    kind = ErrorKind.SESSION_EXPIRED
    default_message = "Authentication failed"


class NotWhitelistedError(AuthError):
    """Raised when the email is not on the founder allowlist."""

    kind = ErrorKind.NOT_WHITELISTED
    default_message = "Your email is not on the whitelist."


class InvalidOrExpiredTokenError(AuthError):
    """Raised when a magic link token is unknown, already used or expired."""

    kind = ErrorKind.INVALID_OR_EXPIRED_TOKEN
    default_message = "Invalid or expired token"


class SessionExpiredError(AuthError):
    """Raised when the server no longer recognises the session cookie."""

    kind = ErrorKind.SESSION_EXPIRED
    default_message = "Your session has expired. Please sign in again."


class AuthRequiredError(AuthError):
    kind = ErrorKind.AUTH_REQUIRED
    default_message = "Please sign in to continue."


class VerificationInProgressError(AuthError):
    kind = ErrorKind.VERIFICATION_IN_PROGRESS
    default_message = "A verification is already in progress."


class GenerationError(OutreachError):
    """Raised when the generation service fails or returns a malformed result."""

    kind = ErrorKind.GENERATION
    default_message = "Failed to generate outreach message"


class GenerationInProgressError(GenerationError):
    """Raised when a generation is requested while another is still in flight."""

    kind = ErrorKind.GENERATION_IN_PROGRESS
    default_message = "A generation is already in progress."


class NoResultError(OutreachError):
    """Raised when save or export is attempted with no ready result."""

    kind = ErrorKind.NO_RESULT
    default_message = "Generate a message first before saving"


class ExportError(OutreachError):
    kind = ErrorKind.EXPORT
    default_message = "Failed to export as PDF"


class TransportError(OutreachError):
    """Raised for network failures, unexpected HTTP statuses and unparseable bodies."""

    kind = ErrorKind.TRANSPORT
    default_message = "Unable to reach the BLACK CTRL API. Please try again later."

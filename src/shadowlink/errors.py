"""Exceptions raised across the ShadowLink pillars.

Every error carries a message that is safe to show in the UI and a
machine-readable code. The action layer reports them as tagged failures.
"""

from typing import Optional

UNKNOWN_ERROR_MESSAGE = "An unknown error occurred."


class ShadowLinkError(Exception):
    """Base exception for all ShadowLink-specific errors."""

    def __init__(self, message: str, code: str = "ERROR") -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class InvalidInputError(ShadowLinkError):
    """Rejected input: missing identity, empty message and the like."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


class StoreUnavailableError(ShadowLinkError):
    """The document store is unreachable or was never initialized."""

    def __init__(self, message: str = "Database is not initialized.") -> None:
        super().__init__(message, code="STORE_UNAVAILABLE")


class ConversationNotFoundError(ShadowLinkError):
    """A conversation id references no document the caller may see."""

    def __init__(self, conversation_id: Optional[str] = None) -> None:
        super().__init__("Conversation not found.", code="NOT_FOUND")
        self.conversation_id = conversation_id


class GenerationError(ShadowLinkError):
    """The hosted generation call failed."""

    def __init__(self, message: str = "The AI model could not generate a response.") -> None:
        super().__init__(message, code="GENERATION_ERROR")


class MalformedResponseError(GenerationError):
    """The model replied, but not in the requested output shape."""

    def __init__(self, template: str, detail: str = "") -> None:
        message = f"The AI model returned a malformed response for '{template}'."
        super().__init__(message)
        self.code = "MALFORMED_RESPONSE"
        self.template = template
        self.detail = detail

"""
PropChat error types.

Extraction and synthesis failures never surface as exceptions; they degrade
to empty criteria and a fallback reply. Only the two types below reach the
HTTP boundary.
"""


class InvalidInputError(ValueError):
    """Raised for caller errors: empty message, unknown provider"""


class ChatProcessingError(RuntimeError):
    """
    Raised when a chat turn cannot be completed (e.g. the store lookup failed).

    Attributes:
        detail: Diagnostic message from the underlying failure
    """

    def __init__(self, message: str, detail: str = ""):
        super().__init__(message)
        self.detail = detail


class ProviderUnavailableError(RuntimeError):
    """Raised when a text-completion provider is not configured"""

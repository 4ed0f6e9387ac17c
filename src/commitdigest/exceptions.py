"""
Custom exceptions for commitdigest.
"""


class DigestError(Exception):
    """Base exception for all commitdigest errors."""

    pass


class ConfigurationError(DigestError):
    """Raised when there's an issue with configuration."""

    pass


class MCPError(DigestError):
    """Raised when there's an issue with MCP operations."""

    pass


class ProviderError(DigestError):
    """Raised when the remote model endpoint fails for good."""

    pass


class RetryExhaustedError(ProviderError):
    """Raised when every retry attempt of a remote call failed."""

    def __init__(self, message: str, last_error: BaseException, attempts: int):
        super().__init__(message)
        self.last_error = last_error
        self.attempts = attempts


class MalformedResponseError(DigestError):
    """Raised when a JSON-mode response is not a valid structured summary."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class ToolExecutionError(DigestError):
    """Raised when a single tool invocation cannot be carried out."""

    pass


class ConversationError(DigestError):
    """Raised when conversation turns are appended out of order."""

    pass

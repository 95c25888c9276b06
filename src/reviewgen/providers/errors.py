"""Custom provider exceptions."""


class ProviderError(Exception):
    """Base exception for provider call failures."""

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.original_error = original_error


class ProviderTimeoutError(ProviderError):
    """Exception raised when a provider call exceeds its configured timeout.

    The in-flight request is cancelled before this is raised.
    """

    pass


class ProviderAPIError(ProviderError):
    """Exception raised for communication errors with the network boundary.

    This typically occurs when:
    - The proxy or backend answers with a non-2xx status
    - The connection fails (DNS, refused, reset)
    - The response body is not a chat-completions payload
    - The backend returns empty text
    """

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        status_code: int | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, provider, original_error)
        self.status_code = status_code

"""Integration client exceptions.

The message of every exception is safe to show to the operator: provider
error text is carried through verbatim.
"""


class IntegrationError(Exception):
    """Base exception for all third-party integration errors."""

    def __init__(self, message, code=None, details=None, is_retryable=False):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.is_retryable = is_retryable


class ConfigurationError(IntegrationError):
    """Missing API key, sender or endpoint configuration."""

    def __init__(self, message='Integration is not configured', **kwargs):
        super().__init__(message, is_retryable=False, **kwargs)


class AuthenticationError(IntegrationError):
    """Provider rejected the credentials."""

    def __init__(self, message='Authentication failed', **kwargs):
        super().__init__(message, is_retryable=False, **kwargs)


class NetworkError(IntegrationError):
    """Connection refused, timeout, or network issue."""

    def __init__(self, message='Network error', **kwargs):
        super().__init__(message, is_retryable=True, **kwargs)


class TimeoutError(NetworkError):
    """Request timed out."""

    def __init__(self, message='Request timed out', **kwargs):
        super().__init__(message, **kwargs)


class APIError(IntegrationError):
    """Non-success response from the provider."""

    def __init__(self, message='API error', status_code=None, **kwargs):
        is_retryable = bool(status_code and status_code >= 500)
        super().__init__(message, is_retryable=is_retryable, **kwargs)
        self.status_code = status_code


class ParseError(IntegrationError):
    """Failed to parse the provider response."""

    def __init__(self, message='Failed to parse response', **kwargs):
        super().__init__(message, is_retryable=False, **kwargs)

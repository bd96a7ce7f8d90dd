"""Custom exceptions for the token emissions engine."""


class EmissionsError(Exception):
    """Base exception for all token emissions engine errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class TokenNotFoundError(EmissionsError):
    """Raised when a token cannot be found in any data source."""

    def __init__(self, token_identifier: str, sources_checked: list[str] | None = None):
        message = f"Token not found: {token_identifier}"
        if sources_checked:
            message += f" (checked: {', '.join(sources_checked)})"
        super().__init__(message, {"token": token_identifier, "sources": sources_checked})
        self.token_identifier = token_identifier
        self.sources_checked = sources_checked or []


class DataSourceError(EmissionsError):
    """Raised when a data source fails or returns invalid data."""

    def __init__(
        self,
        source: str,
        message: str,
        endpoint: str | None = None,
        status_code: int | None = None,
    ):
        full_message = f"[{source}] {message}"
        super().__init__(
            full_message,
            {
                "source": source,
                "endpoint": endpoint,
                "status_code": status_code,
            },
        )
        self.source = source
        self.endpoint = endpoint
        self.status_code = status_code


class RateLimitError(DataSourceError):
    """Raised when API rate limit is hit."""

    def __init__(
        self,
        source: str,
        retry_after_seconds: int | None = None,
        endpoint: str | None = None,
    ):
        message = "Rate limit exceeded"
        if retry_after_seconds:
            message += f", retry after {retry_after_seconds}s"
        super().__init__(source, message, endpoint=endpoint, status_code=429)
        self.retry_after_seconds = retry_after_seconds


class ConfigurationError(EmissionsError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, config_key: str, message: str):
        full_message = f"Configuration error [{config_key}]: {message}"
        super().__init__(full_message, {"config_key": config_key})
        self.config_key = config_key


class StorageError(EmissionsError):
    """Raised when the durable store cannot be read or written."""

    def __init__(self, path: str, message: str):
        full_message = f"Storage error [{path}]: {message}"
        super().__init__(full_message, {"path": path})
        self.path = path

"""Custom exceptions for the strmarr application.

This module defines all custom exception classes used throughout the
application, grouped by the component that raises them, each carrying the
identifiers needed to make a log line actionable.
"""


class StrmarrError(Exception):
    """Base class for application-specific errors."""


class ConfigLoadError(StrmarrError):
    """Raised when a configuration file fails to load.

    Attributes:
        config_file: Path to the configuration file that failed to load.
    """

    def __init__(
        self,
        message: str,
        config_file: str | None = None,
    ):
        super().__init__(message)
        self.config_file = config_file


class ConfigurationError(StrmarrError):
    """Raised when a required setting is missing or inconsistent.

    Attributes:
        setting_name: The name of the offending setting.
    """

    def __init__(
        self,
        message: str,
        setting_name: str | None = None,
    ):
        super().__init__(message)
        self.setting_name = setting_name


class RetryExhaustedError(StrmarrError):
    """Raised when an operation keeps failing after every permitted retry.

    The last underlying failure is available as ``__cause__``.

    Attributes:
        operation: Name of the operation that was retried.
        attempts: Total number of attempts made.
    """

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        attempts: int | None = None,
    ):
        super().__init__(message)
        self.operation = operation
        self.attempts = attempts


class CatalogApiError(StrmarrError):
    """Raised when a call to a catalog (Sonarr/Radarr) API fails.

    Attributes:
        service: The catalog service name.
        operation: Name of the failed operation.
        status_code: HTTP status code of the last response, if any.
    """

    def __init__(
        self,
        message: str,
        service: str | None = None,
        operation: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.service = service
        self.operation = operation
        self.status_code = status_code


class FileOperationError(StrmarrError):
    """Raised when a filesystem operation on an artifact fails.

    Attributes:
        file_name: The file name associated with the error.
    """

    def __init__(
        self,
        message: str,
        file_name: str | None = None,
    ):
        super().__init__(message)
        self.file_name = file_name


class WebhookPayloadError(StrmarrError):
    """Raised when a webhook payload lacks the data needed to act on it.

    Attributes:
        event_type: The webhook event type.
    """

    def __init__(
        self,
        message: str,
        event_type: str | None = None,
    ):
        super().__init__(message)
        self.event_type = event_type


class UnsupportedOperationError(StrmarrError):
    """Raised when an operation needs a catalog that is not configured.

    Attributes:
        operation: Name of the rejected operation.
    """

    def __init__(
        self,
        message: str,
        operation: str | None = None,
    ):
        super().__init__(message)
        self.operation = operation

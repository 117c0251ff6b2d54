"""
Custom exceptions for the LLM bot detector.

Errors raised here never reach the request path: the detector converts
them into non-matching outcomes. They surface while loading filters or
settings.
"""


class DetectorError(Exception):
    """
    Base exception for all detector-related errors.

    All other detector exceptions inherit from this class,
    allowing for broad exception catching when needed.
    """

    pass


class FilterValidationError(DetectorError):
    """
    Raised when an agent filter or filter set is invalid.

    Attributes:
        filter_name: Name of the offending filter (optional)
        field: The field that failed validation (optional)
        message: Detailed error message
    """

    def __init__(
        self,
        message: str,
        filter_name: str | None = None,
        field: str | None = None,
    ):
        self.filter_name = filter_name
        self.field = field
        self.message = message
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with filter and field context."""
        if self.filter_name and self.field:
            return f"{self.message} (filter='{self.filter_name}', field='{self.field}')"
        elif self.filter_name:
            return f"{self.message} (filter='{self.filter_name}')"
        return self.message


class FilterLoadError(DetectorError):
    """
    Raised when a filter file cannot be read or decoded.

    Attributes:
        path: Path of the file that failed to load (optional)
        message: Detailed error message
    """

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        self.message = message
        super().__init__(f"{message} (path='{path}')" if path else message)


class ConfigurationError(DetectorError):
    """Raised when a configuration file cannot be decrypted or parsed."""

    pass

"""Error taxonomy. Each class carries the HTTP status it is surfaced with."""
from typing import Optional


class ConverterError(Exception):
    status_code = 500

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is None:
            return self.message
        return f"{self.message}: {self.cause}"


class ClientError(ConverterError):
    """Malformed or incomplete request."""

    status_code = 400


class UnsupportedFormatError(ClientError):
    pass


class NotFoundError(ConverterError):
    status_code = 404


class ConversionError(ConverterError):
    """Failure inside the conversion pipeline; reported as a server error."""

    status_code = 500


class DecodeError(ConversionError):
    pass


class EncodeError(ConversionError):
    pass


class ValidationError(ConversionError):
    pass


class InvalidNameError(ConversionError):
    pass


class UploadError(ConversionError):
    """The uploaded file could not be written to transient storage."""

"""Custom exceptions used across auto-redline."""

__all__ = [
    "RedlineError",
    "InputError",
    "MissingInputError",
    "InvalidDocumentError",
    "ConfigError",
    "DependencyError",
    "PageJobError",
]


class RedlineError(Exception):
    """Base class for errors reported to the command line."""

    exit_code = 1


class InputError(RedlineError):
    """Raised when an input document cannot be used."""

    exit_code = 3


class MissingInputError(InputError):
    """Raised when an input document does not exist."""

    exit_code = 2


class InvalidDocumentError(InputError):
    """Raised when an input file is not a readable PDF."""

    exit_code = 3


class ConfigError(RedlineError):
    """Raised for out-of-range or malformed tuning parameters."""

    exit_code = 1


class DependencyError(RedlineError):
    """Raised when PyMuPDF or OpenCV is not importable."""

    exit_code = 4


class PageJobError(RedlineError):
    """Raised when a single page pair fails to process."""

    exit_code = 5

    def __init__(self, page_index: int, message: str):
        super().__init__(f"page {page_index}: {message}")
        self.page_index = page_index
        self.detail = message

    def __reduce__(self):
        # keep the exception picklable across worker processes
        return (type(self), (self.page_index, self.detail))

"""
Exceptions raised by the OCR table structure package.

Every error carries a message plus a ``details`` mapping of context values
(file paths, exit codes, record numbers) that is shown when printed.
"""

from typing import Optional, Any


class OCRStructureError(Exception):
    """Base exception for all OCR structure errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = {**(details or {}), **context}

    def __str__(self) -> str:
        if not self.details:
            return self.message
        context = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({context})"


class ConfigurationError(OCRStructureError):
    """Settings file missing, unparsable or failing validation."""


class ProcessingError(OCRStructureError):
    """A page could not be processed."""

    def __init__(self, message: str, processor: Optional[str] = None,
                 image_path: Optional[str] = None, **context: Any) -> None:
        if processor:
            context["processor"] = processor
        if image_path:
            context["image_path"] = image_path
        super().__init__(message, **context)


class ImageUnreadableError(ProcessingError):
    """Page image missing or not decodable."""


class WordSourceError(ProcessingError):
    """Recognized words could not be produced or parsed."""


class InvalidInputError(OCRStructureError, ValueError):
    """An image or mask argument has the wrong type or shape."""

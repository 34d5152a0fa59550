"""Exceptions raised by the problem details serializers."""

from typing import Optional


class ProblemDetailsError(Exception):
    """Base exception for the problem details library."""


class XmlStreamError(ProblemDetailsError):
    """Raised when the XML stream writer is used in a way that would produce malformed XML."""

    def __init__(self, message: str, element: Optional[str] = None):
        self.element = element
        if element:
            message = f"{message} (element: {element})"
        super().__init__(message)

"""
VideoMind — Error Kinds
========================
Every failure path in the sync engine raises one of these. None of them is
fatal: the previously active document always stays in place.
"""

from typing import Any, Dict, List, Optional


class MindMapError(Exception):
    """Base class for all mind map engine errors."""


class DocumentValidationError(MindMapError):
    """A candidate document was rejected; the active document is untouched."""

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []


class SchemaError(DocumentValidationError):
    """Malformed JSON, missing required fields or wrong field shapes."""


class RangeError(DocumentValidationError):
    """A node timestamp range is inverted, negative or non-finite."""


class ResourceError(MindMapError):
    """The generation collaborator failed (provider error, bad JSON, timeout)."""


class StaleResultError(MindMapError):
    """A generation result arrived after its request was superseded."""

    def __init__(self, ticket: int):
        super().__init__(f"Generation request #{ticket} was superseded")
        self.ticket = ticket

from __future__ import annotations


class BusinessValidationError(Exception):
    """Raised when a request violates an API-level rule (mapped to HTTP 400)."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class SupportPipelineError(Exception):
    """Base error for model output that cannot be turned into a support answer."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ResponseParseError(SupportPipelineError):
    """Raised when model output is not decodable as JSON."""


class ResponseValidationError(SupportPipelineError):
    """Raised when decoded model output misses or violates a required field."""

    def __init__(self, message: str, *, field: str):
        super().__init__(message)
        self.field = field

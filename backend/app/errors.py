"""
Typed errors raised by the core.

They subclass HTTPException so the HTTP layer renders them as-is, while
services and tests can still tell a missing row apart from a bad payload.
"""
from fastapi import HTTPException


class ValidationError(HTTPException):
    def __init__(self, detail: str = "invalid data"):
        super().__init__(status_code=400, detail=detail)


class UnauthorizedError(HTTPException):
    def __init__(self, detail: str = "not authenticated"):
        super().__init__(status_code=401, detail=detail)


class ForbiddenError(HTTPException):
    def __init__(self, detail: str = "permission denied"):
        super().__init__(status_code=403, detail=detail)


class NotFoundError(HTTPException):
    def __init__(self, detail: str = "not found"):
        super().__init__(status_code=404, detail=detail)


class CollaboratorError(HTTPException):
    """A stored function returned nothing where a result was required."""

    def __init__(self, detail: str = "database function returned no result"):
        super().__init__(status_code=502, detail=detail)

"""
Error types for the relief coordination API
Every failure reported to a caller is a werkzeug HTTPException; app.py renders them as {"error": message}
"""
from werkzeug import exceptions


class ReliefError(exceptions.HTTPException):
    """Base class for errors surfaced to API callers"""

    @property
    def message(self):
        return self.description

    def to_dict(self):
        return {"error": self.description}


class Unauthorized(ReliefError, exceptions.Unauthorized):
    description = "Unauthorized"


class Forbidden(ReliefError, exceptions.Forbidden):
    description = "You don't have permission to perform this action"


class NotFound(ReliefError, exceptions.NotFound):
    description = "Not found"


class ValidationError(ReliefError, exceptions.BadRequest):
    description = "Invalid request"


class InsufficientStock(ValidationError):
    description = "Insufficient stock"


class NeedCompleted(ValidationError):
    description = "Need is already completed"


class InternalError(ReliefError, exceptions.InternalServerError):
    description = "Internal server error"

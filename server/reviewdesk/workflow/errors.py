class WorkflowError(Exception):
    """Base class for errors raised by the review workflow."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(WorkflowError):
    """Missing field, invalid enum value or malformed identifier."""

    status_code = 400


class NotFoundError(WorkflowError):
    status_code = 404


class AuthorizationError(WorkflowError):
    """The caller is authenticated but may not act on this resource."""

    status_code = 403


class AuthenticationError(AuthorizationError):
    status_code = 401


class ConflictError(WorkflowError):
    """
    A uniqueness constraint was hit.

    Batch assignment absorbs these as skipped rows; single-entity creation
    surfaces them like a validation failure.
    """

    status_code = 400


class ExternalServiceError(WorkflowError):
    """Insight extraction or mail dispatch failed. Never surfaced to callers."""

    status_code = 502

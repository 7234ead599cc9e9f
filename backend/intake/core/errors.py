"""Intake error classes.

Every error carries a machine-readable code, a human-readable message and
the HTTP status the API layer renders it with. The flow raises them; the
session converts remote failures into user notices, and the exception
handlers in main.py turn the rest into the error envelope.
"""


class IntakeError(Exception):
    """Base class for intake errors.

    Attributes:
        code: Machine-readable error code (e.g., "NOT_FOUND").
        message: Human-readable error message.
        status_code: HTTP status code to return.
        details: Optional list of additional error details.
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: list[dict] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class ValidationError(IntakeError):
    """Section form failed local validation (400).

    Raised before any network call. Details hold one entry per failing
    field: {"field": ..., "message": ...}.
    """

    def __init__(
        self,
        message: str,
        details: list[dict] | None = None,
    ) -> None:
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=400,
            details=details,
        )


class PersistenceError(IntakeError):
    """Remote partial update failed (502).

    The section keeps its form state and the draft keeps the attempted
    values; the user retries by continuing again.
    """

    def __init__(self, message: str = "Failed to save member profile") -> None:
        super().__init__(
            code="PERSISTENCE_FAILED",
            message=message,
            status_code=502,
        )


class EntityFetchError(IntakeError):
    """Member entity could not be read (502).

    Without the entity no step sequence can be computed, so this is a
    page-level error.
    """

    def __init__(self, message: str = "Failed to load onboarding.") -> None:
        super().__init__(
            code="ENTITY_FETCH_FAILED",
            message=message,
            status_code=502,
        )


class DraftCorruptionError(IntakeError):
    """Stored draft is malformed or from another schema version.

    Internal only: the draft store catches it and reports the draft as
    absent. Never rendered to users.
    """

    def __init__(self, message: str) -> None:
        super().__init__(
            code="DRAFT_CORRUPT",
            message=message,
            status_code=500,
        )


class SubmissionInProgressError(IntakeError):
    """A section submission is already in flight (409)."""

    def __init__(self) -> None:
        super().__init__(
            code="SUBMISSION_IN_PROGRESS",
            message="A save is already in progress for this session",
            status_code=409,
        )


class NotFoundError(IntakeError):
    """Resource not found (404)."""

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        else:
            message = f"{resource} not found"
        super().__init__(
            code="NOT_FOUND",
            message=message,
            status_code=404,
        )


class InvalidStateError(IntakeError):
    """Operation not allowed in the session's current state (422).

    E.g., skipping a required section or jumping to a step that is not in
    the current sequence.
    """

    def __init__(self, message: str) -> None:
        super().__init__(
            code="INVALID_STATE_TRANSITION",
            message=message,
            status_code=422,
        )

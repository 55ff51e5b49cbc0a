"""Error taxonomy shared by the services and the HTTP layer."""


class NivasaError(Exception):
    """Base exception for all Nivasa errors."""

    status_code = 500

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message)
        self.message = message


class ValidationError(NivasaError):
    """Missing or malformed input."""

    status_code = 400


class ConflictError(NivasaError):
    """A uniqueness rule would be violated."""

    status_code = 400


class NotFoundError(NivasaError):
    """A referenced entity does not exist (or is outside the caller's apartment)."""

    status_code = 404


class UnauthorizedError(NivasaError):
    """Credentials did not match."""

    status_code = 401


class ForbiddenError(NivasaError):
    """The operation is not allowed for this caller or target."""

    status_code = 403


class InternalError(NivasaError):
    """Storage or driver failure."""

    status_code = 500

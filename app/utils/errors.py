"""Custom exception hierarchy for the Squad Game API."""

from __future__ import annotations


class AppError(Exception):
    """Base application error with a stable machine-readable code."""

    def __init__(self, message: str, code: str, status_code: int = 400) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        """Serialize the error in the API standard shape."""
        return {"error": self.message, "code": self.code}


class NotFoundError(AppError):
    """Raised when a requested resource does not exist."""

    def __init__(self, resource: str) -> None:
        super().__init__(message=f"{resource} not found", code="NOT_FOUND", status_code=404)


class ForbiddenError(AppError):
    """Raised when the user lacks permission for the action."""

    def __init__(self, reason: str = "You don't have permission") -> None:
        super().__init__(message=reason, code="FORBIDDEN", status_code=403)


class ConflictError(AppError):
    """Raised on duplicate/conflicting operations."""

    def __init__(self, reason: str, code: str = "CONFLICT") -> None:
        super().__init__(message=reason, code=code, status_code=409)


class UnauthorizedError(AppError):
    """Raised when the caller is not authenticated."""

    def __init__(self, reason: str = "Unauthorized") -> None:
        super().__init__(message=reason, code="UNAUTHORIZED", status_code=401)


class TriggerUnauthorizedError(UnauthorizedError):
    """Raised when a cron trigger presents neither the cron secret nor the service key.

    Rendered as a bare ``Unauthorized`` text body rather than the JSON shape.
    """


class InvalidInputError(AppError):
    """Raised for request payload or parameter validation issues."""

    def __init__(self, reason: str) -> None:
        super().__init__(message=reason, code="INVALID_INPUT", status_code=422)


class CrownError(AppError):
    """Base class for crown ledger validation failures."""


class CrownNotFoundError(CrownError):
    """Raised when a crown id does not resolve to a crown."""

    def __init__(self, crown_id: str) -> None:
        super().__init__(
            message=f"Crown not found: {crown_id}",
            code="CROWN_NOT_FOUND",
            status_code=404,
        )


class NotCrownOwnerError(CrownError):
    """Raised when the caller does not hold the crown they are using."""

    def __init__(self) -> None:
        super().__init__(
            message="Crown does not belong to current user",
            code="NOT_CROWN_OWNER",
            status_code=403,
        )


class CrownExpiredError(CrownError):
    """Raised when the crown's 24 hours are over."""

    def __init__(self) -> None:
        super().__init__(message="Crown has expired", code="CROWN_EXPIRED", status_code=409)


class HeadlineTooLongError(CrownError):
    """Raised when a headline exceeds the character limit."""

    def __init__(self, limit: int) -> None:
        super().__init__(
            message=f"Headline exceeds {limit} character limit",
            code="HEADLINE_TOO_LONG",
            status_code=422,
        )


class HeadlineEmptyError(CrownError):
    """Raised when a headline is empty after trimming."""

    def __init__(self) -> None:
        super().__init__(
            message="Headline cannot be empty",
            code="HEADLINE_EMPTY",
            status_code=422,
        )


class RivalsNotDistinctError(CrownError):
    """Raised when both rivals are the same person."""

    def __init__(self) -> None:
        super().__init__(
            message="Rivals must be different people",
            code="RIVALS_NOT_DISTINCT",
            status_code=422,
        )


class DeclarerIsRivalError(CrownError):
    """Raised when the crown holder names themselves as a rival."""

    def __init__(self) -> None:
        super().__init__(
            message="Crown holder cannot be a rival",
            code="DECLARER_IS_RIVAL",
            status_code=422,
        )


class RivalNotInSquadError(CrownError):
    """Raised when a named rival is not a member of the crown's squad."""

    def __init__(self, position: int) -> None:
        self.position = position
        super().__init__(
            message=f"Rival {position} is not a member of this squad",
            code="RIVAL_NOT_IN_SQUAD",
            status_code=422,
        )

from fastapi import HTTPException
from pydantic import BaseModel
from typing import Optional


class ProblemDetail(BaseModel):
    """RFC 7807 compliant error response."""

    type: str = "about:blank"
    title: str
    detail: Optional[str] = None
    status: int
    instance: Optional[str] = None
    code: str


class DomainException(Exception):
    """Base class for domain-specific exceptions."""

    def __init__(
        self,
        status_code: int,
        title: str,
        *,
        code: str,
        detail: str | None = None,
        type_: str = "about:blank",
    ) -> None:
        super().__init__(detail or title)
        self.status_code = status_code
        self.title = title
        self.detail = detail
        self.type = type_
        self.code = code


class PermissionDenied(DomainException):
    """Caller is neither organizer/superadmin nor holder of the scorer PIN."""

    def __init__(self, detail: str = "access denied") -> None:
        super().__init__(
            status_code=403,
            title="Access denied",
            detail=detail,
            code="access_denied",
        )


class InvalidResultError(DomainException):
    """Scores describe a draw or do not fit the match format."""

    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=422,
            title="Invalid result",
            detail=detail,
            code="invalid_result",
        )


class AlreadyFinalizedError(DomainException):
    def __init__(self, match_id: str) -> None:
        super().__init__(
            status_code=409,
            title="Already recorded",
            detail=f"match '{match_id}' result is already recorded",
            code="already_finalized",
        )
        self.match_id = match_id


class NotFoundError(DomainException):
    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(
            status_code=404,
            title=f"{entity.capitalize()} not found",
            detail=f"{entity} '{entity_id}' not found",
            code=f"{entity}_not_found",
        )
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(DomainException):
    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=409,
            title="Conflict",
            detail=detail,
            code="conflict",
        )


def http_problem(
    status_code: int,
    detail: str,
    code: str,
    *,
    headers: Optional[dict[str, str]] = None,
) -> HTTPException:
    """Create an HTTPException with an attached problem code."""

    exc = HTTPException(status_code=status_code, detail=detail, headers=headers)
    setattr(exc, "code", code)
    return exc

"""Error taxonomy for the employment workflow and its FastAPI handlers.

Every workflow failure is rendered with the same body::

    {"detail": {"code": ..., "message": ..., "issues": [...], "retryable": ...}}

so clients can route field issues back to the form step that owns them.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Iterable

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

SECTION_NAMES = ("employment", "salary", "location", "contract")


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    REFERENTIAL_ERROR = "REFERENTIAL_ERROR"
    NOT_FOUND = "NOT_FOUND"
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"


@dataclass(frozen=True)
class FieldIssue:
    """One failed rule, addressed by form section and field name."""

    section: str
    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


class WorkflowError(Exception):
    """Base exception for all employment workflow failures."""

    code = ErrorCode.VALIDATION_ERROR
    status_code = status.HTTP_400_BAD_REQUEST
    retryable = False

    def __init__(self, message: str, issues: Iterable[FieldIssue] = ()):
        self.message = message
        self.issues = list(issues)
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "issues": [issue.to_dict() for issue in self.issues],
            "retryable": self.retryable,
        }


class ValidationError(WorkflowError):
    """The submitted aggregate breaks one or more rules.

    Carries every issue found, not just the first one.
    """

    code = ErrorCode.VALIDATION_ERROR
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, issues: Iterable[FieldIssue], message: str | None = None):
        issues = list(issues)
        if message is None:
            count = len(issues)
            message = f"{count} validation issue{'s' if count != 1 else ''} found"
        super().__init__(message, issues)

    @classmethod
    def single(cls, section: str, field: str, message: str) -> "ValidationError":
        return cls([FieldIssue(section, field, message)], message)


class ReferentialError(WorkflowError):
    """A referenced employee, department or designation does not exist."""

    code = ErrorCode.REFERENTIAL_ERROR
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(WorkflowError):
    code = ErrorCode.NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND


class PersistenceError(WorkflowError):
    """The storage layer failed; the transaction was rolled back and may be retried."""

    code = ErrorCode.PERSISTENCE_ERROR
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True

    def __init__(self, message: str, original_error: Exception | None = None):
        self.original_error = original_error
        super().__init__(message)


RecoverableError = PersistenceError


def _issue_from_location(loc: tuple[Any, ...], message: str) -> FieldIssue:
    parts = [str(part) for part in loc if part != "body"]
    if not parts:
        return FieldIssue("request", "body", message)
    if loc and loc[0] in ("path", "query"):
        return FieldIssue("request", parts[-1], message)
    if parts[0] in SECTION_NAMES[1:] and len(parts) > 1:
        return FieldIssue(parts[0], ".".join(parts[1:]), message)
    return FieldIssue("employment", ".".join(parts), message)


async def workflow_exception_handler(request: Request, exc: WorkflowError) -> JSONResponse:
    log = logger.error if exc.retryable else logger.warning
    log(
        "%s on %s %s: %s",
        exc.code.value,
        request.method,
        request.url.path,
        exc.message,
        exc_info=getattr(exc, "original_error", None),
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_dict()})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies in the workflow issue format."""

    issues = [_issue_from_location(tuple(err["loc"]), err["msg"]) for err in exc.errors()]
    error = ValidationError(issues, "Request validation failed")
    logger.warning(
        "Request validation failed on %s %s: %d issue(s)",
        request.method,
        request.url.path,
        len(issues),
    )
    return JSONResponse(status_code=error.status_code, content={"detail": error.to_dict()})


def setup_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(WorkflowError, workflow_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

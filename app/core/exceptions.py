"""
Domain errors raised at the service boundary.

Every error carries a machine-readable ``code``, a human message and a
``details`` dict so the admin UI can render an actionable message (missing
field names, the conflicting stage, ...). ``pipeline_error_handler`` turns them
into the standard error envelope:

    {"error": {"code": "MISSING_REQUIRED_FIELDS", "message": "...", "details": {...}}}
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse


def build_error_payload(code: str, message: str, details: Optional[dict[str, Any]] = None) -> dict[str, Any]:
    payload: dict[str, Any] = {"error": {"code": code, "message": message}}
    if details:
        payload["error"]["details"] = details
    return payload


class PipelineError(Exception):
    """Base class for all recoverable and fatal domain errors."""

    code = "PIPELINE_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_payload(self) -> dict[str, Any]:
        return build_error_payload(self.code, self.message, self.details)


class IllegalTransition(PipelineError):
    code = "ILLEGAL_TRANSITION"
    status_code = status.HTTP_409_CONFLICT


class MissingRequiredFields(PipelineError):
    code = "MISSING_REQUIRED_FIELDS"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    @property
    def missing_fields(self) -> list[str]:
        return list(self.details.get("missing_fields", []))


class InvalidFields(PipelineError):
    code = "INVALID_FIELDS"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class Conflict(PipelineError):
    """Optimistic-concurrency collision; reload and retry."""

    code = "CONFLICT"
    status_code = status.HTTP_409_CONFLICT


class NotFound(PipelineError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class PersistenceFailure(PipelineError):
    code = "PERSISTENCE_FAILURE"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class DuplicateEntry(PipelineError):
    code = "DUPLICATE_ENTRY"
    status_code = status.HTTP_409_CONFLICT


class CandidateAnonymised(PipelineError):
    code = "CANDIDATE_ANONYMISED"
    status_code = status.HTTP_409_CONFLICT


class InvalidPlacementState(PipelineError):
    code = "INVALID_PLACEMENT_STATE"
    status_code = status.HTTP_409_CONFLICT


async def pipeline_error_handler(_: Request, exc: PipelineError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

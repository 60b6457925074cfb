from fastapi import HTTPException

from app.services.errors import (
    ConsistencyError,
    InputError,
    NotFoundError,
    PreconditionError,
    ProgressionError,
    ValidationError,
)


def to_http_exception(exc: ProgressionError) -> HTTPException:
    """Map a service error to the HTTP status the API reports."""
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, InputError):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, PreconditionError):
        return HTTPException(
            status_code=409,
            detail={"message": str(exc), "unfinished_match_ids": exc.unfinished_match_ids},
        )
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, ConsistencyError):
        return HTTPException(status_code=500, detail=f"Inconsistent progression state: {exc}")
    return HTTPException(status_code=500, detail=str(exc))

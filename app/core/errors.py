"""
Domain errors raised by the services layer.

Routes let these propagate; the handler registered in app.main turns each one
into a JSON response with the status code declared on the class:

    {"detail": "Tenant not found", "error": "not_found"}
"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class DomainError(Exception):
    status_code = 400
    code = "bad_request"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    """Referenced id does not exist (in the current user's scope)."""
    status_code = 404
    code = "not_found"


class ValidationError(DomainError):
    """Malformed input. Raised before anything is written."""
    status_code = 422
    code = "validation_error"


class PlanLimitError(DomainError):
    """Free-tier property limit reached; the user has to upgrade."""
    status_code = 402
    code = "plan_limit"


class InconsistentStateError(DomainError):
    """
    A cross-entity invariant would be (or has been) violated, e.g. a tenant
    was deleted but its property could not be released. Steps that already
    succeeded are NOT rolled back.
    """
    status_code = 409
    code = "inconsistent_state"


class ConflictError(InconsistentStateError):
    """The row was changed by someone else since it was read (version mismatch)."""
    code = "conflict"


class TransientIOError(DomainError):
    """Database unavailable or connection dropped. Retrying the whole operation is safe."""
    status_code = 503
    code = "transient_io"


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "error": exc.code},
        )

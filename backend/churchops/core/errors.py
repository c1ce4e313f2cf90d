from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

log = logging.getLogger("churchops.errors")


class ActionError(Exception):
    """Expected failure of an operation. Rendered as {"error": message}."""

    status_code = 400
    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthError(ActionError):
    status_code = 401
    default_message = "Not authenticated"


class Forbidden(ActionError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(ActionError):
    status_code = 404
    default_message = "Not found"


class ValidationError(ActionError):
    status_code = 400
    default_message = "Invalid data provided"


class NoPendingAssignments(ActionError):
    status_code = 409
    default_message = "No pending assignments found to invite"


class InvalidState(ActionError):
    status_code = 409
    default_message = "This invitation can no longer be changed"


class AlreadyAssigned(ActionError):
    status_code = 409
    default_message = "This person is already assigned to this position"


class StoreError(ActionError):
    status_code = 500
    default_message = "Something went wrong. Please try again."


def _error_response(exc: ActionError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ActionError)
    async def _action_error(request: Request, exc: ActionError):
        return _error_response(exc)

    @app.exception_handler(SQLAlchemyError)
    async def _store_error(request: Request, exc: SQLAlchemyError):
        log.error("store failure on %s %s", request.method, request.url.path, exc_info=exc)
        return _error_response(StoreError())

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        log.info("invalid payload on %s: %s", request.url.path, exc.errors())
        return JSONResponse(status_code=422, content={"error": "Invalid data provided"})

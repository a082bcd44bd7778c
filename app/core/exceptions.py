"""
Domain exceptions raised by the service layer.

Routes never build HTTP errors for business-rule failures themselves;
``register_exception_handlers`` maps these to responses:

  - NotFoundError      -> 404
  - BusinessRuleError  -> 400 (includes forbidden / rejected / conflict)
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse


class DomainError(Exception):
    """Base class for errors surfaced verbatim to the API caller."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    """An itinerary, request, proposal, user or notification is missing."""


class BusinessRuleError(DomainError):
    """A precondition of a marketplace operation does not hold."""


class ForbiddenActionError(BusinessRuleError):
    """The caller is not allowed to perform this action."""


class RejectedError(BusinessRuleError):
    """The target is not in a state that allows this action."""


class ConflictError(BusinessRuleError):
    """The action would duplicate an existing record."""


async def _not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": exc.message},
    )


async def _business_rule_handler(request: Request, exc: BusinessRuleError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": exc.message},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the domain-error → HTTP mapping on *app*."""
    app.add_exception_handler(NotFoundError, _not_found_handler)
    app.add_exception_handler(BusinessRuleError, _business_rule_handler)

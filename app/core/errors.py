from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse


class NewsletterError(Exception):
    """Base class for rejected operations. Every subclass is recoverable by the caller."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    message: str = "Request rejected"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)

    @property
    def detail(self) -> Any:
        return self.message


class ValidationError(NewsletterError):
    # Positional, user-facing messages; "" marks a valid position.
    message = "Response validation failed"

    def __init__(self, errors: list[str], message: str | None = None):
        super().__init__(message)
        self.errors = errors

    @property
    def detail(self) -> Any:
        return {"message": self.message, "errors": self.errors}


class EncodingError(NewsletterError):
    message = "Answer could not be encoded"


class SchemaLockedError(NewsletterError):
    status_code = status.HTTP_409_CONFLICT
    message = "Questions cannot be changed while the questionnaire is released"


class DuplicateSubmissionError(NewsletterError):
    status_code = status.HTTP_409_CONFLICT
    message = "You have already submitted this form, check back later."


class AlreadyOpenError(NewsletterError):
    status_code = status.HTTP_409_CONFLICT
    message = "Questions are already released for this cycle"


class AlreadyClosedError(NewsletterError):
    status_code = status.HTTP_409_CONFLICT
    message = "This form is closed now"


class TooSoonError(NewsletterError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, release_date: date, days_left: int):
        self.release_date = release_date
        self.days_left = days_left
        super().__init__(
            f"Newsletter can be generated in {days_left} day(s), on {release_date.isoformat()}"
        )

    @property
    def detail(self) -> Any:
        return {
            "message": self.message,
            "release_date": self.release_date.isoformat(),
            "days_left": self.days_left,
        }


class NotAMemberError(NewsletterError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "You are not part of this group"


class CollaboratorError(NewsletterError):
    # A collaborator (membership provider, newsletter compiler) failed.
    status_code = status.HTTP_502_BAD_GATEWAY
    message = "Newsletter could not be compiled, try again later"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NewsletterError)
    async def _newsletter_error_handler(request: Request, exc: NewsletterError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

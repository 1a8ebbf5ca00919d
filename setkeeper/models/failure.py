"""
Response envelope for the HTTP API.

Outcomes seen by API clients fall into three buckets:

- success: the card list, stats, or collection data
- known failure: the set is not tracked, or its card list could not be
  loaded from Scryfall at all
- unknown failure: anything else; details stay in the server log

Query-level Scryfall errors never show up here. The reconciliation pipeline
records them in its phase results and only the exhausted state reaches the
API as a failure.
"""

from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class FailureKind(str, Enum):
    """Why a request failed."""

    NOT_FOUND = "not_found"
    # Primary and fallback discovery both came back empty
    SERVICE_UNAVAILABLE = "service_unavailable"
    UNKNOWN = "unknown"


class OutcomeType(str, Enum):
    SUCCESS = "success"
    KNOWN_FAILURE = "known_failure"
    UNKNOWN_FAILURE = "unknown_failure"


class FailureDetail(BaseModel):
    """What went wrong, phrased for the person using the checklist."""

    kind: FailureKind
    message: str = Field(..., description="Message shown to the user")
    detail: str | None = Field(default=None, description="Technical detail, if any")
    suggestion: str | None = Field(default=None, description="What the user can do next")


class ApiResponse(BaseModel, Generic[T]):
    """Envelope wrapping every set endpoint response."""

    outcome: OutcomeType
    data: T | None = None
    failure: FailureDetail | None = None

    @classmethod
    def known_failure(
        cls,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
    ) -> "ApiResponse[Any]":
        return cls(
            outcome=OutcomeType.KNOWN_FAILURE,
            failure=FailureDetail(kind=kind, message=message, detail=detail, suggestion=suggestion),
        )

    @classmethod
    def unknown_failure(cls, detail: str | None = None) -> "ApiResponse[Any]":
        return cls(
            outcome=OutcomeType.UNKNOWN_FAILURE,
            failure=FailureDetail(
                kind=FailureKind.UNKNOWN,
                message="Something went wrong loading this page. Try reloading.",
                detail=detail,
            ),
        )


class KnownError(Exception):
    """
    An explainable failure carrying its HTTP status.

    Raised from request handlers and rendered by the app's exception handler.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ApiResponse[Any]:
        return ApiResponse.known_failure(
            kind=self.kind,
            message=self.message,
            detail=self.detail,
            suggestion=self.suggestion,
        )


class SetUnavailableError(KnownError):
    """The set's card list could not be loaded: every primary and fallback query failed."""

    def __init__(self, set_code: str, failed_queries: int):
        self.set_code = set_code
        self.failed_queries = failed_queries
        super().__init__(
            kind=FailureKind.SERVICE_UNAVAILABLE,
            message="Unable to load cards. Please check the set code or try again later.",
            detail=f"{failed_queries} queries failed for set '{set_code}'",
            suggestion="Check your connection and retry.",
            status_code=503,
        )


def finalize_response(response: ApiResponse[Any]) -> ApiResponse[Any]:
    """
    Check envelope consistency before it is sent.

    Raises:
        ValueError: If success carries failure details or a failure lacks them
    """
    has_failure = response.failure is not None
    if (response.outcome == OutcomeType.SUCCESS) == has_failure:
        raise ValueError(f"Inconsistent {response.outcome.value} response")
    return response


def create_success(data: T) -> ApiResponse[T]:
    return finalize_response(ApiResponse[T](outcome=OutcomeType.SUCCESS, data=data))


def create_unknown_failure(exception: Exception) -> ApiResponse[Any]:
    """Envelope for an unexpected exception; only the exception type is exposed."""
    return finalize_response(ApiResponse.unknown_failure(detail=type(exception).__name__))

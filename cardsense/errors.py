"""
Error types for CardSense

Only collaborator-boundary failures are raised. Extraction, matching and
edition scoring degrade to empty or low-confidence output instead.
"""

from typing import Optional


class CardSenseException(Exception):
    """Base exception for CardSense errors."""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        detail: Optional[str] = None,
    ):
        self.message = message
        self.code = code
        self.detail = detail
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "error": self.code,
            "message": self.message,
            "detail": self.detail,
        }


class RecognitionFailed(CardSenseException):
    """Recognition engine could not read the image."""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            message="Text recognition failed",
            code="RECOGNITION_FAILED",
            detail=detail,
        )


class NoTextExtracted(CardSenseException):
    """Recognized text did not yield a usable card name."""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            message="No card name could be extracted from recognized text",
            code="NO_TEXT_EXTRACTED",
            detail=detail,
        )


class NoCandidatesFound(CardSenseException):
    """Catalog returned nothing, including after the fuzzy fallback."""

    def __init__(self, query: str):
        self.query = query
        super().__init__(
            message="No matching cards found",
            code="NO_CANDIDATES",
            detail=f"No catalog entry matches '{query}'",
        )


class CatalogNotFound(CardSenseException):
    """Catalog answered 404 for a lookup."""

    def __init__(self, endpoint: str):
        self.endpoint = endpoint
        super().__init__(
            message="Card not found",
            code="NOT_FOUND",
            detail=f"Catalog returned 404 for {endpoint}",
        )


class RateLimited(CardSenseException):
    """Catalog rejected the request with HTTP 429."""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            message="Rate limit exceeded - please wait",
            code="RATE_LIMITED",
            detail=detail,
        )


class NetworkFailure(CardSenseException):
    """Transport error or unexpected catalog status."""

    def __init__(self, detail: Optional[str] = None, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(
            message="Catalog service unavailable",
            code="NETWORK_FAILURE",
            detail=detail,
        )

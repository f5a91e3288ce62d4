# earthinsights/core/errors.py
from typing import Any, Optional


class EarthInsightsError(Exception):
    """Base for errors that reach the HTTP layer as a structured JSON body."""

    status_code = 500
    title = "Internal server error"

    def __init__(
        self,
        details: Any = None,
        *,
        title: Optional[str] = None,
        suggestions: Optional[list[str]] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(details if isinstance(details, str) else (title or self.title))
        self.details = details
        if title:
            self.title = title
        if status_code:
            self.status_code = status_code
        self.suggestions = suggestions or []

    def to_body(self) -> dict:
        body: dict[str, Any] = {"error": self.title}
        if self.details is not None:
            body["details"] = self.details
        if self.suggestions:
            body["suggestions"] = self.suggestions
        return body


class ValidationError(EarthInsightsError):
    status_code = 400
    title = "Invalid input"


class ParseError(EarthInsightsError):
    status_code = 400
    title = "Query parsing failed"


class NotFoundError(EarthInsightsError):
    status_code = 404
    title = "Not found"


class NoDataError(EarthInsightsError):
    status_code = 404
    title = "No data available"


class UpstreamError(EarthInsightsError):
    """An external source failed. 408 on timeout, 429 on rate limiting, 503 otherwise."""

    status_code = 503
    title = "Upstream service unavailable"


class ConfigurationError(EarthInsightsError):
    status_code = 500
    title = "Service configuration error"

"""Typed errors raised by the analysis pipeline and mapped to HTTP in main.py."""


class AnalysisError(Exception):
    """Base error carrying an HTTP status and a JSON-safe details mapping."""

    status_code = 500
    error = "Analysis failed"

    def __init__(self, message: str, status_code: int | None = None, details: dict | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"success": False, "error": self.error, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class InvalidUrlError(AnalysisError):
    status_code = 400
    error = "Invalid URL"


class PageFetchError(AnalysisError):
    """The target page could not be retrieved with any URL variant."""

    status_code = 504
    error = "Failed to fetch page"

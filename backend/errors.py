"""Ethical Media Analyzer - Error taxonomy
Copyright (c) 2026 beautifulplanet
Licensed under MIT License

Every failure the core can surface to a user. All of them are terminal for
the current request; none are retried here. UnknownSubject is the one
recoverable condition: the caller should steer the user to the transcript
path instead of showing an error.
"""

from typing import Optional


class MediaAnalyzerError(Exception):
    """Base class. ``str(err)`` is safe to show to the user."""

    default_message = "An unknown error occurred."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class ConfigurationError(MediaAnalyzerError):
    default_message = "The analyzer is not configured correctly."


class InvalidUrl(MediaAnalyzerError):
    default_message = "Invalid YouTube URL. Please check the format and try again."


class NoTranscriptProduced(MediaAnalyzerError):
    default_message = "Could not generate a transcript from the provided media."


class MalformedResponse(MediaAnalyzerError):
    default_message = (
        "The AI returned a response in an invalid format. "
        "Please try again or rephrase the title."
    )


class UnknownSubject(MediaAnalyzerError):
    """No reliable information exists for the requested title."""

    def __init__(self, suggestion: str):
        super().__init__(suggestion)
        self.suggestion = suggestion


class _CollaboratorFailure(MediaAnalyzerError):
    """A call to the LLM or another collaborator failed."""

    prefix = "Request failed"

    def __init__(self, cause: Optional[BaseException] = None, message: Optional[str] = None):
        self.cause = cause
        if message is None:
            detail = str(cause) if cause is not None and str(cause) else "Unknown error"
            message = f"{self.prefix}: {detail}"
        super().__init__(message)


class AnalysisFailed(_CollaboratorFailure):
    prefix = "Could not get the AI analysis"


class TranslationFailed(_CollaboratorFailure):
    prefix = "Could not translate the report"


class ExportFailed(_CollaboratorFailure):
    prefix = "Could not export the report"


class InvalidGraphic(ExportFailed):
    prefix = "Could not generate the infographic"

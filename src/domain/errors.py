"""Error taxonomy for the intake assistant."""

from typing import Optional


class IntakeValidationError(Exception):
    """Malformed caller input. Rendered as a 400 with a short message."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidTransitionError(Exception):
    """A user event that the wizard cannot accept in its current step."""


class GatewayError(Exception):
    """The external model could not produce a usable answer.

    Covers missing credentials, network failures, non-success statuses,
    timeouts and unparseable replies. Callers convert it into a fallback
    or a diagnostic; it is never fatal to the end user.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class CredentialMissingError(GatewayError):
    """No access credential is configured."""

    def __init__(self, message: str = "OPENAI_API_KEY is not set. Add it to .env.local and restart the server."):
        super().__init__(message)


class GatewayTimeoutError(GatewayError):
    """The upstream call did not finish within its timeout."""

    def __init__(self, timeout_seconds: float):
        super().__init__(f"Request timed out ({timeout_seconds:g}s). Check your connection and try again.")
        self.timeout_seconds = timeout_seconds


class UpstreamError(GatewayError):
    """Non-success response (or unreachable upstream when status is None)."""

    def __init__(self, status: Optional[int], message: str):
        super().__init__(message)
        self.status = status


class MalformedResponseError(GatewayError):
    """Valid transport response whose content is empty or not a JSON object."""

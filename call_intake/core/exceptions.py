"""Exception types for the call-ingestion pipeline.

Only PersistenceError ever reaches the HTTP layer as a failed response.
Oracle and forwarding errors are caught inside their services.
"""


class CallIntakeError(Exception):
    """Base class for all call-intake errors."""


class OracleError(CallIntakeError):
    """The LLM call could not produce a usable analysis."""


class OracleHTTPError(OracleError):
    """Transport failure or non-success status from the LLM endpoint."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"API request failed with status {status_code} and body: {body[:200]}")


class OracleEnvelopeError(OracleError):
    """The response envelope is not JSON or has no generated text."""


class OraclePayloadError(OracleError):
    """The generated text is not the expected JSON object."""


class PersistenceError(CallIntakeError):
    """Reading or writing the callers table failed."""


class ForwardingError(CallIntakeError):
    """The CRM rejected or never received a contact payload."""

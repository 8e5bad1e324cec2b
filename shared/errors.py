"""
Shared error handling for the Edge Authorizer.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel
from opentelemetry import trace


class ErrorResponse(BaseModel):
    """Standard error response format."""

    trace_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class AuthorizerException(Exception):
    """Base exception for the authorizer."""

    code = "AUTHORIZER_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        trace_id = None
        current_span = trace.get_current_span()
        if current_span and current_span.is_recording():
            span_context = current_span.get_span_context()
            if span_context.trace_id != 0:
                trace_id = f"{span_context.trace_id:032x}"

        return ErrorResponse(
            trace_id=trace_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class TokenVerificationError(AuthorizerException):
    """The bearer token was rejected. Always surfaces as an opaque deny."""

    code = "TOKEN_REJECTED"


class MalformedToken(TokenVerificationError):
    code = "MALFORMED_TOKEN"


class InvalidIssuer(TokenVerificationError):
    code = "INVALID_ISSUER"


class InvalidUse(TokenVerificationError):
    code = "INVALID_USE"


class UnknownKeyId(TokenVerificationError):
    code = "UNKNOWN_KEY_ID"


class SignatureInvalid(TokenVerificationError):
    code = "SIGNATURE_INVALID"


class TokenExpired(TokenVerificationError):
    code = "TOKEN_EXPIRED"


class DependencyError(AuthorizerException):
    """An upstream collaborator failed; the authorizer itself is unavailable."""

    code = "DEPENDENCY_ERROR"

    def __init__(self, dependency: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.dependency = dependency
        super().__init__(f"{dependency}: {message}", details)


class FetchError(DependencyError):
    """Key-set endpoint unreachable or answered with a non-success status."""

    code = "FETCH_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("jwks", message, details)


class ParseError(DependencyError):
    """Key-set document could not be parsed."""

    code = "PARSE_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("jwks", message, details)


class BrokerError(DependencyError):
    """Identity broker call failed."""

    code = "BROKER_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("identity_broker", message, details)

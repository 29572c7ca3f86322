"""
Exceptions raised by the device code exchange.

Protocol errors are `TokenError`s and are rendered as OAuth error bodies.
`BodyParsingError` signals a server setup problem and is never rendered as
a protocol error.
"""

from typing import Any, Dict, Optional

# HTTP status per OAuth error code (RFC 6749 §5.2, RFC 8628 §3.5)
ERROR_STATUS_CODES = {
    "invalid_request": 400,
    "invalid_client": 401,
    "invalid_grant": 400,
    "unauthorized_client": 400,
    "unsupported_grant_type": 400,
    "invalid_scope": 400,
    "authorization_pending": 400,
    "slow_down": 400,
    "access_denied": 400,
    "expired_token": 400,
    "authorization_rejected": 400,
    "server_error": 500,
}


class ExchangeError(Exception):
    """Base exception for the device code exchange."""

    pass


class BodyParsingError(ExchangeError):
    """Raised when the request body was not parsed before the exchange ran."""

    def __init__(self, message: str = "Request body was not parsed. Is BodyParserMiddleware installed?"):
        super().__init__(message)


class TokenError(ExchangeError):
    """OAuth 2.0 token endpoint error."""

    def __init__(
        self,
        message: str,
        code: str = "server_error",
        uri: Optional[str] = None,
        status: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.uri = uri
        self.status = status or ERROR_STATUS_CODES.get(code, 500)

    def to_dict(self) -> Dict[str, Any]:
        content = {"error": self.code}
        if self.message:
            content["error_description"] = self.message
        if self.uri:
            content["error_uri"] = self.uri
        return content

    def __repr__(self) -> str:
        return f"TokenError(code={self.code!r}, message={self.message!r}, status={self.status})"


class IssuerError(ExchangeError):
    """Wraps a non-exception error value an issuer completed with.

    The original value is kept on `error` so upstream handlers can inspect it.
    """

    def __init__(self, error: Any):
        super().__init__(f"Issuer reported a non-exception error: {error!r}")
        self.error = error

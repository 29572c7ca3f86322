"""
Outcome mapping and token response construction for the device code exchange.

Issuers report errors as exceptions. A non-exception error value is wrapped
in `IssuerError`, which keeps the original value on its `error` attribute.
"""

import logging
from collections.abc import Mapping
from typing import Any, Optional

from fastapi.responses import JSONResponse

from ..errors import IssuerError, TokenError
from ..models.tokens import IssueError, IssueFailure, TokenResult

logger = logging.getLogger(__name__)

TOKEN_RESPONSE_HEADERS = {
    "Cache-Control": "no-store",
    "Pragma": "no-cache",
}

# (message, OAuth error code) per issuer failure reason
FAILURE_ERRORS = {
    IssueFailure.NOT_FOUND: ("Invalid device code", "invalid_grant"),
    IssueFailure.PENDING: ("The authorization has not yet been completed", "authorization_pending"),
    IssueFailure.DECLINED: ("The authorization has been declined", "authorization_rejected"),
}


def map_outcome(
    error: Any = None,
    access_token: Optional[str] = None,
    refresh_token: Any = None,
    params: Optional[Mapping[str, Any]] = None,
) -> TokenResult:
    """Classify the arguments an issuer completed with.

    Returns:
        TokenResult for a successful exchange

    Raises:
        TokenError: the issuer reported a known failure, or no access token
        BaseException: any other exception the issuer reported, unchanged
        IssuerError: the issuer reported a value that is not an exception
    """
    if error is not None:
        if isinstance(error, IssueError):
            message, code = FAILURE_ERRORS[error.reason]
            logger.info(f"Device code exchange refused: {code}")
            raise TokenError(message, code)
        if not isinstance(error, BaseException):
            raise IssuerError(error)
        raise error

    if not access_token:
        logger.info("Issuer completed without an access token")
        raise TokenError("Invalid device code", "invalid_grant")

    # Issuers that have no refresh token may pass extra params in its place
    if isinstance(refresh_token, Mapping):
        params = refresh_token
        refresh_token = None

    return TokenResult(
        access_token=access_token,
        refresh_token=refresh_token or None,
        params=dict(params) if params else None,
    )


def build_token_response(result: TokenResult) -> JSONResponse:
    """Serialize a TokenResult as the token endpoint's success response."""
    return JSONResponse(content=result.to_response_body(), headers=TOKEN_RESPONSE_HEADERS)

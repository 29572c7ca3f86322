"""
Pydantic models and tagged outcomes for the device code exchange.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, field_validator

DEFAULT_TOKEN_TYPE = "Bearer"


class IssuerShape(str, Enum):
    """Calling convention of an issuer, fixed when the handler is built."""

    # issue(client, code, done)
    CODE = "code"
    # issue(client, code, scope, done)
    CODE_AND_SCOPE = "code_and_scope"


class IssueFailure(str, Enum):
    """Reasons an issuer can give for refusing to exchange a device code."""

    NOT_FOUND = "not_found"
    PENDING = "pending"
    DECLINED = "declined"


class IssueError(Exception):
    """Error reported by an issuer with an explicit failure reason."""

    def __init__(self, reason: IssueFailure, message: Optional[str] = None):
        self.reason = IssueFailure(reason)
        super().__init__(message or self.reason.value)


class TokenResult(BaseModel):
    """Tokens minted by an issuer for a successful exchange"""

    access_token: str
    refresh_token: Optional[str] = None
    params: Optional[Dict[str, Any]] = None

    @field_validator("access_token")
    @classmethod
    def validate_access_token(cls, v: str) -> str:
        if not v:
            raise ValueError("access_token must be a non-empty string")
        return v

    def to_response_body(self) -> Dict[str, Any]:
        """Build the token response body.

        Extra params are merged after the tokens and may override any field,
        including ``token_type``, which only defaults to Bearer when unset.
        """
        body: Dict[str, Any] = {"access_token": self.access_token}
        if self.refresh_token:
            body["refresh_token"] = self.refresh_token
        if self.params:
            body.update(self.params)
        if not body.get("token_type"):
            body["token_type"] = DEFAULT_TOKEN_TYPE
        return body


class OAuthErrorResponse(BaseModel):
    """Error body returned by the token endpoint (RFC 6749 §5.2)"""

    error: str
    error_description: Optional[str] = None
    error_uri: Optional[str] = None

"""
Pydantic models for the device code exchange.
"""

from .tokens import (
    DEFAULT_TOKEN_TYPE,
    IssueError,
    IssueFailure,
    IssuerShape,
    OAuthErrorResponse,
    TokenResult,
)

__all__ = [
    "DEFAULT_TOKEN_TYPE",
    "IssueError",
    "IssueFailure",
    "IssuerShape",
    "OAuthErrorResponse",
    "TokenResult",
]

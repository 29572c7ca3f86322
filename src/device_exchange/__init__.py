"""
OAuth 2.0 device code grant exchange for FastAPI token endpoints.
"""

from .core.config import ExchangeSettings, IssuerConfig
from .core.state import InMemoryDeviceCodeIssuer
from .errors import BodyParsingError, ExchangeError, IssuerError, TokenError
from .exchange import DEVICE_CODE_GRANT_TYPE, DeviceCodeExchange
from .models import IssueError, IssueFailure, IssuerShape, TokenResult
from .scopes import parse_scope

__all__ = [
    "BodyParsingError",
    "DEVICE_CODE_GRANT_TYPE",
    "DeviceCodeExchange",
    "ExchangeError",
    "ExchangeSettings",
    "InMemoryDeviceCodeIssuer",
    "IssueError",
    "IssueFailure",
    "IssuerError",
    "IssuerConfig",
    "IssuerShape",
    "TokenError",
    "TokenResult",
    "parse_scope",
]

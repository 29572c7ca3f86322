"""
OAuth 2.0 device code exchange (RFC 8628 §3.4).

Exchanges a device code for an access token. The decision whether a code is
valid belongs to an `issue` callback supplied by the application, which is
called as one of:

    issue(client, code, done)
    issue(client, code, scope, done)

`client` is the authenticated client attempting to obtain an access token,
`code` is the device code provided by the device and `scope` is the parsed
list of requested scope values (or None). `done` is called once to finish
the exchange:

    done(error=None, access_token=None, refresh_token=None, params=None)

Report a refused exchange with `IssueError(IssueFailure.PENDING)` (or
NOT_FOUND / DECLINED). Any other exception is passed upstream unchanged;
`error` must be an exception, other values are wrapped in `IssuerError`. `issue`
may be a plain function or a coroutine function.

Example:

    async def issue(client, code, scope, done):
        ...
        done(None, access_token, refresh_token, {"expires_in": 3600})

    exchange = DeviceCodeExchange(issue, scope_separator=[" ", ","])
"""

import asyncio
import inspect
import logging
from collections.abc import Callable, Sequence
from typing import Any, Optional

from fastapi import Request, Response

from ..core.config import DEFAULT_SCOPE_SEPARATOR, DEFAULT_USER_PROPERTY, IssuerConfig
from ..errors import BodyParsingError, TokenError
from ..models.tokens import IssuerShape, TokenResult
from ..scopes import parse_scope
from ..utils.security_mask import mask_sensitive_id
from .outcome import build_token_response, map_outcome

logger = logging.getLogger(__name__)

DEVICE_CODE_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:device_code"


def infer_issuer_shape(issue: Callable) -> IssuerShape:
    """Pick the calling convention from the number of positional parameters `issue` declares."""
    try:
        signature = inspect.signature(issue)
    except (TypeError, ValueError):
        return IssuerShape.CODE

    positional = [
        p
        for p in signature.parameters.values()
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    ]
    if len(positional) == 4:
        return IssuerShape.CODE_AND_SCOPE
    return IssuerShape.CODE


class DeviceCodeExchange:
    """Token endpoint handler for the device code grant."""

    grant_type = DEVICE_CODE_GRANT_TYPE

    def __init__(
        self,
        issue: Callable,
        *,
        user_property: str = DEFAULT_USER_PROPERTY,
        scope_separator: str | Sequence[str] = DEFAULT_SCOPE_SEPARATOR,
        shape: Optional[IssuerShape] = None,
    ):
        if not callable(issue):
            raise TypeError("DeviceCodeExchange requires an issue callback")

        self.issue = issue
        self.config = IssuerConfig(user_property=user_property, separators=scope_separator)
        self.shape = IssuerShape(shape) if shape is not None else infer_issuer_shape(issue)
        logger.debug(f"Device code exchange using issuer shape {self.shape.value}")

    @classmethod
    def from_config(
        cls, issue: Callable, config: IssuerConfig, shape: Optional[IssuerShape] = None
    ) -> "DeviceCodeExchange":
        return cls(issue, user_property=config.user_property, scope_separator=config.separators, shape=shape)

    async def __call__(self, request: Request) -> Response:
        body = getattr(request.state, "body", None)
        if body is None:
            raise BodyParsingError()

        # In the token endpoint the "user" is the authenticated OAuth client
        client = getattr(request.state, self.config.user_property, None)
        code = body.get("code")
        scope = body.get("scope")

        if not code:
            raise TokenError("Missing required parameter: code", "invalid_request")
        if not isinstance(code, str):
            raise TokenError("Invalid parameter: code", "invalid_request")
        if scope is not None and not isinstance(scope, str):
            raise TokenError("Invalid parameter: scope", "invalid_request")

        scope = parse_scope(scope, self.config.separators)

        result = await self.invoke(client, code, scope)
        logger.info(f"Issued access token for device code {mask_sensitive_id(code)}")
        return build_token_response(result)

    async def invoke(self, client: Any, code: str, scope: Optional[list[str]]) -> TokenResult:
        """Call the issuer once and wait for it to complete.

        Exceptions raised while calling the issuer propagate unchanged.
        There is no timeout: an issuer that never calls `done` leaves the
        request pending.
        """
        loop = asyncio.get_running_loop()
        completion = loop.create_future()
        done = self._completion_handle(loop, completion)

        if self.shape is IssuerShape.CODE_AND_SCOPE:
            returned = self.issue(client, code, scope, done)
        else:
            returned = self.issue(client, code, done)
        if inspect.isawaitable(returned):
            await returned

        error, access_token, refresh_token, params = await completion
        return map_outcome(error, access_token, refresh_token, params)

    @staticmethod
    def _completion_handle(loop: asyncio.AbstractEventLoop, completion: asyncio.Future) -> Callable:
        def resolve(outcome: tuple) -> None:
            if completion.done():
                logger.warning("Issuer completed a device code exchange more than once; ignoring")
                return
            completion.set_result(outcome)

        def done(error=None, access_token=None, refresh_token=None, params=None) -> None:
            # May be called from a worker thread by issuers backed by blocking storage
            loop.call_soon_threadsafe(resolve, (error, access_token, refresh_token, params))

        return done

"""
OAuth 2.0 token endpoint.

Dispatches token requests to the exchange registered for their grant type.
"""

import logging
from collections.abc import Awaitable, Callable, Mapping

from fastapi import APIRouter, Request, Response

from ..errors import BodyParsingError, TokenError

logger = logging.getLogger(__name__)

Exchange = Callable[[Request], Awaitable[Response]]


def build_token_router(exchanges: Mapping[str, Exchange], token_path: str = "/oauth2/token") -> APIRouter:
    """Create a router serving the token endpoint for the given grant types."""
    exchanges = dict(exchanges)
    router = APIRouter()

    @router.post(token_path)
    async def token(request: Request) -> Response:
        body = getattr(request.state, "body", None)
        if body is None:
            raise BodyParsingError()

        grant_type = body.get("grant_type")
        logger.info(f"Token endpoint called with grant_type: {grant_type}")
        if not grant_type:
            raise TokenError("Missing required parameter: grant_type", "invalid_request")

        exchange = exchanges.get(grant_type)
        if exchange is None:
            raise TokenError(f"Unsupported grant type: {grant_type}", "unsupported_grant_type")

        return await exchange(request)

    return router

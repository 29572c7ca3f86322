"""
Token endpoint server for the device code exchange.

`create_app` mounts one or more grant-type exchanges behind a FastAPI token
endpoint, with body parsing, optional client authentication and OAuth error
rendering. `main` runs a development server backed by the in-memory issuer.
"""

import argparse
import logging
from collections.abc import Mapping
from typing import Optional, Union

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .core.config import ExchangeSettings, settings as default_settings
from .core.middleware import (
    BodyParserMiddleware,
    ClientAuthenticator,
    ClientAuthMiddleware,
    oauth_error_response,
)
from .core.state import InMemoryDeviceCodeIssuer
from .errors import BodyParsingError, TokenError
from .exchange.device_code import DeviceCodeExchange
from .routes.token import Exchange, build_token_router

logger = logging.getLogger(__name__)


async def token_error_handler(request: Request, exc: TokenError) -> JSONResponse:
    logger.info(f"Token request to {request.url.path} failed: {exc.code} ({exc.message})")
    return oauth_error_response(exc)


async def body_parsing_error_handler(request: Request, exc: BodyParsingError) -> JSONResponse:
    logger.error(f"Server misconfiguration on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
    return oauth_error_response(TokenError("The server encountered an unexpected error", "server_error"))


def resolve_user_property(exchanges: Mapping[str, Exchange], settings: ExchangeSettings) -> str:
    """Request property the mounted exchanges read the authenticated client from.

    Raises:
        ValueError: if mounted device code exchanges disagree on the property
    """
    properties = {
        exchange.config.user_property for exchange in exchanges.values() if isinstance(exchange, DeviceCodeExchange)
    }
    if len(properties) > 1:
        raise ValueError(f"Mounted exchanges read the client from different properties: {sorted(properties)}")
    if properties:
        return properties.pop()
    return settings.user_property


def create_app(
    exchanges: Union[DeviceCodeExchange, Mapping[str, Exchange]],
    settings: Optional[ExchangeSettings] = None,
    authenticate_client: Optional[ClientAuthenticator] = None,
) -> FastAPI:
    """Build the token endpoint application.

    Args:
        exchanges: A single exchange, or a mapping of grant type to exchange
        settings: Settings to use instead of the global instance
        authenticate_client: Optional client authenticator; when omitted the
            client must be placed on `request.state` by other middleware
    """
    settings = settings or default_settings
    if isinstance(exchanges, DeviceCodeExchange):
        exchanges = {exchanges.grant_type: exchanges}

    app = FastAPI(title="Device Code Token Endpoint")
    app.include_router(build_token_router(exchanges, settings.token_endpoint_path), prefix=settings.api_prefix)

    # Starlette runs the last-added middleware first
    if authenticate_client is not None:
        app.add_middleware(
            ClientAuthMiddleware,
            authenticate_client=authenticate_client,
            protected_paths=[settings.token_url],
            user_property=resolve_user_property(exchanges, settings),
        )
    app.add_middleware(BodyParserMiddleware)

    app.add_exception_handler(TokenError, token_error_handler)
    app.add_exception_handler(BodyParsingError, body_parsing_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    logger.info(f"Token endpoint mounted at {settings.token_url} for grant types: {list(exchanges)}")
    return app


def parse_arguments():
    parser = argparse.ArgumentParser(description="Device code token endpoint (development server)")

    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Host for the server to listen on (default: 127.0.0.1)",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=8888,
        help="Port for the server to listen on (default: 8888)",
    )

    return parser.parse_args()


def main():
    """Run a development server backed by the in-memory issuer"""
    args = parse_arguments()
    default_settings.configure_logging()

    issuer = InMemoryDeviceCodeIssuer()
    exchange = DeviceCodeExchange.from_config(issuer, default_settings.issuer_config())
    app = create_app(exchange, default_settings)
    app.state.issuer = issuer

    logger.info(f"Starting device code token endpoint on {args.host}:{args.port}")
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()

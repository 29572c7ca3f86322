import base64
import binascii
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Tuple, Union

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from ..errors import TokenError
from ..models.tokens import OAuthErrorResponse
from .config import DEFAULT_USER_PROPERTY

logger = logging.getLogger(__name__)

# authenticate_client(client_id, client_secret) -> client or None
ClientAuthenticator = Callable[[str, Optional[str]], Union[Any, Awaitable[Any]]]

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store",
    "Pragma": "no-cache",
}


def oauth_error_response(error: TokenError, headers: Optional[dict] = None) -> JSONResponse:
    content = OAuthErrorResponse(**error.to_dict()).model_dump(exclude_none=True)
    return JSONResponse(status_code=error.status, content=content, headers={**NO_CACHE_HEADERS, **(headers or {})})


class BodyParserMiddleware(BaseHTTPMiddleware):
    """
    Parses form and JSON request bodies into `request.state.body`.

    Token endpoint handlers read parameters from `request.state.body` and
    treat its absence as a setup error.
    """

    body_methods = ("POST", "PUT", "PATCH")

    async def dispatch(self, request: Request, call_next):
        if request.method in self.body_methods:
            content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
            if content_type in ("application/x-www-form-urlencoded", "multipart/form-data"):
                form = await request.form()
                # Uploaded files are not valid token request parameters
                request.state.body = {key: value for key, value in form.items() if isinstance(value, str)}
            elif content_type == "application/json":
                try:
                    payload = await request.json()
                except ValueError:
                    logger.warning(f"Malformed JSON body for {request.url.path}")
                    return oauth_error_response(TokenError("Malformed JSON request body", "invalid_request"))
                request.state.body = payload if isinstance(payload, dict) else {}
            else:
                request.state.body = {}
        return await call_next(request)


class ClientAuthMiddleware(BaseHTTPMiddleware):
    """
    Authenticates the OAuth client calling the token endpoint.

    Credentials are taken from HTTP Basic auth or the `client_id` /
    `client_secret` body parameters and checked by `authenticate_client`.
    The resulting client is stored on `request.state.<user_property>`.
    Must run after BodyParserMiddleware.
    """

    def __init__(
        self,
        app,
        authenticate_client: ClientAuthenticator,
        protected_paths: Optional[list] = None,
        user_property: str = DEFAULT_USER_PROPERTY,
    ):
        super().__init__(app)
        self.authenticate_client = authenticate_client
        self.protected_paths = protected_paths or ["/oauth2/token"]
        self.user_property = user_property

    async def dispatch(self, request: Request, call_next):
        if request.url.path not in self.protected_paths:
            return await call_next(request)

        basic_credentials = self._basic_credentials(request)
        if basic_credentials:
            client_id, client_secret = basic_credentials
        else:
            body = getattr(request.state, "body", None) or {}
            client_id, client_secret = body.get("client_id"), body.get("client_secret")

        client = None
        if client_id:
            client = self.authenticate_client(client_id, client_secret)
            if inspect.isawaitable(client):
                client = await client

        if not client:
            logger.warning(f"Client authentication failed for {request.url.path}")
            headers = {"WWW-Authenticate": 'Basic realm="Clients"'} if basic_credentials else None
            return oauth_error_response(TokenError("Client authentication failed", "invalid_client"), headers)

        setattr(request.state, self.user_property, client)
        logger.debug(f"Client {client_id} authenticated via {'basic' if basic_credentials else 'body'}")
        return await call_next(request)

    def _basic_credentials(self, request: Request) -> Optional[Tuple[str, str]]:
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Basic "):
            return None
        try:
            encoded_credentials = auth_header.split(" ", 1)[1]
            decoded_credentials = base64.b64decode(encoded_credentials).decode("utf-8")
            client_id, client_secret = decoded_credentials.split(":", 1)
        except (binascii.Error, UnicodeDecodeError, ValueError) as e:
            logger.debug(f"Basic auth decoding failed: {e}")
            return None
        return client_id, client_secret

"""
In-memory device code issuer.

A ready-to-use `issue` callback backed by a dict, for development and
tests. In production the issuer should be backed by a persistent store
(Redis, database, etc.) that owns expiry and single-use guarantees.
"""

import logging
import time
from typing import Any, Callable, Dict, Optional

from ..models.tokens import IssueError, IssueFailure
from ..utils.security_mask import mask_sensitive_id

logger = logging.getLogger(__name__)

DEVICE_CODE_EXPIRY_SECONDS = 600  # 10 minutes


def _client_id(client: Any) -> Optional[str]:
    if client is None:
        return None
    if isinstance(client, dict):
        return client.get("client_id")
    return getattr(client, "client_id", None)


class InMemoryDeviceCodeIssuer:
    """Device code store that decides exchanges for `DeviceCodeExchange`."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        # device_code -> {client_id, scope, status, expires_at, access_token, ...}
        self.device_codes: Dict[str, Dict[str, Any]] = {}

    def register(
        self,
        device_code: str,
        client_id: Optional[str] = None,
        scope: Optional[list[str]] = None,
        expires_in: int = DEVICE_CODE_EXPIRY_SECONDS,
    ) -> None:
        """Record a pending device authorization."""
        self.device_codes[device_code] = {
            "client_id": client_id,
            "scope": scope,
            "status": "pending",
            "expires_at": self.clock() + expires_in,
            "access_token": None,
            "refresh_token": None,
            "params": None,
        }
        logger.info(f"Registered device code {mask_sensitive_id(device_code)} for client_id: {client_id}")

    def approve(
        self,
        device_code: str,
        access_token: str,
        refresh_token: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Mark a device code as authorized by the user, with the tokens to hand out."""
        device_data = self._get(device_code)
        device_data["status"] = "approved"
        device_data["access_token"] = access_token
        device_data["refresh_token"] = refresh_token
        device_data["params"] = params
        logger.info(f"Device code {mask_sensitive_id(device_code)} approved")

    def deny(self, device_code: str) -> None:
        """Mark a device code as declined by the user."""
        self._get(device_code)["status"] = "denied"
        logger.info(f"Device code {mask_sensitive_id(device_code)} denied")

    def cleanup_expired(self) -> None:
        current_time = self.clock()
        expired_codes = [code for code, data in self.device_codes.items() if current_time > data["expires_at"]]
        for code in expired_codes:
            del self.device_codes[code]
        if expired_codes:
            logger.info(f"Cleaned up {len(expired_codes)} expired device codes")

    def __call__(self, client, code, scope, done) -> None:
        self.cleanup_expired()

        device_data = self.device_codes.get(code)
        if not device_data:
            return done(IssueError(IssueFailure.NOT_FOUND))

        registered_client_id = device_data["client_id"]
        if registered_client_id is not None and registered_client_id != _client_id(client):
            logger.warning(f"Client mismatch for device code {mask_sensitive_id(code)}")
            return done(IssueError(IssueFailure.NOT_FOUND, "client_id mismatch"))

        if device_data["status"] == "pending":
            return done(IssueError(IssueFailure.PENDING))
        if device_data["status"] == "denied":
            del self.device_codes[code]
            return done(IssueError(IssueFailure.DECLINED))

        # Approved device codes are single-use
        del self.device_codes[code]
        params = dict(device_data["params"] or {})
        granted_scope = device_data["scope"] or scope
        if granted_scope and "scope" not in params:
            params["scope"] = " ".join(granted_scope)
        return done(None, device_data["access_token"], device_data["refresh_token"], params or None)

    def _get(self, device_code: str) -> Dict[str, Any]:
        device_data = self.device_codes.get(device_code)
        if not device_data:
            raise KeyError(f"Unknown device code: {mask_sensitive_id(device_code)}")
        return device_data

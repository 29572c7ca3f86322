"""Unit tests for outcome mapping and token response construction."""

import json

import pytest
from pydantic import ValidationError

from device_exchange.errors import IssuerError, TokenError
from device_exchange.exchange.outcome import build_token_response, map_outcome
from device_exchange.models.tokens import IssueError, IssueFailure, TokenResult


@pytest.mark.unit
class TestMapOutcome:
    """Tests for map_outcome."""

    @pytest.mark.parametrize(
        "reason, code, message",
        [
            (IssueFailure.NOT_FOUND, "invalid_grant", "Invalid device code"),
            (IssueFailure.PENDING, "authorization_pending", "The authorization has not yet been completed"),
            (IssueFailure.DECLINED, "authorization_rejected", "The authorization has been declined"),
        ],
    )
    def test_classifies_issue_errors(self, reason, code, message):
        with pytest.raises(TokenError) as exc_info:
            map_outcome(IssueError(reason))

        assert exc_info.value.code == code
        assert exc_info.value.message == message
        assert exc_info.value.status == 400

    def test_unclassified_error_passes_through_unchanged(self):
        error = RuntimeError("database unavailable")
        with pytest.raises(RuntimeError) as exc_info:
            map_outcome(error, "ignored-token")

        assert exc_info.value is error

    def test_error_message_is_not_used_for_classification(self):
        """Only the tagged reason classifies an error, never its text."""
        error = ValueError("pending")
        with pytest.raises(ValueError) as exc_info:
            map_outcome(error)

        assert exc_info.value is error

    @pytest.mark.parametrize("error", ["boom", {"error": "server_error"}, 42])
    def test_non_exception_error_is_wrapped(self, error):
        with pytest.raises(IssuerError) as exc_info:
            map_outcome(error, "ignored-token")

        assert exc_info.value.error == error

    @pytest.mark.parametrize("access_token", [None, ""])
    def test_missing_access_token_is_invalid_grant(self, access_token):
        with pytest.raises(TokenError) as exc_info:
            map_outcome(None, access_token)

        assert exc_info.value.code == "invalid_grant"
        assert exc_info.value.message == "Invalid device code"

    def test_success_with_access_token_only(self):
        result = map_outcome(None, "at-123")
        assert result == TokenResult(access_token="at-123")

    def test_success_with_refresh_token_and_params(self):
        result = map_outcome(None, "at-123", "rt-456", {"expires_in": 3600})

        assert result.access_token == "at-123"
        assert result.refresh_token == "rt-456"
        assert result.params == {"expires_in": 3600}

    def test_mapping_in_refresh_token_position_becomes_params(self):
        result = map_outcome(None, "at-123", {"expires_in": 3600, "scope": "read"})

        assert result.refresh_token is None
        assert result.params == {"expires_in": 3600, "scope": "read"}


@pytest.mark.unit
class TestTokenResult:
    """Tests for TokenResult.to_response_body."""

    def test_access_token_only_defaults_bearer(self):
        body = TokenResult(access_token="at-123").to_response_body()
        assert body == {"access_token": "at-123", "token_type": "Bearer"}

    def test_includes_refresh_token(self):
        body = TokenResult(access_token="at-123", refresh_token="rt-456").to_response_body()
        assert body == {"access_token": "at-123", "refresh_token": "rt-456", "token_type": "Bearer"}

    def test_params_are_merged(self):
        body = TokenResult(access_token="at-123", params={"expires_in": 3600}).to_response_body()
        assert body == {"access_token": "at-123", "expires_in": 3600, "token_type": "Bearer"}

    def test_params_can_override_token_type(self):
        body = TokenResult(access_token="at-123", params={"token_type": "DPoP"}).to_response_body()
        assert body["token_type"] == "DPoP"

    def test_params_win_over_tokens(self):
        body = TokenResult(access_token="at-123", params={"access_token": "replaced"}).to_response_body()
        assert body["access_token"] == "replaced"

    def test_rejects_empty_access_token(self):
        with pytest.raises(ValidationError):
            TokenResult(access_token="")


@pytest.mark.unit
class TestBuildTokenResponse:
    """Tests for build_token_response."""

    def test_body_and_headers(self):
        response = build_token_response(TokenResult(access_token="at-123"))

        assert response.status_code == 200
        assert json.loads(response.body) == {"access_token": "at-123", "token_type": "Bearer"}
        assert response.headers["content-type"] == "application/json"
        assert response.headers["cache-control"] == "no-store"
        assert response.headers["pragma"] == "no-cache"

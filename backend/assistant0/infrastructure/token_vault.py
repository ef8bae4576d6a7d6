"""Auth0 Token Vault - exchanges the caller's refresh token for a Google access token.

Invariants:
    - get_access_token() returns a non-empty token or raises CredentialError
    - Every failure carries a typed reason: absent / expired / insufficient_scope / unavailable
    - Transport errors and 5xx responses map to UNAVAILABLE (never propagate raw)

Design Decisions:
    - Federated-connection token exchange over plain httpx: one POST, no SDK
    - Scope check on the returned token: Auth0 can hand back a token that lacks
      Gmail/Calendar scopes when the user declined them at consent time
"""

import logging
from typing import Protocol

import httpx

from assistant0.core.errors import CredentialError, CredentialFailure

logger = logging.getLogger(__name__)

TOKEN_EXCHANGE_GRANT = (
    "urn:auth0:params:oauth:grant-type:token-exchange:"
    "federated-connection-access-token"
)
REFRESH_TOKEN_TYPE = "urn:ietf:params:oauth:token-type:refresh_token"
FEDERATED_TOKEN_TYPE = (
    "http://auth0.com/oauth/token-type/federated-connection-access-token"
)

GOOGLE_SCOPES = (
    "https://www.googleapis.com/auth/gmail.readonly",
    "https://www.googleapis.com/auth/gmail.compose",
    "https://www.googleapis.com/auth/calendar.events",
)


class AccessTokenProvider(Protocol):
    """Identity provider contract: token for external service X, else typed failure."""

    async def get_access_token(
        self, subject_token: str | None, connection: str,
    ) -> str: ...


class Auth0TokenVault:
    """Auth0 federated-connection token exchange."""

    def __init__(
        self,
        domain: str,
        client_id: str,
        client_secret: str,
        http: httpx.AsyncClient,
        required_scopes: tuple[str, ...] = GOOGLE_SCOPES,
    ):
        self._url = f"https://{domain.removeprefix('https://').rstrip('/')}/oauth/token"
        self._client_id = client_id
        self._client_secret = client_secret
        self._http = http
        self._required_scopes = required_scopes

    async def get_access_token(
        self, subject_token: str | None, connection: str,
    ) -> str:
        if not subject_token:
            raise CredentialError(
                "No session token on request", CredentialFailure.ABSENT,
            )
        try:
            response = await self._http.post(self._url, json={
                "grant_type": TOKEN_EXCHANGE_GRANT,
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "subject_token": subject_token,
                "subject_token_type": REFRESH_TOKEN_TYPE,
                "requested_token_type": FEDERATED_TOKEN_TYPE,
                "connection": connection,
            })
        except httpx.HTTPError as e:
            raise CredentialError(
                f"Token vault unreachable: {e}", CredentialFailure.UNAVAILABLE,
            ) from e

        body = _json_or_empty(response)
        if response.is_success:
            return self._checked_token(body)
        raise _classify_error_response(response.status_code, body)

    def _checked_token(self, body: dict) -> str:
        token = body.get("access_token")
        if not token:
            raise CredentialError(
                "Token vault returned no access token", CredentialFailure.ABSENT,
            )
        granted = body.get("scope")
        if granted is not None:
            missing = [s for s in self._required_scopes if s not in granted.split()]
            if missing:
                raise CredentialError(
                    f"insufficient authentication scopes: missing {', '.join(missing)}",
                    CredentialFailure.INSUFFICIENT_SCOPE,
                )
        return token


def _json_or_empty(response: httpx.Response) -> dict:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _classify_error_response(status_code: int, body: dict) -> CredentialError:
    error = str(body.get("error", ""))
    description = str(body.get("error_description", ""))
    message = f"{error}: {description}".strip(": ") or f"HTTP {status_code}"
    text = f"{error} {description}".lower()

    if "scope" in text or status_code == 403:
        reason = CredentialFailure.INSUFFICIENT_SCOPE
    elif "refresh_token_not_found" in text:
        reason = CredentialFailure.ABSENT
    elif error == "invalid_grant" or status_code == 401:
        reason = CredentialFailure.EXPIRED
    else:
        reason = CredentialFailure.UNAVAILABLE

    logger.warning(
        "Token exchange failed: %s", message,
        extra={"status_code": status_code, "credential_status": reason.value},
    )
    return CredentialError(message, reason)

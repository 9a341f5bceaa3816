"""Bearer-token gate backed by the external auth service."""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.config import settings
from app.exceptions import AuthUnavailable, Locked, Unauthorized

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """Authenticated caller."""

    user_id: str
    role: str


class AuthServiceVerifier:
    """Resolves bearer tokens through the auth service's verify endpoint."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize the verifier."""
        self.base_url = (base_url or settings.AUTH_SERVICE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.AUTH_TIMEOUT_SECONDS
        self.transport = transport

    def _error_message(self, response: httpx.Response, default: str) -> str:
        try:
            payload = response.json()
        except ValueError:
            return default
        if not isinstance(payload, dict):
            return default
        return payload.get("message") or default

    def verify(self, token: str) -> Principal:
        """
        Verify a bearer token.

        Args:
            token: Raw bearer token

        Returns:
            Principal with user id and role

        Raises:
            Unauthorized: Token invalid, expired, or account deactivated
            Locked: Account temporarily locked
            AuthUnavailable: Auth service unreachable or misbehaving
        """
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.get(
                    f"{self.base_url}/verify",
                    headers={"Authorization": f"Bearer {token}"},
                )
        except httpx.HTTPError as e:
            logger.error(f"Auth service request failed: {e}")
            raise AuthUnavailable("Authentication service unavailable") from e

        if response.status_code == 423:
            raise Locked(self._error_message(response, "Account is temporarily locked"))
        if response.status_code in (401, 403):
            raise Unauthorized(self._error_message(response, "Invalid token"))
        if response.status_code != 200:
            logger.error(f"Auth service returned {response.status_code}")
            raise AuthUnavailable("Authentication service unavailable")

        try:
            payload = response.json()
        except ValueError as e:
            raise AuthUnavailable("Authentication service returned malformed response") from e
        user = payload.get("user") if isinstance(payload, dict) else None
        if not isinstance(payload, dict) or (user is not None and not isinstance(user, dict)):
            raise AuthUnavailable("Authentication service returned malformed response")
        user = user or {}

        user_id = user.get("id")
        if not user_id:
            raise Unauthorized("Invalid token")
        return Principal(user_id=str(user_id), role=user.get("role", "user"))


bearer_scheme = HTTPBearer(auto_error=False)


def get_token_verifier() -> AuthServiceVerifier:
    """Verifier dependency, overridable in tests."""
    return AuthServiceVerifier()


def require_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    verifier: AuthServiceVerifier = Depends(get_token_verifier),
) -> Principal:
    """Admit the request only with a valid bearer token."""
    if credentials is None:
        raise Unauthorized("No token provided")
    return verifier.verify(credentials.credentials)

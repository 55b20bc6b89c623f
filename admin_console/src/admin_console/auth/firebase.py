"""
Firebase Authentication over its REST API.

Provides email/password sign-in, ID token refresh and custom claim lookup.
Claims come from ``accounts:lookup``, which validates the ID token on the
server and returns the account's ``customAttributes``.
"""

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

import httpx
from loguru import logger

from admin_console.auth.identity import AuthError, AuthStateCallback, AuthUser, notify_listeners
from admin_console.config import Settings, get_settings

IDENTITY_TOOLKIT_API = "https://identitytoolkit.googleapis.com/v1"
SECURE_TOKEN_API = "https://securetoken.googleapis.com/v1"

# Refresh slightly before the provider's deadline
EXPIRY_SKEW = timedelta(seconds=60)

INVALID_CREDENTIAL_CODES = {
    "EMAIL_NOT_FOUND",
    "INVALID_PASSWORD",
    "INVALID_LOGIN_CREDENTIALS",
    "INVALID_EMAIL",
    "USER_DISABLED",
}


class FirebaseIdentityProvider:
    """IdentityProvider implementation for Firebase Authentication."""

    def __init__(
        self,
        api_key: str,
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
        clock: Optional[Callable[[], datetime]] = None,
        identity_root: str = IDENTITY_TOOLKIT_API,
        token_root: str = SECURE_TOKEN_API,
    ):
        """
        Initialize the provider.

        Args:
            api_key: Firebase Web API key
            timeout: Request timeout in seconds
            http_client: Shared client; a short-lived one is opened per call otherwise
            clock: Source of the current time (UTC)
            identity_root: Base URL of the Identity Toolkit API
            token_root: Base URL of the Secure Token API
        """
        self.api_key = api_key
        self.timeout = timeout
        self._client = http_client
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.identity_root = identity_root.rstrip("/")
        self.token_root = token_root.rstrip("/")
        self.current_user: Optional[AuthUser] = None
        self._listeners: List[AuthStateCallback] = []

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "FirebaseIdentityProvider":
        settings = settings or get_settings()
        if not settings.firebase_api_key:
            raise ValueError("firebase_api_key must be set to sign in with Firebase")
        return cls(api_key=settings.firebase_api_key, timeout=settings.http_timeout)

    def on_auth_state_changed(self, callback: AuthStateCallback) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    async def sign_in(self, email: str, password: str) -> AuthUser:
        data = await self._post(
            f"{self.identity_root}/accounts:signInWithPassword",
            json={"email": email, "password": password, "returnSecureToken": True},
        )
        user = AuthUser(
            uid=data["localId"],
            email=data.get("email", email),
            id_token=data["idToken"],
            refresh_token=data["refreshToken"],
            expires_at=self._expiry(data.get("expiresIn")),
        )
        logger.info(f"Signed in {user.email}")
        self.current_user = user
        await notify_listeners(self._listeners, user)
        return user

    async def sign_out(self) -> None:
        if self.current_user is not None:
            logger.info(f"Signed out {self.current_user.email}")
        self.current_user = None
        await notify_listeners(self._listeners, None)

    async def get_id_token(self, user: Optional[AuthUser] = None, force_refresh: bool = False) -> Optional[str]:
        user = user or self.current_user
        if user is None:
            return None
        if force_refresh or self._is_expired(user):
            await self._refresh(user)
        return user.id_token

    async def get_claims(self, user: AuthUser, force_refresh: bool = False) -> Dict[str, Any]:
        token = await self.get_id_token(user, force_refresh=force_refresh)
        data = await self._post(f"{self.identity_root}/accounts:lookup", json={"idToken": token})

        accounts = data.get("users") or []
        if not accounts:
            raise AuthError("Account lookup returned no user")

        raw = accounts[0].get("customAttributes")
        if not raw:
            return {}
        try:
            claims = json.loads(raw)
        except ValueError as e:
            raise AuthError(f"Malformed custom claims: {str(e)}") from e
        return claims if isinstance(claims, dict) else {}

    async def _refresh(self, user: AuthUser) -> None:
        data = await self._post(
            f"{self.token_root}/token",
            data={"grant_type": "refresh_token", "refresh_token": user.refresh_token},
        )
        user.id_token = data["id_token"]
        user.refresh_token = data.get("refresh_token", user.refresh_token)
        user.expires_at = self._expiry(data.get("expires_in"))
        logger.debug(f"Refreshed ID token for {user.uid}")

    def _expiry(self, expires_in: Optional[str]) -> Optional[datetime]:
        if not expires_in:
            return None
        return self._clock() + timedelta(seconds=int(expires_in))

    def _is_expired(self, user: AuthUser) -> bool:
        if user.expires_at is None:
            return False
        return self._clock() >= user.expires_at - EXPIRY_SKEW

    async def _post(self, url: str, **kwargs: Any) -> Dict[str, Any]:
        params = {"key": self.api_key}
        try:
            if self._client is not None:
                response = await self._client.post(url, params=params, timeout=self.timeout, **kwargs)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(url, params=params, **kwargs)
        except httpx.TransportError as e:
            raise AuthError(f"Identity provider unreachable: {e!r}") from e

        if response.status_code >= 400:
            raise _error_from_response(response)

        try:
            return response.json()
        except ValueError as e:
            raise AuthError(f"Failed to parse identity response: {str(e)}") from e


def _error_from_response(response: httpx.Response) -> AuthError:
    code = ""
    try:
        code = response.json().get("error", {}).get("message", "")
    except (ValueError, AttributeError):
        code = response.text

    # Firebase appends details after the code, e.g. "TOO_MANY_ATTEMPTS_TRY_LATER : ..."
    if code.split(" ", 1)[0] in INVALID_CREDENTIAL_CODES:
        return AuthError("Invalid email or password", status_code=response.status_code)
    return AuthError(f"HTTP {response.status_code}: {code}", status_code=response.status_code)

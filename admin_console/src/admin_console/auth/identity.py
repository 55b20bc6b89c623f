"""
Identity provider interface and the console's authentication session.

Access to every protected view is decided by a freshly verified ``admin``
custom claim. Nothing stored client-side is ever trusted as proof of login.
"""

import inspect
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol, Union

from loguru import logger
from pydantic import BaseModel, Field


class AuthError(Exception):
    """Raised when the identity provider rejects or fails a request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class AuthUser(BaseModel):
    """A signed-in account and the tokens of its session."""
    uid: str
    email: Optional[str] = None
    id_token: str = Field(default="", repr=False)
    refresh_token: str = Field(default="", repr=False)
    expires_at: Optional[datetime] = None


AuthStateCallback = Callable[[Optional[AuthUser]], Union[None, Awaitable[None]]]


class IdentityProvider(Protocol):
    """Email/password identity provider with custom claims."""

    current_user: Optional[AuthUser]

    async def sign_in(self, email: str, password: str) -> AuthUser:
        ...

    async def sign_out(self) -> None:
        ...

    def on_auth_state_changed(self, callback: AuthStateCallback) -> Callable[[], None]:
        """Register ``callback`` for user changes; returns an unsubscribe function."""
        ...

    async def get_id_token(self, user: Optional[AuthUser] = None, force_refresh: bool = False) -> Optional[str]:
        ...

    async def get_claims(self, user: AuthUser, force_refresh: bool = False) -> Dict[str, Any]:
        """Verified custom claims of ``user``; ``force_refresh`` bypasses any cache."""
        ...


async def notify_listeners(listeners, user: Optional[AuthUser]) -> None:
    """Invoke auth-state callbacks in registration order, awaiting coroutines."""
    for callback in list(listeners):
        result = callback(user)
        if inspect.isawaitable(result):
            await result


class AuthSession:
    """
    Tracks the current user and whether they hold the ``admin`` claim.

    Claim checks fail closed: any error while looking claims up counts as
    "not an admin".
    """

    def __init__(self, provider: IdentityProvider):
        self.provider = provider
        self.user: Optional[AuthUser] = None
        self.is_admin = False
        self.loading = True
        self._unsubscribe: Optional[Callable[[], None]] = None

    async def start(self) -> None:
        """Subscribe to the provider and evaluate whoever is signed in now."""
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self.provider.on_auth_state_changed(self._handle_user_changed)
        await self._handle_user_changed(self.provider.current_user)

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def login(self, email: str, password: str) -> AuthUser:
        return await self.provider.sign_in(email, password)

    async def logout(self) -> None:
        await self.provider.sign_out()

    async def require_admin(self) -> bool:
        """
        Re-verify the admin claim with the provider.

        Call before rendering or acting on any protected view.
        """
        user = self.provider.current_user
        self.user = user
        if user is None:
            self.is_admin = False
            return False
        self.is_admin = await self._check_admin(user)
        return self.is_admin

    async def _handle_user_changed(self, user: Optional[AuthUser]) -> None:
        self.user = user
        self.is_admin = await self._check_admin(user) if user is not None else False
        self.loading = False

    async def _check_admin(self, user: AuthUser) -> bool:
        try:
            claims = await self.provider.get_claims(user, force_refresh=True)
        except Exception as e:
            logger.warning(f"Admin claim lookup failed for {user.uid}, denying access: {str(e)}")
            return False
        return claims.get("admin") is True

"""Authentication and admin authorization for the console."""

from .firebase import FirebaseIdentityProvider
from .identity import AuthError, AuthSession, AuthUser, IdentityProvider

__all__ = ["AuthError", "AuthSession", "AuthUser", "FirebaseIdentityProvider", "IdentityProvider"]

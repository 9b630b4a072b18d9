"""Authentication services: password hashing, session tokens, login lockout."""

from .jwt_service import JwtService, SessionClaims
from .login_attempts import LoginAttemptTracker
from .passwords import hash_password, verify_password

__all__ = [
    "JwtService",
    "LoginAttemptTracker",
    "SessionClaims",
    "hash_password",
    "verify_password",
]

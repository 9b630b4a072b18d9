"""Entity package: single-use account tokens."""

from .entity import AuthToken, TokenPurpose
from .repository import AuthTokenRepository
from .table import AuthTokenTable

__all__ = ["AuthToken", "AuthTokenRepository", "AuthTokenTable", "TokenPurpose"]

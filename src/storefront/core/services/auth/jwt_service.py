"""Session token issuing and verification."""

import time
from typing import Any

from authlib.common.security import generate_token
from authlib.jose import JoseError, jwt
from fastapi import HTTPException
from loguru import logger
from pydantic import BaseModel

from src.storefront.runtime.config.config_data import ConfigData
from src.storefront.runtime.context import get_config

_REGISTERED_CLAIMS = {"iss", "sub", "aud", "exp", "iat", "nbf", "jti", "sid"}


class SessionClaims(BaseModel):
    """Verified claims of a session token."""

    sub: str
    sid: str
    email: str | None = None
    is_admin: bool = False
    iss: str
    aud: str | list[str]
    iat: int
    exp: int
    jti: str | None = None

    @property
    def user_id(self) -> str:
        return self.sub


class JwtService:
    """Issues and verifies the HMAC-signed session tokens used for login."""

    def _secret(self, config: ConfigData) -> str:
        secret = config.app.jwt_secret
        if not secret:
            raise HTTPException(status_code=500, detail="JWT signing secret not configured")
        return secret

    def issue(
        self,
        user_id: str,
        email: str | None = None,
        is_admin: bool = False,
        session_id: str | None = None,
        claims: dict[str, Any] | None = None,
    ) -> str:
        """Sign a session token for ``user_id``.

        Args:
            user_id: Subject (sub) claim
            email: User email, carried for convenience
            is_admin: Whether the user may use the admin back-office
            session_id: Session id (sid) claim; a random one is generated when omitted
            claims: Additional non-registered claims

        Returns:
            Signed JWT
        """
        config = get_config()
        now = int(time.time())
        payload: dict[str, Any] = {
            "iss": config.jwt.issuer,
            "sub": user_id,
            "aud": config.jwt.audience,
            "iat": now,
            "exp": now + config.jwt.expires_hours * 3600,
            "jti": generate_token(16),
            "sid": session_id or generate_token(24),
            "email": email,
            "is_admin": is_admin,
        }
        if claims:
            payload.update({k: v for k, v in claims.items() if k not in _REGISTERED_CLAIMS})

        header = {"alg": config.jwt.algorithm, "typ": "JWT"}
        try:
            token = jwt.encode(header, payload, self._secret(config))
        except JoseError as exc:
            raise HTTPException(status_code=500, detail=f"JWT encoding failed: {exc}") from exc
        return token.decode() if isinstance(token, bytes) else token

    def verify(self, token: str) -> SessionClaims:
        """Verify signature, issuer, audience and expiry.

        Raises:
            HTTPException: 401 for any invalid token
        """
        config = get_config()
        claims_options = {
            "iss": {"essential": True, "values": [config.jwt.issuer]},
            "aud": {"essential": True, "values": [config.jwt.audience]},
            "sub": {"essential": True},
            "exp": {"essential": True},
        }
        try:
            claims = jwt.decode(token, self._secret(config), claims_options=claims_options)
            claims.validate(leeway=config.jwt.clock_skew)
        except (JoseError, ValueError) as exc:
            logger.debug("Rejected session token: {}", exc)
            raise HTTPException(status_code=401, detail="Invalid or expired session") from exc

        if claims.header.get("alg") != config.jwt.algorithm:
            raise HTTPException(status_code=401, detail="Invalid or expired session")
        if not claims.get("sid"):
            raise HTTPException(status_code=401, detail="Session token without session id")

        return SessionClaims.model_validate(dict(claims))

"""
JWT issuing and validation for bearer-token authentication.

``JWTBearerVerifier`` instances are callable with a token and can be used
directly as the verify function of the bearer strategy.
"""
import hashlib
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

logger = logging.getLogger(__name__)


class JWTBearerVerifier:
    """Issues and validates HMAC-signed JWTs."""

    def __init__(self, secret: str, algorithm: str = "HS256", expiry_seconds: int = 3600,
                 issuer: Optional[str] = None, audience: Optional[str] = None):
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self.secret = secret
        self.algorithm = algorithm
        self.expiry_seconds = expiry_seconds
        self.issuer = issuer
        self.audience = audience

    def create_token(self, subject: str, expires_in: Optional[int] = None, **claims: Any) -> str:
        """Generate a signed token for ``subject``."""
        now = datetime.now(timezone.utc)
        payload: Dict[str, Any] = dict(claims)
        payload.update({
            'sub': str(subject),
            'iat': now,
            'exp': now + timedelta(seconds=expires_in if expires_in is not None else self.expiry_seconds),
            'jti': payload.get('jti') or uuid.uuid4().hex,
        })
        if self.issuer:
            payload['iss'] = self.issuer
        if self.audience:
            payload['aud'] = self.audience
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify_token(self, token: str) -> Optional[Dict[str, Any]]:
        """Decode ``token``; None when it is invalid or expired."""
        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
            )
        except JWTError as e:
            logger.debug(f"JWT verification failed: {e}")
            return None

    def __call__(self, token: str) -> Optional[Dict[str, Any]]:
        return self.verify_token(token)


def token_fingerprint(token: str) -> str:
    """Short, non-reversible token identifier for log lines."""
    return hashlib.sha256(token.encode()).hexdigest()[:12]

# tutorbill/core/security.py - Admin authentication utilities (JWT, password hashing)
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional
import secrets
import hmac

import jwt
from passlib.context import CryptContext
from fastapi import HTTPException, status

from tutorbill.core.config import settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
    bcrypt__ident="2b"
)


class SecurityError(Exception):
    """Custom exception for security-related errors"""
    pass


class TokenManager:
    """Manages JWT token creation and validation for the admin identity"""

    def __init__(self):
        self.secret_key = settings.JWT_SECRET
        self.algorithm = settings.JWT_ALGORITHM
        self.issuer = settings.JWT_ISSUER
        self.audience = settings.JWT_AUDIENCE
        self.access_token_expire_minutes = settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES

    def create_access_token(
        self,
        subject: str,
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        """
        Create a JWT access token.

        Args:
            subject: Token subject (the admin email)
            expires_delta: Custom expiration time

        Returns:
            Encoded JWT token string

        Raises:
            SecurityError: If token creation fails
        """
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(minutes=self.access_token_expire_minutes))

        payload = {
            "sub": str(subject),
            "iat": now,
            "exp": expire,
            "iss": self.issuer,
            "aud": self.audience,
            "type": "access",
            "jti": secrets.token_hex(16),
        }

        try:
            return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        except jwt.PyJWTError as e:
            raise SecurityError(f"Failed to create access token: {e}")

    def decode_token(self, token: str) -> Dict[str, Any]:
        """
        Decode and validate a JWT access token.

        Raises:
            HTTPException: If token is invalid or expired
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
            )
        except jwt.ExpiredSignatureError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token has expired",
                headers={"WWW-Authenticate": "Bearer"},
            )
        except jwt.InvalidTokenError as e:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=f"Invalid token: {e}",
                headers={"WWW-Authenticate": "Bearer"},
            )

        if payload.get("type") != "access":
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token type. Expected access",
                headers={"WWW-Authenticate": "Bearer"},
            )
        return payload


class PasswordManager:
    """Manages password hashing and verification"""

    @staticmethod
    def hash_password(password: str) -> str:
        if not password:
            raise SecurityError("Password cannot be empty")
        return pwd_context.hash(password)

    @staticmethod
    def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
        if not plain_password or not hashed_password:
            return False
        try:
            return pwd_context.verify(plain_password, hashed_password)
        except ValueError:
            # Malformed hash
            return False


token_manager = TokenManager()
password_manager = PasswordManager()


def authenticate_admin(email: str, password: str) -> bool:
    """Check the single admin identity configured in settings"""
    email_ok = hmac.compare_digest(email.strip().lower(), str(settings.ADMIN_EMAIL).lower())
    password_ok = password_manager.verify_password(password, settings.ADMIN_PASSWORD_HASH)
    return email_ok and password_ok


def create_access_token(subject: str, expires_delta: Optional[timedelta] = None) -> str:
    return token_manager.create_access_token(subject, expires_delta)


def decode_token(token: str) -> Dict[str, Any]:
    return token_manager.decode_token(token)


def hash_password(password: str) -> str:
    return password_manager.hash_password(password)


__all__ = [
    "SecurityError",
    "authenticate_admin",
    "create_access_token",
    "decode_token",
    "hash_password",
    "token_manager",
    "password_manager",
]

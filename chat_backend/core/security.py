# File: core/security.py
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import BaseModel

from .config import ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ALGORITHM, JWT_SECRET
from .exceptions import Unauthenticated

# auto_error=False so a missing header goes through our own 401
bearer_scheme = HTTPBearer(auto_error=False)


class AuthUser(BaseModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None


class SessionAuthenticator:
    """Verifies bearer tokens issued by the external auth service."""

    def __init__(self, secret: str = JWT_SECRET, algorithm: str = JWT_ALGORITHM):
        self.secret = secret
        self.algorithm = algorithm

    def verify(self, token: Optional[str]) -> AuthUser:
        if not token:
            raise Unauthenticated("No token provided")
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise Unauthenticated("Token expired")
        except JWTError:
            raise Unauthenticated("Invalid token")

        # Tokens carry the id as "id"; "sub" is accepted too
        user_id = payload.get("id") or payload.get("sub")
        if not user_id:
            raise Unauthenticated("Invalid token")
        return AuthUser(id=str(user_id), email=payload.get("email"), name=payload.get("name"))


authenticator = SessionAuthenticator()


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None,
                        secret: str = JWT_SECRET, algorithm: str = JWT_ALGORITHM):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, secret, algorithm=algorithm)


def get_authenticator() -> SessionAuthenticator:
    return authenticator


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth: SessionAuthenticator = Depends(get_authenticator),
) -> AuthUser:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise Unauthenticated("Missing bearer token")
    return auth.verify(credentials.credentials)

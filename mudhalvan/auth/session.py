# mudhalvan/auth/session.py
import time
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request
from jose import jwt, JWTError
from pydantic import BaseModel

from mudhalvan.config import Settings


class Session(BaseModel):
    """Authenticated caller as carried by the session token"""
    user_id: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None
    provider: Optional[str] = None


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def issue_session_token(settings: Settings, user_id: str, email: str, name: Optional[str] = None,
                        role: Optional[str] = None, provider: str = "credentials") -> str:
    now = int(time.time())
    claims = {
        "sub": user_id,
        "email": email,
        "name": name,
        "provider": provider,
        "iat": now,
        "exp": now + settings.session_max_age_seconds,
    }
    if role:
        claims["role"] = role
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_session_token(settings: Settings, token: str) -> Session:
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or Expired Token")

    return Session(
        user_id=payload.get("sub"),
        email=payload.get("email"),
        name=payload.get("name"),
        role=payload.get("role"),
        provider=payload.get("provider"),
    )


def get_optional_session(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> Optional[Session]:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    return decode_session_token(settings, authorization.split(" ", 1)[1])


def require_session(session: Optional[Session] = Depends(get_optional_session)) -> Session:
    """Any logged-in caller"""
    if session is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return session


def require_email_session(session: Session = Depends(require_session)) -> Session:
    """Logged-in caller whose session carries an email"""
    if not session.email:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return session

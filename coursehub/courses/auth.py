"""
Bearer token authentication for the course API.

Tokens are HS256 JWTs issued by the account service; ``sub`` is the student
id and ``role`` the account role used for the admin views.
"""

from typing import Optional

from fastapi import Header, HTTPException
from jose import JWTError, jwt
from pydantic import BaseModel

from coursehub.courses.config import JWT_ALGORITHM, JWT_SECRET_KEY


class TokenClaims(BaseModel):
    user_id: str
    role: Optional[str] = None


def _bearer_token(authorization: Optional[str]) -> str:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="Missing bearer token")
    return token.strip()


def verify_token(authorization: str = Header(None)) -> TokenClaims:
    """Decode the request's bearer token; 401 unless it is valid and names a student"""
    token = _bearer_token(authorization)
    try:
        payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    if not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Token has no subject")
    return TokenClaims(user_id=str(payload["sub"]), role=payload.get("role"))

"""
Firebase Authentication for API requests
Verifies Firebase ID tokens sent by the browser client
"""

import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException
from firebase_admin import auth
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class CurrentUser(BaseModel):
    uid: str
    email: Optional[str] = None
    name: Optional[str] = None
    avatar: Optional[str] = None
    is_admin: bool = False


def user_from_claims(decoded_token: dict) -> CurrentUser:
    uid = decoded_token.get("uid") or decoded_token.get("sub")
    if not uid:
        raise HTTPException(status_code=401, detail="Token has no subject")
    return CurrentUser(
        uid=uid,
        email=(decoded_token.get("email") or "").lower() or None,
        name=decoded_token.get("name"),
        avatar=decoded_token.get("picture"),
        is_admin=decoded_token.get("admin") is True,
    )


def verify_id_token(token: str) -> CurrentUser:
    """
    Verify a Firebase ID token.

    Raises:
        HTTPException: 401 if the token is invalid, expired or revoked
    """
    try:
        decoded_token = auth.verify_id_token(token)
    except (auth.InvalidIdTokenError, auth.ExpiredIdTokenError, auth.RevokedIdTokenError) as e:
        logger.info("Rejected Firebase token: %s", e)
        raise HTTPException(status_code=401, detail="Invalid or Expired Token")
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid or Expired Token")
    return user_from_claims(decoded_token)


def get_current_user(authorization: str = Header(None)) -> CurrentUser:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Unauthorized")
    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return verify_id_token(token)


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Access denied")
    return user

# src/duty_admin/utils/security.py
from __future__ import annotations

import time
from typing import Optional, Dict, Any

from jose import jwt, JWTError
from fastapi import HTTPException

from src.duty_admin.config import settings

# Clock skew tolerance (seconds)
CLOCK_SKEW_LEEWAY: int = 30


# ---------------------------------------------------------------------
# Token Handling - Access Token
# ---------------------------------------------------------------------
def create_access_token(data: Dict[str, Any], minutes: Optional[int] = None) -> str:
    """
    Create a short-lived JWT access token.
    Uses epoch seconds to avoid timezone/datetime issues.
    """
    now_ts = int(time.time())
    exp_ts = now_ts + int(60 * (minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {**data, "iat": now_ts, "exp": exp_ts}
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def _check_exp_with_leeway(payload: Dict[str, Any]) -> None:
    exp = payload.get("exp")
    if exp is None:
        raise HTTPException(status_code=401, detail="Invalid token")

    now = int(time.time())
    if now > int(exp) + CLOCK_SKEW_LEEWAY:
        raise HTTPException(status_code=401, detail="Token expired")


def decode_access_token(token: str) -> Dict[str, Any]:
    """Return payload or raise HTTPException(401)."""
    try:
        # python-jose has no leeway kwarg; exp is checked by hand below
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALG],
            options={"verify_aud": False, "verify_exp": False},
        )
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")
    _check_exp_with_leeway(payload)
    return payload

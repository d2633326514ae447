# src/duty_admin/utils/auth.py
from __future__ import annotations

from typing import Optional

from fastapi import Request, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.duty_admin.models.user import User
from src.duty_admin.utils.database import get_db
from src.duty_admin.utils.security import decode_access_token

ACCESS_COOKIE_NAME = "access_token"


def _extract_bearer(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization")
    if auth_header:
        parts = auth_header.split(" ", 1)
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1].strip()

    cookie_tok = request.cookies.get(ACCESS_COOKIE_NAME)
    if cookie_tok:
        return cookie_tok.strip()

    return None


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    token = _extract_bearer(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    payload = decode_access_token(token)
    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub.isdigit():
        raise HTTPException(status_code=401, detail="Invalid token payload")

    user = await db.scalar(select(User).where(User.id == int(sub)))
    if not user or user.status != "active":
        raise HTTPException(status_code=401, detail="User not found")
    return user

"""Caller identity as passed by the upstream authentication layer."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, HTTPException, status


def get_current_user_id(
    x_user_id: Annotated[str | None, Header()] = None,
) -> str:
    """Return the authenticated user id forwarded in ``X-User-Id``."""

    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )
    return x_user_id.strip()


CurrentUser = Annotated[str, Depends(get_current_user_id)]

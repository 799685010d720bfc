from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, status


async def get_current_user_id(
    x_user_id: Annotated[Optional[str], Header()] = None,
) -> str:
    """
    Caller identity set by the upstream gateway.

    Authentication happens before requests reach this service; the gateway
    forwards the authenticated user's ID in X-User-Id.
    """
    if x_user_id is None or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing user identity",
        )
    return x_user_id.strip()


# Type alias for cleaner dependency injection
CurrentUserId = Annotated[str, Depends(get_current_user_id)]

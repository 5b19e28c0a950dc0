"""Actor attribution for audit entries."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader

ACTOR_HEADER = APIKeyHeader(name="X-Actor-Id", auto_error=False)


async def get_current_actor(actor_header: str | None = Depends(ACTOR_HEADER)) -> str:
    """
    Opaque reference to the user making a change.

    Required on mutating endpoints: a null actor is reserved for changes the
    system makes on its own (automated validation).
    """
    actor = (actor_header or "").strip()
    if not actor:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-Actor-Id header",
        )
    return actor


# Type alias for dependency injection
ActorDep = Annotated[str, Depends(get_current_actor)]

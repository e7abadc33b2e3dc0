"""Route Dependencies — authenticated actor and unit-of-work injection.

Invariants:
    - The actor id is supplied by the identity gateway in a header; this service
      never authenticates, it only refuses requests without a well-formed actor
    - One SqlUnitOfWork per request, bound to the request's DB session
"""

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from lendbridge.config import get_settings
from lendbridge.core.domain_types import UserId
from lendbridge.core.validate_input import validate_identifier
from lendbridge.infrastructure.database import get_db
from lendbridge.infrastructure.sql_stores import SqlUnitOfWork


async def get_actor_id(request: Request) -> UserId:
    """Actor from the identity header, or 401."""
    header = get_settings().actor_header
    result = validate_identifier(request.headers.get(header), "actor_id")
    if not result.ok:
        raise HTTPException(
            status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing or invalid {header} header",
        )
    return UserId(result.value)


async def get_uow(db: AsyncSession = Depends(get_db)) -> SqlUnitOfWork:
    return SqlUnitOfWork(db)

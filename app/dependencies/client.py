from typing import Optional
from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_session
from app.services.storage import ClientStorage

CLIENT_HEADER = "X-Client-Id"


def _clean(client_id: Optional[str]) -> Optional[str]:
    if client_id is None:
        return None
    client_id = client_id.strip()
    if not client_id or len(client_id) > 128:
        raise HTTPException(status_code=400, detail=f"{CLIENT_HEADER} must be 1-128 characters")
    return client_id


async def get_client_id(x_client_id: Optional[str] = Header(default=None)) -> str:
    """Identifies whose local storage a request reads and writes."""
    client_id = _clean(x_client_id)
    if client_id is None:
        raise HTTPException(status_code=400, detail=f"{CLIENT_HEADER} header is required")
    return client_id


async def get_optional_client_id(x_client_id: Optional[str] = Header(default=None)) -> Optional[str]:
    return _clean(x_client_id)


async def get_storage(
    client_id: str = Depends(get_client_id),
    session: AsyncSession = Depends(get_session),
) -> ClientStorage:
    return ClientStorage(session, client_id)

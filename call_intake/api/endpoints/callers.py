"""Read-only caller record endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from call_intake.core.database import get_db
from call_intake.schemas.caller import CallerOut
from call_intake.services.callers import CallerRepository
from call_intake.services.phone import normalize_sip_uri

router = APIRouter()


@router.get("/", response_model=list[CallerOut])
async def list_callers(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """List caller records, most recently updated first."""
    return await CallerRepository(db).list_recent(limit=limit, offset=offset)


@router.get("/{contact_num}", response_model=CallerOut)
async def get_caller(contact_num: str, db: AsyncSession = Depends(get_db)):
    """Get one caller by phone number (a sip: URI is accepted too)."""
    caller = await CallerRepository(db).find_by_phone(normalize_sip_uri(contact_num))
    if not caller:
        raise HTTPException(status_code=404, detail="Caller not found")
    return caller

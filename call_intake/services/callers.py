"""Caller record repository.

One row per normalized phone number, enforced by the unique index on
contact_num. The upsert locks the existing row while it reads it, and a
create that loses the unique index to a concurrent request falls
through to an update of the winner's row instead of a duplicate.
"""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from call_intake.core.exceptions import PersistenceError
from call_intake.models.caller import Caller

logger = logging.getLogger(__name__)


class CallerRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_phone(self, contact_num: str, for_update: bool = False) -> Caller | None:
        """Equality lookup on contact_num, at most one row."""
        query = select(Caller).where(Caller.contact_num == contact_num).limit(1)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def create(self, fields: dict[str, Any]) -> Caller:
        caller = Caller(**fields)
        self.db.add(caller)
        await self.db.flush()
        return caller

    async def update(self, caller: Caller, patch: dict[str, Any]) -> Caller:
        for field, value in patch.items():
            setattr(caller, field, value)
        await self.db.flush()
        return caller

    async def list_recent(self, limit: int = 50, offset: int = 0) -> list[Caller]:
        result = await self.db.execute(
            select(Caller).order_by(Caller.last_updated_at.desc()).limit(limit).offset(offset)
        )
        return list(result.scalars().all())

    async def upsert(self, contact_num: str, fields: dict[str, Any]) -> tuple[Caller, bool]:
        """Create the caller if absent, else overwrite its fields.

        Returns (caller, created). Raises PersistenceError on any store
        failure, after rolling back.
        """
        now = datetime.utcnow()
        patch = {**fields, "contact_num": contact_num, "last_updated_at": now}

        try:
            existing = await self.find_by_phone(contact_num, for_update=True)
            if existing is not None:
                caller = await self.update(existing, patch)
                created = False
            else:
                caller, created = await self._create_or_adopt(contact_num, {**patch, "created_at": now})
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError(f"upsert failed for {contact_num}: {e}") from e

        logger.info(
            "%s caller record for %s",
            "Created" if created else "Updated",
            contact_num,
        )
        return caller, created

    async def _create_or_adopt(self, contact_num: str, fields: dict[str, Any]) -> tuple[Caller, bool]:
        """Insert; if another request won the unique index, update its row."""
        try:
            return await self.create(fields), True
        except IntegrityError:
            # Nothing but the failed insert is pending in this transaction.
            await self.db.rollback()
            logger.warning("Concurrent create for %s; updating the existing record", contact_num)
            existing = await self.find_by_phone(contact_num, for_update=True)
            if existing is None:
                raise
            fields = {k: v for k, v in fields.items() if k != "created_at"}
            return await self.update(existing, fields), False

"""Metadata store: CRUD over FileRecord rows for one session."""
import logging
import uuid
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storage_gateway.exceptions import PersistError
from storage_gateway.models.file_record import FileRecord

logger = logging.getLogger(__name__)


def parse_file_id(file_id: str | uuid.UUID) -> Optional[uuid.UUID]:
    """Parse a client-supplied id. Malformed ids map to None (treated as not found)."""
    if isinstance(file_id, uuid.UUID):
        return file_id
    try:
        return uuid.UUID(str(file_id))
    except ValueError:
        return None


class FileRepository:
    """Queries and mutations on the files table.

    Reads never raise for missing rows; they return None or an empty list.
    Writes raise PersistError after rolling the session back.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, record: FileRecord) -> FileRecord:
        try:
            self.session.add(record)
            await self.session.commit()
            await self.session.refresh(record)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("Failed to persist file record: %s", record.filename)
            raise PersistError(f"Failed to persist file record: {e}") from e
        logger.info("Created file record %s (%s)", record.id, record.filename)
        return record

    async def find_by_id(self, file_id: str | uuid.UUID) -> Optional[FileRecord]:
        parsed = parse_file_id(file_id)
        if parsed is None:
            return None
        result = await self.session.execute(
            select(FileRecord).where(FileRecord.id == parsed)
        )
        return result.scalar_one_or_none()

    async def find_by_filename(
        self, filename: str, wallet_address: Optional[str] = None
    ) -> Optional[FileRecord]:
        """First record with this filename, scoped to the wallet when one is given."""
        query = select(FileRecord).where(FileRecord.filename == filename)
        if wallet_address:
            query = query.where(FileRecord.wallet_address == wallet_address)
        query = query.order_by(FileRecord.created_at, FileRecord.id).limit(1)
        result = await self.session.execute(query)
        return result.scalars().first()

    async def find_by_wallet(self, wallet_address: str) -> list[FileRecord]:
        result = await self.session.execute(
            select(FileRecord)
            .where(FileRecord.wallet_address == wallet_address)
            .order_by(FileRecord.created_at, FileRecord.id)
        )
        return list(result.scalars().all())

    async def delete_by_id(self, file_id: str | uuid.UUID) -> bool:
        parsed = parse_file_id(file_id)
        if parsed is None:
            return False
        return await self._delete_where(FileRecord.id == parsed)

    async def delete_by_filename(
        self, filename: str, wallet_address: Optional[str] = None
    ) -> bool:
        record = await self.find_by_filename(filename, wallet_address)
        if record is None:
            return False
        return await self._delete_where(FileRecord.id == record.id)

    async def stage_delete(self, record: FileRecord) -> None:
        """Delete the row inside the open transaction without committing."""
        try:
            await self.session.delete(record)
            await self.session.flush()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistError(f"Failed to delete file record {record.id}: {e}") from e

    async def commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistError(f"Failed to commit: {e}") from e

    async def rollback(self) -> None:
        await self.session.rollback()

    async def sum_size_for_wallet(self, wallet_address: str) -> int:
        """Total bytes of the wallet's files. Folder placeholders are excluded."""
        result = await self.session.execute(
            select(func.coalesce(func.sum(FileRecord.size), 0))
            .where(FileRecord.wallet_address == wallet_address)
            .where(FileRecord.is_folder.is_(False))
        )
        return int(result.scalar_one())

    async def _delete_where(self, clause) -> bool:
        try:
            result = await self.session.execute(delete(FileRecord).where(clause))
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("Failed to delete file record")
            raise PersistError(f"Failed to delete file record: {e}") from e
        return result.rowcount > 0

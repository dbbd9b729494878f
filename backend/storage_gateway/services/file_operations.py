"""Two-step workflows that keep the bucket and the files table in step.

Every create writes the object first and the record second. If the record
write fails, the object is deleted again (best effort). Every delete stages
the record deletion, removes the object, and only then commits, so a failed
object delete leaves the record in place.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storage_gateway.exceptions import PersistError, StoreError
from storage_gateway.models.file_record import FileRecord
from storage_gateway.schemas.file import StoreResult
from storage_gateway.services.file_repository import FileRepository
from storage_gateway.services.object_store import ObjectStoreService, file_key, folder_key

logger = logging.getLogger(__name__)


def extension_of(filename: str) -> str:
    """Text after the last dot ('report.final.pdf' -> 'pdf').

    A name without a dot is returned unchanged.
    """
    return filename.rsplit(".", 1)[-1]


def object_key_for(record: FileRecord) -> str:
    if record.path:
        return record.path
    if record.is_folder:
        return folder_key(record.wallet_address, record.filename)
    return file_key(record.wallet_address, record.filename)


async def _rollback_object(store: ObjectStoreService, key: str) -> None:
    try:
        logger.warning("Rolling back object write, deleting: %s", key)
        await store.delete(key)
    except StoreError:
        logger.exception("Failed to roll back object write, orphaned object: %s", key)


async def upload_file(
    repo: FileRepository,
    store: ObjectStoreService,
    wallet_address: str,
    filename: str,
    data: bytes,
    content_type: Optional[str],
) -> tuple[StoreResult, FileRecord]:
    """Store the bytes, then record them.

    Raises:
        StoreWriteError: the object could not be written; nothing was recorded.
        PersistError: the record could not be written; the object was removed again.
    """
    key = file_key(wallet_address, filename)
    stored = await store.put(key, data, content_type, filename)

    record = FileRecord(
        filename=filename,
        path=key,
        extension=extension_of(filename),
        size=len(data),
        wallet_address=wallet_address,
        url=stored.location,
        is_folder=False,
    )
    try:
        record = await repo.create(record)
    except PersistError:
        await _rollback_object(store, key)
        raise
    return stored, record


async def create_folder(
    repo: FileRepository,
    store: ObjectStoreService,
    wallet_address: str,
    folder_name: str,
) -> tuple[StoreResult, FileRecord]:
    """Write a zero-byte folder marker, then record it with is_folder set."""
    key = folder_key(wallet_address, folder_name)
    stored = await store.put_empty(key)

    record = FileRecord(
        filename=folder_name,
        path=key,
        size=0,
        wallet_address=wallet_address,
        url=stored.location,
        is_folder=True,
    )
    try:
        record = await repo.create(record)
    except PersistError:
        await _rollback_object(store, key)
        raise
    return stored, record


async def delete_file(
    repo: FileRepository,
    store: ObjectStoreService,
    record: FileRecord,
) -> None:
    """Remove the object and its record.

    Raises:
        StoreDeleteError: the object delete failed; the record is kept.
        PersistError: the record could not be removed.
    """
    key = object_key_for(record)
    record_id = record.id
    await repo.stage_delete(record)
    try:
        await store.delete(key)
    except StoreError:
        await repo.rollback()
        raise
    try:
        await repo.commit()
    except PersistError:
        logger.exception("Object %s deleted but record %s was not removed", key, record_id)
        raise
    logger.info("Deleted file %s (%s)", record_id, key)


async def delete_file_by_id(
    session_factory: async_sessionmaker[AsyncSession],
    store: ObjectStoreService,
    file_id: str,
    authorize: Optional[Callable[[str], Awaitable[None]]] = None,
) -> bool:
    """One bulk-delete pipeline with its own session. False when the id is unknown.

    authorize is awaited with the record's wallet address before anything is deleted.
    """
    async with session_factory() as session:
        repo = FileRepository(session)
        record = await repo.find_by_id(file_id)
        if record is None:
            logger.warning("File not found for ID: %s", file_id)
            return False
        if authorize is not None:
            await authorize(record.wallet_address)
        await delete_file(repo, store, record)
        return True


async def delete_many(
    session_factory: async_sessionmaker[AsyncSession],
    store: ObjectStoreService,
    file_ids: list[str],
    authorize: Optional[Callable[[str], Awaitable[None]]] = None,
) -> list[bool | BaseException]:
    """Run one delete pipeline per id concurrently and wait for all of them to settle.

    Results line up with file_ids: True (deleted), False (skipped) or the raised exception.
    """
    return await asyncio.gather(
        *(delete_file_by_id(session_factory, store, file_id, authorize) for file_id in file_ids),
        return_exceptions=True,
    )

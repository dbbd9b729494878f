"""Files API routes."""
import logging
import mimetypes
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.responses import Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storage_gateway.auth import WalletAuthorizer, get_wallet_authorizer
from storage_gateway.database import get_db, get_session_factory
from storage_gateway.exceptions import (
    PersistError,
    StoreError,
    StoreObjectNotFound,
    WalletAccessDenied,
)
from storage_gateway.schemas.file import (
    DeleteMultipleRequest,
    DeleteResponse,
    FileRecordResponse,
    StoredFileResponse,
    TotalSizeResponse,
)
from storage_gateway.services import file_operations
from storage_gateway.services.file_repository import FileRepository
from storage_gateway.services.object_store import (
    ObjectStoreService,
    content_disposition,
    get_object_store,
)

logger = logging.getLogger(__name__)
router = APIRouter(tags=["files"])


async def _authorize(authorizer: WalletAuthorizer, request: Request, wallet_address: str) -> None:
    try:
        await authorizer.verify(request, wallet_address)
    except WalletAccessDenied as e:
        raise HTTPException(status_code=403, detail=str(e))


def _require_wallet(wallet_address: Optional[str]) -> str:
    if not wallet_address or not wallet_address.strip():
        raise HTTPException(status_code=400, detail="walletAddress is required.")
    return wallet_address.strip()


@router.get("/totalSize", response_model=TotalSizeResponse)
async def total_size(
    request: Request,
    wallet_address: Optional[str] = Query(None, alias="walletAddress"),
    db: AsyncSession = Depends(get_db),
    authorizer: WalletAuthorizer = Depends(get_wallet_authorizer),
):
    """Total bytes uploaded by a wallet, folders excluded."""
    wallet_address = _require_wallet(wallet_address)
    await _authorize(authorizer, request, wallet_address)
    try:
        total = await FileRepository(db).sum_size_for_wallet(wallet_address)
    except SQLAlchemyError:
        logger.exception("Error fetching total uploaded size for %s", wallet_address)
        raise HTTPException(status_code=500, detail="Internal Server Error")
    return TotalSizeResponse(total_size=total)


@router.get("/download/{file_id}")
async def download_file(
    file_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    store: ObjectStoreService = Depends(get_object_store),
    authorizer: WalletAuthorizer = Depends(get_wallet_authorizer),
):
    """Download a file's bytes from the object store."""
    try:
        record = await FileRepository(db).find_by_id(file_id)
    except SQLAlchemyError:
        logger.exception("Error fetching file %s", file_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")
    if not record:
        raise HTTPException(status_code=404, detail="File not found")
    await _authorize(authorizer, request, record.wallet_address)
    if record.is_folder:
        raise HTTPException(status_code=400, detail="Folders cannot be downloaded")

    try:
        content, stored_type = await store.get(file_operations.object_key_for(record))
    except StoreObjectNotFound:
        logger.error("Record %s points at missing object %s", record.id, record.path)
        raise HTTPException(status_code=404, detail="File content not found")
    except StoreError:
        raise HTTPException(status_code=500, detail="Error downloading file")

    media_type = stored_type or mimetypes.guess_type(record.filename)[0]
    return Response(
        content=content,
        media_type=media_type or "application/octet-stream",
        headers={"Content-Disposition": content_disposition(record.filename)},
    )


@router.delete("/delete/{filename}", response_model=DeleteResponse)
async def delete_file(
    filename: str,
    request: Request,
    wallet_address: Optional[str] = Query(None, alias="walletAddress"),
    db: AsyncSession = Depends(get_db),
    store: ObjectStoreService = Depends(get_object_store),
    authorizer: WalletAuthorizer = Depends(get_wallet_authorizer),
):
    """Delete a file by name. Pass walletAddress to pick the owner's file unambiguously."""
    repo = FileRepository(db)
    try:
        record = await repo.find_by_filename(filename, wallet_address)
    except SQLAlchemyError:
        logger.exception("Error looking up file %s", filename)
        raise HTTPException(status_code=500, detail="Internal Server Error")
    if not record:
        raise HTTPException(status_code=404, detail="File not found.")
    await _authorize(authorizer, request, record.wallet_address)

    logger.info("Deleting file with key: %s", file_operations.object_key_for(record))
    try:
        await file_operations.delete_file(repo, store, record)
    except StoreError:
        raise HTTPException(status_code=500, detail="Error deleting file from storage")
    except PersistError:
        raise HTTPException(status_code=500, detail="Internal Server Error")
    return DeleteResponse(success=True, message="File deleted successfully.")


@router.post("/delete-multiple", response_model=DeleteResponse)
async def delete_multiple(
    request: Request,
    body: Optional[DeleteMultipleRequest] = None,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    store: ObjectStoreService = Depends(get_object_store),
    authorizer: WalletAuthorizer = Depends(get_wallet_authorizer),
):
    """Delete many files by id. Unknown ids are skipped."""
    if body is None or not body.file_ids:
        raise HTTPException(status_code=400, detail="No file IDs provided.")

    async def authorize(wallet_address: str) -> None:
        await authorizer.verify(request, wallet_address)

    results = await file_operations.delete_many(session_factory, store, body.file_ids, authorize)

    failures = [
        (file_id, result)
        for file_id, result in zip(body.file_ids, results)
        if isinstance(result, BaseException)
    ]
    for file_id, error in failures:
        logger.error("Error deleting file %s: %s", file_id, error, exc_info=error)
    if any(isinstance(error, WalletAccessDenied) for _, error in failures):
        raise HTTPException(status_code=403, detail="Access denied for one or more files")
    if failures:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to delete {len(failures)} of {len(body.file_ids)} files",
        )
    return DeleteResponse(success=True, message="Files deleted successfully.")


@router.get("/files", response_model=list[FileRecordResponse])
async def list_files(
    request: Request,
    wallet_address: Optional[str] = Query(None, alias="walletAddress"),
    db: AsyncSession = Depends(get_db),
    authorizer: WalletAuthorizer = Depends(get_wallet_authorizer),
):
    """List every file and folder record owned by a wallet."""
    wallet_address = _require_wallet(wallet_address)
    await _authorize(authorizer, request, wallet_address)
    try:
        records = await FileRepository(db).find_by_wallet(wallet_address)
    except SQLAlchemyError:
        logger.exception("Error fetching files for %s", wallet_address)
        raise HTTPException(status_code=500, detail="Error fetching files")
    return [FileRecordResponse.model_validate(r) for r in records]


@router.get("/files/{file_id}", response_model=FileRecordResponse)
async def get_file(
    file_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    authorizer: WalletAuthorizer = Depends(get_wallet_authorizer),
):
    """Get file metadata by ID."""
    try:
        record = await FileRepository(db).find_by_id(file_id)
    except SQLAlchemyError:
        logger.exception("Error fetching file %s", file_id)
        raise HTTPException(status_code=500, detail="Internal Server Error")
    if not record:
        raise HTTPException(status_code=404, detail="File not found")
    await _authorize(authorizer, request, record.wallet_address)
    return FileRecordResponse.model_validate(record)


@router.post("/create-folder", response_model=StoredFileResponse)
async def create_folder(
    request: Request,
    folder_name: Optional[str] = Form(None, alias="folderName"),
    wallet_address: Optional[str] = Form(None, alias="walletAddress"),
    db: AsyncSession = Depends(get_db),
    store: ObjectStoreService = Depends(get_object_store),
    authorizer: WalletAuthorizer = Depends(get_wallet_authorizer),
):
    """Create a folder placeholder: an empty marker object plus an isFolder record."""
    wallet_address = _require_wallet(wallet_address)
    if not folder_name or not folder_name.strip("/ "):
        raise HTTPException(status_code=400, detail="folderName is required.")
    await _authorize(authorizer, request, wallet_address)

    try:
        stored, record = await file_operations.create_folder(
            FileRepository(db), store, wallet_address, folder_name.strip("/ ")
        )
    except StoreError:
        raise HTTPException(status_code=500, detail="Error occurred while creating folder")
    except PersistError:
        raise HTTPException(status_code=500, detail="Database error")
    return StoredFileResponse(s3_data=stored, db_data=FileRecordResponse.model_validate(record))


@router.post("/upload", response_model=StoredFileResponse)
async def upload_file(
    request: Request,
    file: Optional[UploadFile] = File(None),
    wallet_address: Optional[str] = Form(None, alias="walletAddress"),
    db: AsyncSession = Depends(get_db),
    store: ObjectStoreService = Depends(get_object_store),
    authorizer: WalletAuthorizer = Depends(get_wallet_authorizer),
):
    """Upload a file to the wallet's folder in the bucket and record it."""
    if file is None:
        raise HTTPException(status_code=400, detail="No file uploaded.")
    wallet_address = _require_wallet(wallet_address)
    await _authorize(authorizer, request, wallet_address)

    contents = await file.read()
    try:
        stored, record = await file_operations.upload_file(
            FileRepository(db),
            store,
            wallet_address,
            file.filename or "unnamed",
            contents,
            file.content_type,
        )
    except StoreError:
        raise HTTPException(status_code=500, detail="Error occurred while uploading file")
    except PersistError:
        raise HTTPException(status_code=500, detail="Database error")
    return StoredFileResponse(s3_data=stored, db_data=FileRecordResponse.model_validate(record))

"""File request/response schemas."""
import uuid
from datetime import datetime
from typing import Optional
from pydantic import Field
from storage_gateway.schemas.base import CamelModel, CamelORMModel


class FileRecordResponse(CamelORMModel):
    id: uuid.UUID
    filename: str
    path: Optional[str] = None
    extension: Optional[str] = None
    size: int = 0
    wallet_address: str
    url: Optional[str] = None
    is_folder: bool = False
    created_at: datetime
    updated_at: datetime


class StoreResult(CamelModel):
    """What the object store reports back for a written key."""
    key: str
    bucket: str
    location: Optional[str] = None
    etag: Optional[str] = None


class StoredFileResponse(CamelModel):
    """Upload and create-folder response: the store half and the record half."""
    s3_data: StoreResult = Field(alias="s3Data")
    db_data: FileRecordResponse


class DeleteMultipleRequest(CamelModel):
    file_ids: Optional[list[str]] = None


class DeleteResponse(CamelModel):
    success: bool = True
    message: str = ""


class TotalSizeResponse(CamelModel):
    total_size: int = 0

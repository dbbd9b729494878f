"""FileRecord model - file and folder metadata (bytes live in the object store)."""
import uuid
from sqlalchemy import BigInteger, Boolean, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from storage_gateway.models.base import Base, TimestampMixin


class FileRecord(Base, TimestampMixin):
    __tablename__ = "files"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    filename: Mapped[str] = mapped_column(String(500), nullable=False)
    path: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    extension: Mapped[str | None] = mapped_column(String(100), nullable=True)
    size: Mapped[int] = mapped_column(BigInteger, default=0)
    wallet_address: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    url: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    is_folder: Mapped[bool] = mapped_column(Boolean, default=False)

    __table_args__ = (
        Index("idx_files_wallet_filename", "wallet_address", "filename"),
    )

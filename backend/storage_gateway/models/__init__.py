"""Import all models so SQLAlchemy metadata knows about them."""
from storage_gateway.models.base import Base
from storage_gateway.models.file_record import FileRecord

__all__ = ["Base", "FileRecord"]

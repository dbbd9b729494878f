"""camelCase schema bases.

Python attributes stay snake_case (wallet_address, is_folder). The JSON
clients send and receive uses walletAddress, isFolder, fileIds.
"""
from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Request bodies and plain response payloads."""
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class CamelORMModel(CamelModel):
    """Responses built from ORM rows."""
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }

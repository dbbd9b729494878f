"""Exceptions raised by the storage and metadata layers."""


class GatewayError(Exception):
    """Base class for gateway backend failures."""


class StoreError(GatewayError):
    """An object-store call failed."""

    def __init__(self, key: str, message: str = "") -> None:
        self.key = key
        super().__init__(message or f"Object store operation failed for key: {key}")


class StoreWriteError(StoreError):
    """Writing an object (or folder marker) to the bucket failed."""


class StoreReadError(StoreError):
    """Reading an object from the bucket failed."""


class StoreObjectNotFound(StoreError):
    """The requested key does not exist in the bucket."""


class StoreDeleteError(StoreError):
    """Deleting an object from the bucket failed."""


class PersistError(GatewayError):
    """A metadata-store write failed. The session has been rolled back."""


class WalletAccessDenied(GatewayError):
    """The caller is not allowed to act on the given wallet's files."""

    def __init__(self, wallet_address: str) -> None:
        self.wallet_address = wallet_address
        super().__init__(f"Access denied for wallet: {wallet_address}")

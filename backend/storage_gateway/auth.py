"""Wallet ownership checks.

Callers identify themselves only by the walletAddress they send. Nothing
proves they own it. Every handler still routes wallet access through a
WalletAuthorizer so a real check (signed message, session token) can be
dropped in via the get_wallet_authorizer dependency.
"""
import logging

from fastapi import Request

from storage_gateway.exceptions import WalletAccessDenied

logger = logging.getLogger(__name__)


class WalletAuthorizer:
    """Decides whether the caller behind a request may act on a wallet."""

    async def is_owner(self, request: Request, wallet_address: str) -> bool:
        raise NotImplementedError

    async def verify(self, request: Request, wallet_address: str) -> None:
        """Raise WalletAccessDenied unless the caller owns wallet_address."""
        if not await self.is_owner(request, wallet_address):
            logger.warning(
                "Wallet access denied: %s %s wallet=%s",
                request.method, request.url.path, wallet_address,
            )
            raise WalletAccessDenied(wallet_address)


class TrustingWalletAuthorizer(WalletAuthorizer):
    """Accepts every caller. This is the unauthenticated behaviour clients rely on today."""

    async def is_owner(self, request: Request, wallet_address: str) -> bool:
        logger.debug("Trusting caller for wallet %s", wallet_address)
        return True


wallet_authorizer = TrustingWalletAuthorizer()


def get_wallet_authorizer() -> WalletAuthorizer:
    """FastAPI dependency for the active authorizer."""
    return wallet_authorizer

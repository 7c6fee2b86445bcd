"""Wallet adapters for paying Lightning invoices.

Each adapter implements WalletBase with a single get_preimage() method.
Supported wallets are token based HTTP APIs (Alby, ZBD); which one is used
is read once from the local store, where ``connect_wallet`` saved it.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

import httpx

from fewsats_l402.exceptions import (
    NoWalletError,
    PaymentFailedError,
    WalletNotFoundError,
)

if TYPE_CHECKING:
    from fewsats_l402.store import Store

logger = logging.getLogger(__name__)


class WalletBase(ABC):
    """Abstract base for Lightning wallet adapters."""

    @abstractmethod
    def get_preimage(self, bolt11: str) -> str:
        """Pay a BOLT11 invoice and return the preimage (hex).

        Args:
            bolt11: BOLT11-encoded Lightning invoice string.

        Returns:
            Payment preimage as a hex string.

        Raises:
            PaymentFailedError: If the payment fails.
        """


class TokenWallet(WalletBase):
    """Wallet behind an HTTP API authenticated with a bearer token.

    Subclasses set NAME and BASE_URL. Payments are a single
    ``POST {base_url}/payments/bolt11`` returning ``payment_preimage``.
    """

    NAME = "token"
    BASE_URL = ""
    PAYMENT_PATH = "/payments/bolt11"

    def __init__(self, token: str, base_url: str | None = None, **httpx_kwargs: Any):
        """
        Args:
            token: API token of the wallet account.
            base_url: Override the provider's API URL.
            **httpx_kwargs: Additional kwargs passed to httpx.Client.
        """
        self._token = token
        self._base_url = (base_url or self.BASE_URL).rstrip("/")
        self._httpx_kwargs = {"timeout": 60.0, **httpx_kwargs}

    def _build_client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self._base_url,
            headers={
                "Authorization": f"Bearer {self._token}",
                "Accept": "application/json",
                "Content-Type": "application/json",
            },
            **self._httpx_kwargs,
        )

    def get_preimage(self, bolt11: str) -> str:
        with self._build_client() as client:
            try:
                resp = client.post(self.PAYMENT_PATH, json={"invoice": bolt11})
            except httpx.HTTPError as e:
                raise PaymentFailedError(f"{self.NAME} connection error: {e}", bolt11) from e

            if resp.status_code != 200:
                raise PaymentFailedError(
                    f"{self.NAME} payment failed ({resp.status_code}): {resp.text}",
                    bolt11,
                )

            try:
                data = resp.json()
            except ValueError as e:
                raise PaymentFailedError(
                    f"{self.NAME} returned an invalid response: {e}", bolt11
                ) from e

        preimage = data.get("payment_preimage") if isinstance(data, dict) else None
        if not preimage:
            raise PaymentFailedError(
                f"{self.NAME} payment succeeded but no preimage returned", bolt11
            )

        logger.debug("Invoice paid through %s", self.NAME)
        return preimage


# Re-export wallet classes for convenience
from fewsats_l402.wallets.alby import AlbyWallet as AlbyWallet  # noqa: E402
from fewsats_l402.wallets.zbd import ZbdWallet as ZbdWallet  # noqa: E402

# Wallet type tag (as stored in the wallets table) -> adapter class
WALLET_TYPES: dict[str, type[TokenWallet]] = {
    AlbyWallet.NAME: AlbyWallet,
    ZbdWallet.NAME: ZbdWallet,
}


def build_wallet(wallet_type: str, token: str, **kwargs: Any) -> WalletBase:
    """Instantiate the adapter for a wallet type.

    Raises:
        ValueError: If the wallet type is not supported.
    """
    try:
        wallet_cls = WALLET_TYPES[wallet_type]
    except KeyError:
        raise ValueError(f"unsupported wallet type: {wallet_type}") from None
    return wallet_cls(token, **kwargs)


def load_default_wallet(store: Store, **kwargs: Any) -> WalletBase | None:
    """Build the default wallet saved in the store.

    Returns:
        The wallet adapter, or None if no wallet is connected or the
        connected wallet type is not supported.
    """
    try:
        wallet_id = store.get_default_wallet()
        wallet = store.get_wallet(wallet_id)
        token = store.get_wallet_token(wallet_id)
    except (NoWalletError, WalletNotFoundError):
        logger.debug("No default wallet configured")
        return None

    try:
        return build_wallet(wallet.type, token.token, **kwargs)
    except ValueError as e:
        logger.warning("Ignoring default wallet %d: %s", wallet_id, e)
        return None


def connect_wallet(store: Store, wallet_type: str, token: str) -> int:
    """Save a token based wallet and make it the default one.

    Returns:
        The id of the new wallet.

    Raises:
        ValueError: If the type is unsupported or the token is empty.
    """
    if wallet_type not in WALLET_TYPES:
        raise ValueError(
            f"unsupported wallet type: {wallet_type} "
            f"(supported: {', '.join(WALLET_TYPES)})"
        )
    if not token:
        raise ValueError(f"token argument is required for {wallet_type} wallets")

    wallet_id = store.insert_wallet(wallet_type)
    store.insert_wallet_token(wallet_id, token)
    logger.info("Connected %s wallet %d", wallet_type, wallet_id)
    return wallet_id


def disconnect_wallet(store: Store, wallet_id: int) -> None:
    """Remove a wallet and its token from the store."""
    wallet = store.get_wallet(wallet_id)
    store.delete_wallet_token(wallet.id)
    store.delete_wallet(wallet.id)
    logger.info("Disconnected %s wallet %d", wallet.type, wallet.id)


__all__ = [
    "WalletBase",
    "TokenWallet",
    "AlbyWallet",
    "ZbdWallet",
    "WALLET_TYPES",
    "build_wallet",
    "load_default_wallet",
    "connect_wallet",
    "disconnect_wallet",
]

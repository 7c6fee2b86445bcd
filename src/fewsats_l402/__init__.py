"""fewsats-l402 — L402 payment handling for the Fewsats client.

Requests to resources behind a Lightning paywall answer HTTP 402 with an
L402 challenge. The executor asks the user to confirm the price, pays the
invoice with the connected wallet, stores the resulting credentials and
retries the request. Stored credentials are reused, so a resource is
only ever bought once.

Usage:
    from fewsats_l402 import L402Executor, load_config

    config = load_config()
    store = config.open_store()
    executor = L402Executor(
        store,
        headers={"Authorization": f"Bearer {config.api_key}"},
    )
    response = executor.execute_paid_request(
        "GET", f"{config.domain}/v0/storage/download/<file_id>"
    )
"""

from fewsats_l402.bolt11 import decode_price
from fewsats_l402.challenge import L402Challenge, find_l402_challenge, parse_challenge
from fewsats_l402.config import Config, configure_logging, load_config
from fewsats_l402.credentials import L402Credentials, external_id_from_url
from fewsats_l402.exceptions import (
    ChallengeParseError,
    CredentialsNotFoundError,
    InvalidInvoiceError,
    L402Error,
    NoWalletError,
    PaymentFailedError,
    StoreWriteError,
    UserDeclinedError,
    WalletNotFoundError,
)
from fewsats_l402.executor import ExecutorState, L402Executor, is_affirmative
from fewsats_l402.spending_log import PaymentRecord, SpendingLog
from fewsats_l402.store import Store, Wallet, WalletToken
from fewsats_l402.wallets import (
    AlbyWallet,
    TokenWallet,
    WalletBase,
    ZbdWallet,
    build_wallet,
    connect_wallet,
    disconnect_wallet,
    load_default_wallet,
)

__version__ = "0.1.0"

__all__ = [
    # Executor
    "L402Executor",
    "ExecutorState",
    "is_affirmative",
    # Protocol
    "L402Challenge",
    "parse_challenge",
    "find_l402_challenge",
    "decode_price",
    "L402Credentials",
    "external_id_from_url",
    # Storage
    "Store",
    "Wallet",
    "WalletToken",
    # Wallets
    "WalletBase",
    "TokenWallet",
    "AlbyWallet",
    "ZbdWallet",
    "build_wallet",
    "connect_wallet",
    "disconnect_wallet",
    "load_default_wallet",
    # Config
    "Config",
    "load_config",
    "configure_logging",
    # Spending
    "SpendingLog",
    "PaymentRecord",
    # Exceptions
    "L402Error",
    "ChallengeParseError",
    "InvalidInvoiceError",
    "CredentialsNotFoundError",
    "PaymentFailedError",
    "NoWalletError",
    "WalletNotFoundError",
    "UserDeclinedError",
    "StoreWriteError",
]

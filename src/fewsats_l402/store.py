"""SQLite-backed local storage for L402 credentials and wallet settings.

A ``Store`` is opened once per process and handed to whoever needs it;
pass ``":memory:"`` as the path for a throwaway database.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from fewsats_l402.credentials import L402Credentials
from fewsats_l402.exceptions import (
    CredentialsNotFoundError,
    NoWalletError,
    StoreWriteError,
    WalletNotFoundError,
)

logger = logging.getLogger(__name__)


@dataclass
class Wallet:
    """A connected wallet able to provide preimages for LN invoices."""

    id: int
    type: str
    created_at: datetime


@dataclass
class WalletToken:
    """Bearer token of an API driven wallet (Alby, ZBD)."""

    id: int
    wallet_id: int
    token: str


# Each entry upgrades the schema by one version (PRAGMA user_version).
_MIGRATIONS: list[str] = [
    """
    CREATE TABLE IF NOT EXISTS credentials (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        external_id TEXT NOT NULL,
        macaroon TEXT NOT NULL,
        preimage TEXT NOT NULL,
        invoice TEXT NOT NULL,
        created_at TEXT NOT NULL
    );
    CREATE INDEX IF NOT EXISTS credentials_external_id_idx
        ON credentials (external_id);

    CREATE TABLE IF NOT EXISTS wallets (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        wallet_type TEXT NOT NULL,
        created_at TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS default_wallet (
        wallet_id INTEGER NOT NULL REFERENCES wallets (id)
    );

    CREATE TABLE IF NOT EXISTS token_based_preimage_provider (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        wallet_id INTEGER NOT NULL UNIQUE REFERENCES wallets (id),
        token TEXT NOT NULL
    );
    """,
]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Store:
    """Local database holding L402 credentials and connected wallets."""

    def __init__(self, path: str | Path):
        self.path = str(path)
        if self.path != ":memory:":
            self.path = str(Path(self.path).expanduser())
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        self._db = sqlite3.connect(self.path)
        self._db.row_factory = sqlite3.Row
        self.run_migrations()

    @classmethod
    def open(cls, path: str | Path) -> Store:
        """Open the database at ``path``; the schema is brought up to date."""
        return cls(path)

    def close(self) -> None:
        self._db.close()

    def __enter__(self) -> Store:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    @property
    def schema_version(self) -> int:
        return self._db.execute("PRAGMA user_version").fetchone()[0]

    def run_migrations(self) -> None:
        """Apply pending schema migrations."""
        version = self.schema_version
        if version >= len(_MIGRATIONS):
            logger.debug("No migrations to run (schema version %d)", version)
            return

        for target, script in enumerate(_MIGRATIONS[version:], start=version + 1):
            with self._db:
                self._db.executescript(script)
                self._db.execute(f"PRAGMA user_version = {target}")
            logger.debug("Migrated %s to schema version %d", self.path, target)

    # ── Credentials ──────────────────────────────────────────────────────

    def get_credentials(self, external_id: str) -> L402Credentials:
        """Return the newest complete credentials stored for a resource.

        Raises:
            CredentialsNotFoundError: If no paid credentials are stored.
        """
        row = self._db.execute(
            """
            SELECT id, external_id, macaroon, preimage, invoice, created_at
            FROM credentials
            WHERE external_id = ? AND macaroon != '' AND preimage != ''
            ORDER BY created_at DESC, id DESC
            LIMIT 1
            """,
            (external_id,),
        ).fetchone()
        if row is None:
            raise CredentialsNotFoundError(external_id)

        return L402Credentials(
            id=row["id"],
            external_id=row["external_id"],
            macaroon=row["macaroon"],
            preimage=row["preimage"],
            invoice=row["invoice"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def put_credentials(self, creds: L402Credentials) -> L402Credentials:
        """Persist paid credentials, superseding older ones for the resource.

        Sets ``created_at`` and ``id`` on ``creds``.

        Raises:
            ValueError: If the credentials have no macaroon or preimage.
            StoreWriteError: If the database write fails.
        """
        if not creds.is_usable:
            raise ValueError(
                f"Refusing to store unpaid L402 credentials for {creds.external_id}"
            )

        created_at = _now()
        try:
            with self._db:
                cursor = self._db.execute(
                    """
                    INSERT INTO credentials (
                        external_id, macaroon, preimage, invoice, created_at
                    ) VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        creds.external_id,
                        creds.macaroon,
                        creds.preimage,
                        creds.invoice,
                        created_at.isoformat(timespec="microseconds"),
                    ),
                )
        except sqlite3.Error as e:
            raise StoreWriteError(str(e)) from e

        creds.id = cursor.lastrowid
        creds.created_at = created_at
        return creds

    # ── Wallets ──────────────────────────────────────────────────────────

    def insert_wallet(self, wallet_type: str) -> int:
        """Insert a new wallet and make it the default one."""
        with self._db:
            cursor = self._db.execute(
                "INSERT INTO wallets (wallet_type, created_at) VALUES (?, ?)",
                (wallet_type, _now().isoformat(timespec="microseconds")),
            )
        wallet_id = cursor.lastrowid
        self.set_default_wallet(wallet_id)
        return wallet_id

    def get_wallet(self, wallet_id: int) -> Wallet:
        row = self._db.execute(
            "SELECT id, wallet_type, created_at FROM wallets WHERE id = ?",
            (wallet_id,),
        ).fetchone()
        if row is None:
            raise WalletNotFoundError(wallet_id)
        return Wallet(
            id=row["id"],
            type=row["wallet_type"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def delete_wallet(self, wallet_id: int) -> None:
        """Delete a wallet, clearing the default if it pointed at it."""
        with self._db:
            self._db.execute(
                "DELETE FROM default_wallet WHERE wallet_id = ?", (wallet_id,)
            )
            self._db.execute("DELETE FROM wallets WHERE id = ?", (wallet_id,))

    def set_default_wallet(self, wallet_id: int) -> None:
        with self._db:
            self._db.execute("DELETE FROM default_wallet")
            self._db.execute(
                "INSERT INTO default_wallet (wallet_id) VALUES (?)", (wallet_id,)
            )

    def get_default_wallet(self) -> int:
        """Return the id of the default wallet.

        Raises:
            NoWalletError: If no wallet is marked as default.
        """
        row = self._db.execute("SELECT wallet_id FROM default_wallet").fetchone()
        if row is None:
            raise NoWalletError()
        return row["wallet_id"]

    def insert_wallet_token(self, wallet_id: int, token: str) -> None:
        with self._db:
            self._db.execute(
                "INSERT INTO token_based_preimage_provider (wallet_id, token) "
                "VALUES (?, ?)",
                (wallet_id, token),
            )

    def get_wallet_token(self, wallet_id: int) -> WalletToken:
        row = self._db.execute(
            "SELECT id, wallet_id, token FROM token_based_preimage_provider "
            "WHERE wallet_id = ?",
            (wallet_id,),
        ).fetchone()
        if row is None:
            raise WalletNotFoundError(wallet_id)
        return WalletToken(id=row["id"], wallet_id=row["wallet_id"], token=row["token"])

    def delete_wallet_token(self, wallet_id: int) -> None:
        with self._db:
            self._db.execute(
                "DELETE FROM token_based_preimage_provider WHERE wallet_id = ?",
                (wallet_id,),
            )

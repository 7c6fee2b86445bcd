"""L402 credentials: a paid macaroon and the preimage that unlocks it."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from urllib.parse import urlparse


@dataclass
class L402Credentials:
    """L402 credentials for a single purchased resource.

    An empty preimage means the challenge has not been paid yet.
    """

    external_id: str
    macaroon: str
    invoice: str
    preimage: str = ""
    created_at: datetime | None = None
    id: int | None = None

    @property
    def is_usable(self) -> bool:
        return bool(self.macaroon) and bool(self.preimage)

    @property
    def authorization_header(self) -> str:
        """Value of the Authorization header for these credentials.

        Raises:
            ValueError: If the credentials are not paid for.
        """
        if not self.is_usable:
            raise ValueError(
                f"L402 credentials for {self.external_id} are incomplete "
                "(empty macaroon/preimage)"
            )
        return f"L402 {self.macaroon}:{self.preimage}"


def external_id_from_url(url: str) -> str:
    """Return the resource identifier of a URL: its final path segment.

    https://api.example.com/v0/storage/download/abc123 -> "abc123"

    A URL without a path is identified by its host.
    """
    parsed = urlparse(url)
    parts = [p for p in parsed.path.split("/") if p]
    if not parts:
        return (parsed.hostname or "").lower()
    return parts[-1]

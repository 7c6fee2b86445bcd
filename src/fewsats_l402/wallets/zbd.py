"""ZBD REST API wallet adapter."""

from __future__ import annotations

from fewsats_l402.wallets import TokenWallet


class ZbdWallet(TokenWallet):
    """Pay invoices via the ZBD (Zebedee) API."""

    NAME = "zbd"
    BASE_URL = "https://api.zebedee.io/v0"

"""Alby REST API wallet adapter."""

from __future__ import annotations

from fewsats_l402.wallets import TokenWallet


class AlbyWallet(TokenWallet):
    """Pay invoices via the Alby wallet API.

    Requires an Alby access token with the ``payments:send`` scope.
    Alby returns the preimage synchronously in the payment response.
    """

    NAME = "alby"
    BASE_URL = "https://api.getalby.com"

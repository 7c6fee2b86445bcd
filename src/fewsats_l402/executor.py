"""L402 request executor: pays for a resource on HTTP 402 and retries.

A request goes through these states:

    SENDING -> AWAITING_CHALLENGE (402) -> AWAITING_USER_CONFIRMATION
            -> PAYING -> RETRYING -> DONE

Any error moves the executor to FAILED. Credentials bought for a resource
are stored locally and sent upfront on later requests, so a resource is
never paid for twice.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from typing import Any

import httpx

from fewsats_l402.bolt11 import decode_price
from fewsats_l402.challenge import find_l402_challenge
from fewsats_l402.credentials import L402Credentials, external_id_from_url
from fewsats_l402.exceptions import (
    CredentialsNotFoundError,
    L402Error,
    NoWalletError,
    PaymentFailedError,
    StoreWriteError,
    UserDeclinedError,
)
from fewsats_l402.spending_log import PaymentRecord, SpendingLog
from fewsats_l402.store import Store
from fewsats_l402.wallets import WalletBase, load_default_wallet

logger = logging.getLogger(__name__)

_AFFIRMATIVE_ANSWERS = ("y", "yes")


class ExecutorState(enum.Enum):
    IDLE = "idle"
    SENDING = "sending"
    AWAITING_CHALLENGE = "awaiting_challenge"
    AWAITING_USER_CONFIRMATION = "awaiting_user_confirmation"
    PAYING = "paying"
    RETRYING = "retrying"
    DONE = "done"
    FAILED = "failed"


def is_affirmative(answer: str | None) -> bool:
    """True for "y"/"yes" in any case; everything else is a refusal."""
    return (answer or "").strip().lower() in _AFFIRMATIVE_ANSWERS


class L402Executor:
    """Executes HTTP requests against L402 protected resources.

    Usage:
        store = load_config().open_store()
        executor = L402Executor(store)
        response = executor.execute_paid_request("GET", url)
        # On 402 the user is asked to confirm the price, the invoice is paid
        # with the default wallet and the request is retried once.
    """

    def __init__(
        self,
        store: Store,
        wallet: WalletBase | None = ...,  # type: ignore[assignment]
        confirm: Callable[[str], str] = input,
        spending_log: SpendingLog | None = None,
        **httpx_kwargs: Any,
    ):
        """
        Args:
            store: Local store holding credentials and wallet settings.
            wallet: Wallet adapter for paying invoices. Defaults to the
                    default wallet saved in ``store``. Pass None to run
                    without a wallet.
            confirm: Asks the user a question and returns the answer.
            spending_log: Payment history. Defaults to a new SpendingLog.
            **httpx_kwargs: Additional kwargs passed to httpx.Client.
        """
        self._store = store
        self._wallet = load_default_wallet(store) if wallet is ... else wallet
        self._confirm = confirm
        self._httpx_kwargs = httpx_kwargs
        self.spending_log = spending_log if spending_log is not None else SpendingLog()
        self.state = ExecutorState.IDLE
        self.last_store_error: StoreWriteError | None = None

    @property
    def wallet(self) -> WalletBase | None:
        return self._wallet

    def _transition(self, state: ExecutorState) -> None:
        logger.debug("L402 state %s -> %s", self.state.value, state.value)
        self.state = state

    def _apply_cached_credential(
        self, external_id: str, headers: httpx.Headers
    ) -> httpx.Headers:
        """If we have stored L402 credentials for the resource, add them to headers."""
        try:
            creds = self._store.get_credentials(external_id)
        except CredentialsNotFoundError:
            return headers

        if creds.is_usable:
            logger.debug("Using stored L402 credentials for %s", external_id)
            headers = httpx.Headers(headers)
            headers["Authorization"] = creds.authorization_header
        return headers

    def _confirm_payment(self, url: str, price_sats: int) -> None:
        prompt = (
            f"URL: {url}\n"
            f"Lightning invoice price: {price_sats} sats\n"
            "Do you want to continue? (y/N): "
        )
        try:
            answer = self._confirm(prompt)
        except EOFError:
            answer = ""

        if not is_affirmative(answer):
            raise UserDeclinedError(url, price_sats)

    def _pay(
        self,
        wallet: WalletBase,
        invoice: str,
        external_id: str,
        url: str,
        price_sats: int,
    ) -> tuple[str, PaymentRecord]:
        """Pay the invoice once; the payment is never retried."""
        logger.info("Paying %d sats for %s", price_sats, external_id)
        try:
            preimage = wallet.get_preimage(invoice)
        except Exception as e:
            self.spending_log.record_failure(external_id, url, price_sats)
            if isinstance(e, L402Error):
                raise
            raise PaymentFailedError(str(e), invoice) from e

        if not preimage:
            self.spending_log.record_failure(external_id, url, price_sats)
            raise PaymentFailedError("wallet returned an empty preimage", invoice)

        record = self.spending_log.record_payment(
            external_id, url, price_sats, preimage
        )
        return preimage, record

    def _save_credentials(self, creds: L402Credentials, record: PaymentRecord) -> None:
        """Store paid credentials; failures only cost a future re-challenge."""
        try:
            self._store.put_credentials(creds)
        except StoreWriteError as e:
            logger.warning(
                "Paid for %s but could not store its L402 credentials: %s",
                creds.external_id,
                e.reason,
            )
            self.spending_log.mark_uncached(record, e.reason)
            self.last_store_error = e

    def execute_paid_request(
        self,
        method: str,
        url: str,
        body: bytes | str | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Make an HTTP request, paying the L402 challenge if one is returned.

        Only one payment is attempted per call: the retried response is
        returned whatever its status.

        Raises:
            httpx.HTTPError: If a request cannot be sent.
            ChallengeParseError: If the 402 response has no valid challenge.
            NoWalletError: If payment is required but no wallet is connected.
            InvalidInvoiceError: If the challenge invoice cannot be decoded.
            UserDeclinedError: If the user does not confirm the payment.
            PaymentFailedError: If the wallet could not pay the invoice.
        """
        self.state = ExecutorState.IDLE
        self.last_store_error = None
        self._transition(ExecutorState.SENDING)

        try:
            external_id = external_id_from_url(url)
            headers = self._apply_cached_credential(
                external_id, httpx.Headers(headers or {})
            )

            with httpx.Client(**self._httpx_kwargs) as client:
                response = client.request(method, url, content=body, headers=headers)

                if response.status_code != 402:
                    self._transition(ExecutorState.DONE)
                    return response

                self._transition(ExecutorState.AWAITING_CHALLENGE)
                challenge = find_l402_challenge(response.headers)

                wallet = self._wallet
                if wallet is None:
                    raise NoWalletError()

                price_sats = decode_price(challenge.invoice)

                self._transition(ExecutorState.AWAITING_USER_CONFIRMATION)
                self._confirm_payment(url, price_sats)

                self._transition(ExecutorState.PAYING)
                preimage, record = self._pay(
                    wallet, challenge.invoice, external_id, url, price_sats
                )

                creds = L402Credentials(
                    external_id=external_id,
                    macaroon=challenge.macaroon,
                    preimage=preimage,
                    invoice=challenge.invoice,
                )
                self._save_credentials(creds, record)

                # Retry with L402 authorization
                headers = httpx.Headers(headers)
                headers["Authorization"] = creds.authorization_header
                self._transition(ExecutorState.RETRYING)
                retry_response = client.request(method, url, content=body, headers=headers)

        except Exception:
            self._transition(ExecutorState.FAILED)
            raise

        self._transition(ExecutorState.DONE)
        return retry_response

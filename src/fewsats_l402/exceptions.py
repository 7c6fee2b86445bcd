"""L402 exceptions."""


class L402Error(Exception):
    """Base exception for fewsats-l402."""


class ChallengeParseError(L402Error):
    """Failed to parse L402 challenge from WWW-Authenticate header."""

    def __init__(self, header: str | None, reason: str):
        self.header = header
        self.reason = reason
        super().__init__(f"Failed to parse L402 challenge: {reason}")


class InvalidInvoiceError(L402Error):
    """BOLT11 invoice could not be decoded."""

    def __init__(self, invoice: str, reason: str):
        self.invoice = invoice
        self.reason = reason
        super().__init__(f"Invalid BOLT11 invoice: {reason}")


class CredentialsNotFoundError(L402Error):
    """No usable L402 credentials stored for a resource."""

    def __init__(self, external_id: str):
        self.external_id = external_id
        super().__init__(f"No L402 credentials found for {external_id}")


class PaymentFailedError(L402Error):
    """Lightning payment failed."""

    def __init__(self, reason: str, bolt11: str | None = None):
        self.reason = reason
        self.bolt11 = bolt11
        super().__init__(f"Payment failed: {reason}")


class NoWalletError(L402Error):
    """No wallet configured."""

    def __init__(self) -> None:
        super().__init__(
            "No wallet configured. Connect one with: "
            "fewsats wallet connect --type {alby,zbd} --token <token>"
        )


class WalletNotFoundError(L402Error):
    """A wallet (or its token) is missing from local storage."""

    def __init__(self, wallet_id: int):
        self.wallet_id = wallet_id
        super().__init__(f"Wallet not found: {wallet_id}")


class UserDeclinedError(L402Error):
    """The user did not confirm the payment."""

    def __init__(self, url: str, price_sats: int):
        self.url = url
        self.price_sats = price_sats
        super().__init__(f"Payment of {price_sats} sats for {url} declined")


class StoreWriteError(L402Error):
    """Credentials could not be written to local storage."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Failed to store L402 credentials: {reason}")

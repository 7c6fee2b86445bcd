"""BOLT11 invoice price extraction.

BOLT11 format: ln{bc|tb|bcrt|...}{amount}{multiplier}1{data}

The network tag is everything between the "ln" prefix and the first
digit of the invoice. Decoding, checksum and amount handling are done by
the ``bolt11`` library; this module only turns the decoded amount into
whole satoshis.
"""

from __future__ import annotations

from bolt11 import decode as decode_bolt11

from fewsats_l402.exceptions import InvalidInvoiceError

_MSAT_PER_SAT = 1000


def network_tag(invoice: str) -> str:
    """Return the network/currency tag of a BOLT11 invoice (e.g. "bc").

    Raises:
        InvalidInvoiceError: If the invoice is too short, does not start
            with "ln", or has no alphabetic tag before its first digit.
    """
    if len(invoice) < 2:
        raise InvalidInvoiceError(invoice, "bolt11 too short")

    first_digit = next((i for i, c in enumerate(invoice) if c.isdigit()), -1)
    if first_digit < 2:
        raise InvalidInvoiceError(invoice, "no network tag before amount")

    if invoice[:2].lower() != "ln":
        raise InvalidInvoiceError(invoice, "missing ln prefix")

    tag = invoice[2:first_digit]
    if not tag.isalpha():
        raise InvalidInvoiceError(invoice, "no network tag before amount")
    return tag.lower()


def decode_price(invoice: str) -> int:
    """Decode the price of a BOLT11 invoice in whole satoshis.

    Invoices without an amount ("any amount" invoices) are priced at 0.
    Sub-satoshi remainders are truncated.

    Args:
        invoice: A BOLT11-encoded Lightning invoice (e.g., "lnbc10u1p...").

    Returns:
        Price in satoshis.

    Raises:
        InvalidInvoiceError: If the invoice cannot be decoded.
    """
    tag = network_tag(invoice)

    try:
        decoded = decode_bolt11(invoice.strip())
    except Exception as e:
        raise InvalidInvoiceError(invoice, f"decoding failed: {e}") from e

    if decoded.currency and decoded.currency.lower() != tag:
        raise InvalidInvoiceError(
            invoice, f"network mismatch: {decoded.currency} != {tag}"
        )

    amount_msat = decoded.amount_msat or 0
    return int(amount_msat) // _MSAT_PER_SAT

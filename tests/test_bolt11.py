"""Tests for BOLT11 invoice price decoding."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from fewsats_l402 import bolt11
from fewsats_l402.bolt11 import decode_price, network_tag
from fewsats_l402.exceptions import InvalidInvoiceError


@pytest.fixture
def decoded(monkeypatch):
    """Replace the bolt11 library decoder with one returning a fixed result."""
    calls: list[str] = []
    result = SimpleNamespace(currency="bc", amount_msat=None)

    def fake_decode(invoice: str):
        calls.append(invoice)
        return result

    monkeypatch.setattr(bolt11, "decode_bolt11", fake_decode)
    result.calls = calls
    return result


class TestNetworkTag:
    def test_mainnet(self):
        assert network_tag("lnbc500u1ptest") == "bc"

    def test_testnet(self):
        assert network_tag("lntb10u1ptest") == "tb"

    def test_regtest(self):
        assert network_tag("lnbcrt1ptest") == "bcrt"

    def test_uppercase_invoice(self):
        assert network_tag("LNBC10U1PTEST") == "bc"

    def test_too_short(self):
        with pytest.raises(InvalidInvoiceError, match="too short"):
            network_tag("l")

    def test_no_digit(self):
        with pytest.raises(InvalidInvoiceError, match="no network tag"):
            network_tag("lnbc")

    def test_missing_ln_prefix(self):
        with pytest.raises(InvalidInvoiceError, match="missing ln prefix"):
            network_tag("not-a-bolt11")

    def test_non_alphabetic_tag(self):
        with pytest.raises(InvalidInvoiceError, match="no network tag"):
            network_tag("lnb-c10u1ptest")

    def test_empty_tag(self):
        with pytest.raises(InvalidInvoiceError, match="no network tag"):
            network_tag("ln10u1ptest")

    def test_digit_inside_prefix(self):
        with pytest.raises(InvalidInvoiceError, match="no network tag"):
            network_tag("l1bc")


class TestDecodePrice:
    def test_no_amount_is_free(self, decoded):
        decoded.amount_msat = None
        assert decode_price("lnbc1ptest") == 0

    def test_amount_in_msat_converted_to_sats(self, decoded):
        decoded.amount_msat = 50_000_000
        assert decode_price("lnbc500u1ptest") == 50_000

    def test_sub_sat_amount_truncated(self, decoded):
        decoded.amount_msat = 1_999
        assert decode_price("lnbc19990p1ptest") == 1

    def test_decoder_receives_invoice(self, decoded):
        decoded.amount_msat = 1_000
        decode_price("lnbc10n1ptest")
        assert decoded.calls == ["lnbc10n1ptest"]

    def test_testnet_invoice(self, decoded):
        decoded.currency = "tb"
        decoded.amount_msat = 1_000_000
        assert decode_price("lntb10u1ptest") == 1_000

    def test_network_mismatch_raises(self, decoded):
        decoded.currency = "tb"
        with pytest.raises(InvalidInvoiceError, match="network mismatch"):
            decode_price("lnbc10u1ptest")

    def test_decode_failure_wrapped(self, monkeypatch):
        def broken_decode(invoice: str):
            raise ValueError("bad checksum")

        monkeypatch.setattr(bolt11, "decode_bolt11", broken_decode)

        with pytest.raises(InvalidInvoiceError, match="bad checksum") as exc_info:
            decode_price("lnbc10u1pbroken")
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_garbage_rejected_by_real_decoder(self):
        with pytest.raises(InvalidInvoiceError):
            decode_price("lnbc10u1pnotarealinvoice")

    def test_too_short_never_decoded(self, decoded):
        with pytest.raises(InvalidInvoiceError):
            decode_price("")
        assert decoded.calls == []

    def test_not_an_invoice_never_decoded(self, decoded):
        with pytest.raises(InvalidInvoiceError, match="missing ln prefix"):
            decode_price("not-a-bolt11")
        assert decoded.calls == []


# Test vectors from the BOLT #11 specification, decoded by the real library.
NO_AMOUNT_INVOICE = (
    "lnbc1pvjluezsp5zyg3zyg3zyg3zyg3zyg3zyg3zyg3zyg3zyg3zyg3zyg3zyg3zygspp5qq"
    "qsyqcyq5rqwzqfqqqsyqcyq5rqwzqfqqqsyqcyq5rqwzqfqypqdpl2pkx2ctnv5sxxmmwwd5"
    "kgetjypeh2ursdae8g6twvus8g6rfwvs8qun0dfjkxaq9qrsgq357wnc5r2ueh7ck6q93dj3"
    "2dlqnls087fxdwk8qakdyafkq3yap9us6v52vjjsrvywa6rt52cm9r9zqt8r2t7mlcwspyet"
    "p5h2tztugp9lfyql"
)
COFFEE_INVOICE = (
    "lnbc2500u1pvjluezsp5zyg3zyg3zyg3zyg3zyg3zyg3zyg3zyg3zyg3zyg3zyg3zyg3zygs"
    "pp5qqqsyqcyq5rqwzqfqqqsyqcyq5rqwzqfqqqsyqcyq5rqwzqfqypqdq5xysxxatsyp3k7e"
    "nxv4jsxqzpu9qrsgquk0rl77nj30yxdy8j9vdx85fkpmdla2087ne0xh8nhedh8w27kyke0l"
    "p53ut353s06fv3qfegext0eh0ymjpf39tuven09sam30g4vgpfna3rh"
)


class TestDecodePriceVectors:
    def test_no_amount_is_free(self):
        assert decode_price(NO_AMOUNT_INVOICE) == 0

    def test_2500_micro_btc(self):
        assert decode_price(COFFEE_INVOICE) == 250_000

    def test_network_tag_matches_decoder(self):
        assert network_tag(COFFEE_INVOICE) == "bc"

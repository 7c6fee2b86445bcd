"""Parse L402 challenges from HTTP 402 responses."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass

from fewsats_l402.exceptions import ChallengeParseError


@dataclass(frozen=True)
class L402Challenge:
    """Parsed L402 challenge from a WWW-Authenticate header."""

    macaroon: str
    invoice: str

    @property
    def token_type(self) -> str:
        return "L402"


_MACAROON_KEY = "macaroon="
_INVOICE_KEY = "invoice="

# Schemes a challenge may be prefixed with. LSAT is the pre-L402 name.
_SCHEMES = ("L402", "LSAT")

_QUOTED_SPLIT_RE = re.compile(r"[,\s]+")


def _tokenize(header: str) -> list[str]:
    if '"' in header or "," in header:
        tokens = _QUOTED_SPLIT_RE.split(header)
    else:
        tokens = header.split()
    return [t for t in tokens if t and t.upper() not in _SCHEMES]


def parse_challenge(header: str | None) -> L402Challenge:
    """Parse a WWW-Authenticate header containing an L402 challenge.

    Supports formats:
        L402 macaroon=<mac> invoice=<bolt11>
        L402 macaroon="<mac>", invoice="<bolt11>"
        macaroon="<mac>", invoice="<bolt11>"
        LSAT macaroon="<mac>", invoice="<bolt11>"  (legacy)

    Keys are matched case-sensitively and in any order; unknown tokens
    are ignored.

    Args:
        header: The WWW-Authenticate header value.

    Returns:
        Parsed L402Challenge with macaroon and invoice.

    Raises:
        ChallengeParseError: If the header is empty or a field is missing.
    """
    if not header or not header.strip():
        raise ChallengeParseError(header, "empty header")

    macaroon = ""
    invoice = ""
    for token in _tokenize(header.strip()):
        if token.startswith(_MACAROON_KEY) and not macaroon:
            macaroon = token[len(_MACAROON_KEY):].strip('"')
        elif token.startswith(_INVOICE_KEY) and not invoice:
            invoice = token[len(_INVOICE_KEY):].strip('"')

    if not macaroon:
        raise ChallengeParseError(header, "missing macaroon")
    if not invoice:
        raise ChallengeParseError(header, "missing invoice")

    return L402Challenge(macaroon=macaroon, invoice=invoice)


def find_l402_challenge(headers: Mapping[str, str]) -> L402Challenge:
    """Parse the L402 challenge carried in a set of response headers.

    Header names are matched case-insensitively.

    Raises:
        ChallengeParseError: If there is no WWW-Authenticate header or it
            does not hold a complete challenge.
    """
    lower_headers = {k.lower(): v for k, v in headers.items()}
    return parse_challenge(lower_headers.get("www-authenticate", ""))

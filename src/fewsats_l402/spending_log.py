"""History of invoices paid by an executor, keyed by resource."""

from __future__ import annotations

import json
import time
from collections import Counter
from collections.abc import Iterator
from dataclasses import asdict, dataclass, field


@dataclass
class PaymentRecord:
    """One attempt to pay for an L402 protected resource."""

    external_id: str
    url: str
    amount_sats: int
    preimage: str
    timestamp: float = field(default_factory=time.time)
    success: bool = True
    store_error: str | None = None

    @property
    def cached(self) -> bool:
        """False when the invoice was paid but its credentials were not stored."""
        return self.success and self.store_error is None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["cached"] = self.cached
        return data


class SpendingLog:
    """Payments made in this process.

    Failed attempts are kept too, with ``success=False`` and no preimage,
    but never count towards the totals.
    """

    def __init__(self) -> None:
        self._records: list[PaymentRecord] = []

    def record_payment(
        self, external_id: str, url: str, amount_sats: int, preimage: str
    ) -> PaymentRecord:
        entry = PaymentRecord(external_id, url, amount_sats, preimage)
        self._records.append(entry)
        return entry

    def record_failure(
        self, external_id: str, url: str, amount_sats: int
    ) -> PaymentRecord:
        entry = PaymentRecord(external_id, url, amount_sats, "", success=False)
        self._records.append(entry)
        return entry

    def mark_uncached(self, record: PaymentRecord, reason: str) -> None:
        """Flag a paid record whose credentials could not be stored.

        Such a resource will be challenged, and paid for, again on its next
        request.
        """
        if not record.success:
            raise ValueError("only successful payments can be marked uncached")
        record.store_error = reason

    @property
    def records(self) -> list[PaymentRecord]:
        return list(self._records)

    def successful(self) -> Iterator[PaymentRecord]:
        return (r for r in self._records if r.success)

    def total_spent(self) -> int:
        return sum(r.amount_sats for r in self.successful())

    def spent_on(self, external_id: str) -> int:
        return sum(
            r.amount_sats for r in self.successful() if r.external_id == external_id
        )

    def by_resource(self) -> dict[str, int]:
        """Sats paid per external id."""
        totals: Counter[str] = Counter()
        for r in self.successful():
            totals[r.external_id] += r.amount_sats
        return dict(totals)

    def uncached(self) -> list[PaymentRecord]:
        return [r for r in self.successful() if not r.cached]

    def to_json(self) -> str:
        return json.dumps([r.to_dict() for r in self._records], indent=2)

    def __len__(self) -> int:
        return len(self._records)

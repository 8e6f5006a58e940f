"""Invoice documents with a derived total."""

from __future__ import annotations

import datetime
from collections.abc import Mapping, Sequence
from typing import Any

from ..adapters.base import OrderBy, where_equal
from ..core.models import Invoice, InvoiceStatus, LineItem, compute_total, utcnow
from ..errors import ValidationError
from .base import EntityService, build, require

# status -> timestamp field stamped when an invoice enters it
_STAMPS = {InvoiceStatus.SENT: "sent_at", InvoiceStatus.PAID: "paid_at"}


class InvoiceService(EntityService[Invoice]):
    collection = "invoices"
    model = Invoice
    immutable = frozenset(
        {"id", "created_at", "project_id", "collective_id", "line_items", "total"}
    )

    async def create(
        self,
        project_id: str,
        collective_id: str,
        line_items: Sequence[LineItem],
        due_date: datetime.datetime,
    ) -> Invoice:
        """Persist a draft invoice and return it as stored.

        The total is computed here, before any network I/O, as the sum of the
        line item amounts with negative amounts counted as zero.
        """
        if not line_items:
            raise ValidationError("Invoice must have at least one line item.")
        invoice = build(
            Invoice,
            project_id=require(project_id, "Project id"),
            collective_id=require(collective_id, "Collective id"),
            line_items=list(line_items),
            total=compute_total(line_items),
            status=InvoiceStatus.DRAFT,
            due_date=due_date,
        )
        invoice_id = await self._create(self.collection, invoice)
        # read back for the server timestamp
        return await self.fetch_one(invoice_id)

    async def fetch_one(self, invoice_id: str) -> Invoice:
        return await self._fetch_one(self.collection, invoice_id)

    async def fetch_for_collective(self, collective_id: str) -> list[Invoice]:
        """Newest first."""
        return await self._fetch_many(
            self.collection,
            [where_equal(Invoice.field_alias("collective_id"), collective_id)],
            OrderBy(Invoice.field_alias("created_at"), descending=True),
            context=f"collective {collective_id}",
        )

    async def update(self, invoice_id: str, fields: Mapping[str, Any]) -> dict[str, Any]:
        return await self._update(self.collection, invoice_id, fields)

    async def update_status(self, invoice_id: str, status: InvoiceStatus) -> dict[str, Any]:
        """Set ``status``; any transition is allowed.

        Entering ``sent`` or ``paid`` also stamps ``sent_at``/``paid_at``.
        Returns the applied changes keyed by Python field name.
        """
        changes: dict[str, Any] = {"status": status}
        stamp = _STAMPS.get(status)
        if stamp:
            changes[stamp] = utcnow()
        return await self.update(invoice_id, changes)

"""Invoices of one collective."""

from __future__ import annotations

import datetime
from collections.abc import Sequence

from ..core.models import Invoice, InvoiceStatus, LineItem
from ..services.invoices import InvoiceService
from .base import ListState


class InvoiceListState(ListState[Invoice]):
    noun = "invoices"

    def __init__(self, service: InvoiceService, collective_id: str) -> None:
        super().__init__()
        self.service = service
        self.collective_id = collective_id

    async def fetch(self) -> list[Invoice]:
        return await self.service.fetch_for_collective(self.collective_id)

    async def create(
        self, project_id: str, line_items: Sequence[LineItem], due_date: datetime.datetime
    ) -> bool:
        return await self.create_then_refresh(
            "create invoice",
            lambda: self.service.create(project_id, self.collective_id, line_items, due_date),
        )

    async def update_status(self, invoice_id: str, status: InvoiceStatus) -> bool:
        return await self.confirmed_update(
            "update invoice status",
            invoice_id,
            lambda: self.service.update_status(invoice_id, status),
        )

"""
src/tools/sales.py - order & invoice collections

This module provides:
- OrderCollection: sales orders; deleting one is refused while any invoice
  still points at it
- InvoiceCollection: invoices with a one-way Unpaid -> Paid transition

Key ideas explained:

1) Invoice state
   A new invoice is always "pending" and unpaid, whatever the caller sends.
   `isPaid` can only become true through `mark_paid`, never through a generic
   update. Once paid, the invoice is frozen: updates and deletes raise
   ConflictError, and so does a second `mark_paid`.

2) Referential integrity
   Invoices reference their order by `orderId`. Before an order is deleted we
   ask the backend for invoices that mention either the order's record id or
   its business `orderId`.

3) Freshness
   Guards read the persisted record, not the in-memory copy, so a stale list
   cannot be used to edit an invoice someone else has already settled.
"""


from __future__ import annotations
from typing import Any, Dict, List

from loguru import logger

from config import Modal, Permission
from context.models import utc_now_iso
from context.selectors import order_keys
from exceptions import ConflictError, ValidationError
from tools.records import Record, RecordCollection


PAID_FIELDS = ("isPaid", "paidAt", "paidBy")


class OrderCollection(RecordCollection):

    collection = "orders"
    record_type = "ORDER"
    category = "sale"
    required_fields = ("customerName",)
    search_fields = ("orderId", "customerName", "productName")
    create_modal = Modal.ADD_SALES
    edit_modal = Modal.EDIT_ORDER
    insert_at_front = True

    def linked_invoices(self, order: Record) -> List[Record]:
        """Invoices (as persisted) that reference `order`."""

        keys = order_keys(order)

        return [inv for inv in self.ws.backend.list("invoices") if str(inv.get("orderId")) in keys]

    def check_deletable(self, current: Record) -> None:

        if self.linked_invoices(current):
            logger.warning("Order {} still has invoices; refusing delete", current.get("id"))
            raise ConflictError("Cannot delete order with associated invoices")


class InvoiceCollection(RecordCollection):

    collection = "invoices"
    record_type = "INVOICE"
    category = "invoice"
    required_fields = ("customerName",)
    int_fields = ()
    search_fields = ("invoiceId", "customerName")
    create_modal = Modal.ADD_INVOICE
    edit_modal = Modal.EDIT_INVOICE

    def normalize(self, data: Record) -> Record:

        rec = super().normalize(data)
        rec["isPaid"] = bool(rec.get("isPaid"))
        rec["status"] = rec.get("status") or "pending"

        return rec

    def prepare_create(self, data: Record) -> Record:

        rec = super().prepare_create(data)
        rec.update(status="pending", isPaid=False, paidAt=None, paidBy=None)

        return rec

    def prepare_update(self, current: Record, changes: Record) -> Record:

        if str(changes.get("status") or "").strip().lower() == "paid" or changes.get("isPaid"):
            raise ValidationError("Use mark_paid to settle an invoice")

        changes = {k: v for k, v in changes.items() if k not in PAID_FIELDS}

        return super().prepare_update(current, changes)

    def check_editable(self, current: Record) -> None:

        if current.get("isPaid"):
            raise ConflictError("Cannot update a paid invoice")

    def check_deletable(self, current: Record) -> None:

        if current.get("isPaid"):
            raise ConflictError("Cannot delete a paid invoice")

    def mark_paid(self, invoice_id: Any) -> Record:
        """
        Settle an invoice: Active -> Paid. Irreversible.

        Sets isPaid, status='paid', paidAt and paidBy (the session user's name,
        or "system"). A second call raises ConflictError and writes no audit
        entry.
        """

        with self._action(f"mark invoice {invoice_id} paid"):
            self.ws.permissions.require(Permission.WRITE)
            current = self._stored(invoice_id)

            if current.get("isPaid"):
                raise ConflictError("Invoice is already marked as paid")

            user = self.ws.session.current_user
            now = utc_now_iso()
            patch = {
                "isPaid": True,
                "status": "paid",
                "paidAt": now,
                "paidBy": user.name if user else "system",
                "updatedAt": now,
            }
            updated = self.normalize(self.ws.backend.update(self.collection, invoice_id, patch))
            self._replace(updated)
            logger.info("Invoice {} marked paid", invoice_id)
            self.ws.log(
                "MARK_INVOICE_PAID",
                f"Marked invoice {invoice_id} as paid",
                category=self.category,
                target_id=updated.get("id", invoice_id),
            )

        return updated

    def unpaid(self) -> List[Record]:

        return [inv for inv in self.records if not inv.get("isPaid")]

    def outstanding_total(self) -> float:

        return round(sum(inv.get("amount", 0.0) for inv in self.unpaid()), 2)

    def for_order(self, order: Record) -> List[Record]:

        keys = order_keys(order)

        return [inv for inv in self.records if str(inv.get("orderId")) in keys]

    def summary(self) -> Dict[str, Any]:

        return {
            "count": len(self.records),
            "unpaid": len(self.unpaid()),
            "outstanding_total": self.outstanding_total(),
        }

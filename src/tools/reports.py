"""
src/tools/reports.py — sales report collection

Provides:
- ReportCollection: one report per order, validated edits, revenue figures

Design notes:
* Viewing reports needs the view_reports permission; editing still needs write.
* A second report for the same order is a conflict, checked against both the
  loaded list and the backend.
* Edits are validated as a whole: every required field must be present and
  truthy (a zero amount or quantity counts as missing), and the report date
  must parse. dueDate/orderDate are checked when supplied.
"""


from __future__ import annotations
from typing import List

from config import Modal, Permission, SortDirection
from context.models import utc_now_iso
from exceptions import ConflictError, ValidationError
from tools.records import Record, RecordCollection, to_iso_date


UPDATE_REQUIRED = ("customerName", "productName", "quantity", "amount", "salesRep", "status", "paymentStatus")
DATE_FIELDS = ("date", "dueDate", "orderDate")


class ReportCollection(RecordCollection):

    collection = "reports"
    record_type = "REPORT"
    category = "report"
    required_fields = ("orderId",)
    search_fields = ("id", "orderId", "customerName")
    date_field = "date"
    default_sort = ("date", SortDirection.DESC)
    read_permission = Permission.VIEW_REPORTS
    create_modal = Modal.ADD_REPORT

    def normalize(self, data: Record) -> Record:

        rec = super().normalize(data)
        if not rec.get("date"):
            rec["date"] = rec.get("createdAt") or utc_now_iso()

        return rec

    def describe(self, rec: Record) -> str:

        return str(rec.get("customerName") or "Unknown Customer")

    def prepare_create(self, data: Record) -> Record:

        rec = super().prepare_create(data)
        rec["date"] = to_iso_date(rec["date"])
        rec["status"] = rec.get("status") or "Pending"

        return rec

    def before_create(self, rec: Record) -> None:

        order_id = rec["orderId"]

        if self.by_order(order_id) or self.ws.backend.find(self.collection, "orderId", order_id):
            raise ConflictError("A report for this order already exists")

    def prepare_update(self, current: Record, changes: Record) -> Record:

        trimmed = {k: v.strip() if isinstance(v, str) else v for k, v in changes.items()}
        payload = super().prepare_update(current, trimmed)

        for name in UPDATE_REQUIRED:
            if not payload.get(name):
                raise ValidationError(f"{name} is required")

        payload["date"] = to_iso_date(payload.get("date"))
        for name in DATE_FIELDS[1:]:
            if payload.get(name):
                payload[name] = to_iso_date(payload[name])

        return payload

    def by_order(self, order_id) -> List[Record]:

        return [r for r in self.records if str(r.get("orderId")) == str(order_id)]

    def total_revenue(self) -> float:

        return round(sum(r.get("amount", 0.0) for r in self.records), 2)

    def average_order_value(self) -> float:

        if not self.records:
            return 0.0

        return round(self.total_revenue() / len(self.records), 2)

"""
src/tools/products.py — product catalogue collection

Provides:
- ProductCollection: price/quantity coercion, stock status, category helpers
- export_to_excel(directory): the filtered + sorted view as an .xlsx sheet

Stock status:
    "In Stock" / "Out of Stock" are derived from quantity and kept in step with
    it on every save. Any other status (e.g. "Discontinued") is left alone.
"""


from __future__ import annotations
from datetime import date
from pathlib import Path
from typing import List, Union

from config import Modal, Permission, SortDirection
from tools.exports import export_xlsx
from tools.records import Record, RecordCollection


IN_STOCK = "In Stock"
OUT_OF_STOCK = "Out of Stock"

EXPORT_COLUMNS = {
    "Product Name": "name",
    "SKU": "sku",
    "Category": "category",
    "Stock Quantity": "quantity",
    "Price": "price",
    "Status": "status",
}


class ProductCollection(RecordCollection):

    collection = "products"
    record_type = "PRODUCT"
    category = "product"
    required_fields = ("name",)
    float_fields = ("price",)
    search_fields = ("name", "sku", "category")
    exact_filter_fields = ("category", "status")
    default_sort = ("name", SortDirection.ASC)
    create_modal = Modal.ADD_PRODUCT
    edit_modal = Modal.EDIT_PRODUCT

    def normalize(self, data: Record) -> Record:

        rec = super().normalize(data)

        if rec.get("status") in (None, "", IN_STOCK, OUT_OF_STOCK):
            rec["status"] = IN_STOCK if rec["quantity"] > 0 else OUT_OF_STOCK

        return rec

    def describe(self, rec: Record) -> str:

        return str(rec.get("name") or rec.get("sku") or rec.get("id"))

    def categories(self) -> List[str]:
        """Distinct categories in first-seen order."""

        return list(dict.fromkeys(p["category"] for p in self.records if p.get("category")))

    def total_products(self) -> int:

        return len(self.records)

    def in_stock_count(self) -> int:

        return sum(1 for p in self.records if p.get("quantity", 0) > 0)

    def out_of_stock_count(self) -> int:

        return sum(1 for p in self.records if p.get("quantity", 0) == 0)

    def export_to_excel(self, directory: Union[str, Path] = ".") -> str:
        """
        Write the current filtered view to products-YYYY-MM-DD.xlsx.

        Requires the export_data permission.

        Returns: path
        """

        with self._action("export products"):
            self.ws.permissions.require(Permission.EXPORT_DATA)
            rows = [{title: p.get(key) for title, key in EXPORT_COLUMNS.items()} for p in self.filtered()]
            path = Path(directory) / f"products-{date.today().isoformat()}.xlsx"
            export_xlsx(rows, str(path), sheet_name="Products", headers=list(EXPORT_COLUMNS))
            self.ws.log("EXPORT_PRODUCTS", f"Exported {len(rows)} products", category=self.category)

        return str(path)

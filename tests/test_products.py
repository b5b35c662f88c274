"""
Product collection tests.

Verifies:
- price/quantity coercion and derived stock status
- category filter, search, default sort and paging
- Excel export and its permission gate
"""

import pytest
from openpyxl import load_workbook

from exceptions import ValidationError


@pytest.fixture
def catalogue(admin_ws):
    for name, category, qty, price in [
        ("Wireless Headphones", "Electronics", 50, "99.99"),
        ("Smart Watch", "Electronics", 0, "199.99"),
        ("Desk Lamp", "Office", "3", 34.5),
    ]:
        admin_ws.products.create({"name": name, "category": category, "quantity": qty, "price": price})
    return admin_ws.products


class TestProducts:

    def test_create_coerces_and_derives_status(self, catalogue):
        lamp = next(p for p in catalogue.records if p["name"] == "Desk Lamp")
        assert lamp["quantity"] == 3
        assert lamp["price"] == 34.5
        assert lamp["status"] == "In Stock"

        watch = next(p for p in catalogue.records if p["name"] == "Smart Watch")
        assert watch["price"] == 199.99
        assert watch["status"] == "Out of Stock"

    def test_status_follows_quantity_on_update(self, catalogue):
        lamp = next(p for p in catalogue.records if p["name"] == "Desk Lamp")
        assert catalogue.update(lamp["id"], {"quantity": 0})["status"] == "Out of Stock"
        assert catalogue.update(lamp["id"], {"quantity": "2"})["status"] == "In Stock"

    def test_custom_status_is_kept(self, catalogue):
        lamp = next(p for p in catalogue.records if p["name"] == "Desk Lamp")
        assert catalogue.update(lamp["id"], {"status": "Discontinued"})["status"] == "Discontinued"

    def test_name_required(self, admin_ws):
        with pytest.raises(ValidationError):
            admin_ws.products.create({"price": 1})

    def test_counts_and_categories(self, catalogue):
        assert catalogue.total_products() == 3
        assert catalogue.in_stock_count() == 2
        assert catalogue.out_of_stock_count() == 1
        assert catalogue.categories() == ["Electronics", "Office"]

    def test_default_sort_is_name(self, catalogue):
        assert [p["name"] for p in catalogue.page().rows] == ["Desk Lamp", "Smart Watch", "Wireless Headphones"]

    def test_category_filter_is_exact(self, catalogue):
        catalogue.set_filter("category", "electronics")
        assert {p["name"] for p in catalogue.filtered()} == {"Smart Watch", "Wireless Headphones"}
        catalogue.set_filter("category", "Electro")
        assert catalogue.filtered() == []

    def test_search_resets_page(self, catalogue):
        catalogue.view.page_size = 1
        assert catalogue.change_page(3)
        catalogue.set_search_query("watch")
        assert catalogue.view.page == 1
        assert [p["name"] for p in catalogue.page().rows] == ["Smart Watch"]

    def test_sort_toggle(self, catalogue):
        catalogue.handle_sort("price")
        assert [p["price"] for p in catalogue.filtered()] == [34.5, 99.99, 199.99]
        catalogue.handle_sort("price")
        assert [p["price"] for p in catalogue.filtered()] == [199.99, 99.99, 34.5]

    def test_out_of_range_page_is_ignored(self, catalogue):
        catalogue.view.page_size = 2
        assert catalogue.total_pages == 2
        assert not catalogue.change_page(3)
        assert not catalogue.previous_page()
        assert catalogue.next_page()
        assert catalogue.view.page == 2
        assert len(catalogue.page().rows) == 1

    def test_reset_filters(self, catalogue):
        catalogue.set_search_query("lamp")
        catalogue.set_filter("status", "In Stock")
        catalogue.reset_filters()
        assert len(catalogue.filtered()) == 3


class TestProductExport:

    def test_export_writes_filtered_view(self, catalogue, tmp_path):
        catalogue.set_filter("category", "Electronics")
        path = catalogue.export_to_excel(tmp_path)

        sheet = load_workbook(path).active
        rows = list(sheet.iter_rows(values_only=True))
        assert rows[0] == ("Product Name", "SKU", "Category", "Stock Quantity", "Price", "Status")
        assert [r[0] for r in rows[1:]] == ["Smart Watch", "Wireless Headphones"]
        assert catalogue.ws.audit.entries()[0].action == "EXPORT_PRODUCTS"

    def test_export_needs_permission(self, admin_ws, make_workspace, tmp_path):
        admin_ws.products.create({"name": "Lamp"})
        user_ws = make_workspace("sales@center.com")
        user_ws.products.fetch()
        with pytest.raises(PermissionError):
            user_ws.products.export_to_excel(tmp_path)
        assert list(tmp_path.iterdir()) == []

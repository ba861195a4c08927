"""
Tests for purchase orders: validation order, stock/price application and
all-or-nothing posting.
"""

import pytest

from storefront.models import InventoryImportRecord, ProductVariant, PurchaseOrder
from storefront.services import purchase_order_service
from storefront.services.catalog_service import VariantNotFoundError
from storefront.services.purchase_order_service import (
    InvalidPriceError,
    InvalidQuantityError,
    MarginInvalidError,
    PurchaseOrderNotFoundError,
)
from storefront.services.supplier_service import SupplierNotFoundError
from storefront.validation import MAX_PRICE, ValidationError


def _item(variant_id, quantity=5, cost_price=40, selling_price=80):
    return {
        "variant_id": variant_id,
        "quantity": quantity,
        "cost_price": cost_price,
        "selling_price": selling_price,
    }


class TestCreatePurchaseOrder:

    def test_restocks_and_overwrites_prices(self, db_session, supplier, priced_variant):
        result = purchase_order_service.create_purchase_order(
            supplier_id=supplier.id,
            note="March restock",
            items=[_item(priced_variant.id)],
        )

        refreshed = db_session.get(ProductVariant, priced_variant.id)
        assert refreshed.stock == 15
        assert refreshed.cost_price == 40
        assert refreshed.price == 80

        records = db_session.query(InventoryImportRecord).all()
        assert len(records) == 1
        assert records[0].quantity == 5
        assert records[0].supplier_id == supplier.id
        assert records[0].purchase_order_id == result["purchase_order_id"]
        assert records[0].source_file is None
        assert records[0].sku == "TEE-BLU-L"

        assert result["supplier_id"] == supplier.id
        assert result["note"] == "March restock"
        assert result["total_items"] == 1
        assert result["total_quantity"] == 5
        assert result["items"][0]["sku"] == "TEE-BLU-L"
        assert result["created_at"].endswith("Z")

    def test_note_defaults_to_empty_string(self, db_session, supplier, priced_variant):
        result = purchase_order_service.create_purchase_order(
            supplier_id=supplier.id,
            items=[_item(priced_variant.id)],
        )
        assert result["note"] == ""

    def test_decorated_prices_are_parsed(self, db_session, supplier, variant):
        purchase_order_service.create_purchase_order(
            supplier_id=supplier.id,
            items=[_item(variant.id, quantity="3", cost_price="45,000 VND", selling_price="$120,000")],
        )
        refreshed = db_session.get(ProductVariant, variant.id)
        assert refreshed.stock == 13
        assert refreshed.cost_price == 45000
        assert refreshed.price == 120000

    def test_multiple_items_for_same_variant_accumulate(self, db_session, supplier, variant):
        purchase_order_service.create_purchase_order(
            supplier_id=supplier.id,
            items=[
                _item(variant.id, quantity=2, cost_price=10, selling_price=20),
                _item(variant.id, quantity=3, cost_price=11, selling_price=21),
            ],
        )
        refreshed = db_session.get(ProductVariant, variant.id)
        assert refreshed.stock == 15
        assert refreshed.cost_price == 11
        assert refreshed.price == 21
        assert db_session.query(InventoryImportRecord).count() == 2

    def test_margin_violation_leaves_batch_untouched(self, db_session, supplier, variant, priced_variant):
        with pytest.raises(MarginInvalidError) as exc:
            purchase_order_service.create_purchase_order(
                supplier_id=supplier.id,
                items=[
                    _item(variant.id, quantity=5, cost_price=10, selling_price=20),
                    _item(priced_variant.id, quantity=5, cost_price=80, selling_price=80),
                ],
            )
        assert exc.value.message == "Cost price must be lower than selling price"
        assert exc.value.status_code == 422

        assert db_session.get(ProductVariant, variant.id).stock == 10
        assert db_session.get(ProductVariant, priced_variant.id).price == 100
        assert db_session.query(PurchaseOrder).count() == 0
        assert db_session.query(InventoryImportRecord).count() == 0

    def test_unknown_supplier(self, db_session, priced_variant):
        with pytest.raises(SupplierNotFoundError):
            purchase_order_service.create_purchase_order(
                supplier_id=404,
                items=[_item(priced_variant.id)],
            )

    @pytest.mark.parametrize("items", [None, [], "not-a-list"])
    def test_items_required(self, db_session, supplier, items):
        with pytest.raises(ValidationError) as exc:
            purchase_order_service.create_purchase_order(supplier_id=supplier.id, items=items)
        assert exc.value.message == "At least one variant must be included"

    @pytest.mark.parametrize("quantity", [0, -1, None, "abc", 1.5])
    def test_invalid_quantity(self, db_session, supplier, priced_variant, quantity):
        with pytest.raises(InvalidQuantityError):
            purchase_order_service.create_purchase_order(
                supplier_id=supplier.id,
                items=[_item(priced_variant.id, quantity=quantity)],
            )

    @pytest.mark.parametrize("cost, selling", [(None, 80), (40, None), ("n/a", 80), (-5, 80)])
    def test_invalid_price(self, db_session, supplier, priced_variant, cost, selling):
        with pytest.raises(InvalidPriceError):
            purchase_order_service.create_purchase_order(
                supplier_id=supplier.id,
                items=[_item(priced_variant.id, cost_price=cost, selling_price=selling)],
            )

    def test_unknown_variant(self, db_session, supplier, priced_variant):
        with pytest.raises(VariantNotFoundError):
            purchase_order_service.create_purchase_order(
                supplier_id=supplier.id,
                items=[_item(priced_variant.id), _item(9999)],
            )
        assert db_session.get(ProductVariant, priced_variant.id).stock == 10

    @pytest.mark.parametrize("cost, selling", [(40, 10 ** 20), (MAX_PRICE + 1, MAX_PRICE + 2)])
    def test_price_above_limit_rejected(self, db_session, supplier, priced_variant, cost, selling):
        with pytest.raises(InvalidPriceError) as exc:
            purchase_order_service.create_purchase_order(
                supplier_id=supplier.id,
                items=[_item(priced_variant.id, cost_price=cost, selling_price=selling)],
            )
        assert exc.value.details["index"] == 0
        assert db_session.get(ProductVariant, priced_variant.id).price == 100

    def test_missing_variant_reported_before_later_item_errors(self, db_session, supplier, priced_variant):
        with pytest.raises(VariantNotFoundError):
            purchase_order_service.create_purchase_order(
                supplier_id=supplier.id,
                items=[_item(9999), _item(priced_variant.id, quantity=0)],
            )

    def test_quantity_checked_before_margin(self, db_session, supplier, priced_variant):
        with pytest.raises(InvalidQuantityError):
            purchase_order_service.create_purchase_order(
                supplier_id=supplier.id,
                items=[_item(priced_variant.id, quantity=0, cost_price=90, selling_price=10)],
            )

    def test_failure_while_posting_rolls_back(self, db_session, supplier, variant, priced_variant, monkeypatch):
        from storefront.services import purchase_order_service as svc

        real_increment = svc.increment_stock
        calls = []

        def increment_then_fail(variant_id, quantity, changes=None):
            calls.append(variant_id)
            if len(calls) == 2:
                raise RuntimeError("lost connection")
            return real_increment(variant_id, quantity, changes)

        monkeypatch.setattr(svc, "increment_stock", increment_then_fail)

        with pytest.raises(RuntimeError):
            purchase_order_service.create_purchase_order(
                supplier_id=supplier.id,
                items=[_item(variant.id), _item(priced_variant.id)],
            )

        assert db_session.get(ProductVariant, variant.id).stock == 10
        assert db_session.get(ProductVariant, variant.id).price is None
        assert db_session.query(PurchaseOrder).count() == 0
        assert db_session.query(InventoryImportRecord).count() == 0


class TestPurchaseOrderQueries:

    def test_get_purchase_order_with_items(self, db_session, supplier, variant, priced_variant):
        created = purchase_order_service.create_purchase_order(
            supplier_id=supplier.id,
            items=[
                _item(variant.id, quantity=2, cost_price=100, selling_price=200),
                _item(priced_variant.id, quantity=3, cost_price=40, selling_price=80),
            ],
        )

        po = purchase_order_service.get_purchase_order(created["purchase_order_id"])
        assert po["supplier"]["name"] == "Saigon Textiles"
        assert [i["sku"] for i in po["items"]] == ["TEE-RED-M", "TEE-BLU-L"]
        assert po["items"][0]["product_title"] == "Basic Tee"
        assert po["total_quantity"] == 5
        assert po["total_cost"] == 2 * 100 + 3 * 40

    def test_get_missing_purchase_order(self, db_session):
        with pytest.raises(PurchaseOrderNotFoundError):
            purchase_order_service.get_purchase_order(12345)

    def test_list_aggregates_newest_first(self, db_session, supplier, variant, priced_variant):
        first = purchase_order_service.create_purchase_order(
            supplier_id=supplier.id,
            items=[_item(variant.id, quantity=1, cost_price=5, selling_price=10)],
        )
        second = purchase_order_service.create_purchase_order(
            supplier_id=supplier.id,
            items=[
                _item(variant.id, quantity=2, cost_price=5, selling_price=10),
                _item(priced_variant.id, quantity=4, cost_price=20, selling_price=50),
            ],
        )

        summaries, total = purchase_order_service.list_purchase_orders()
        assert total == 2
        assert [s["id"] for s in summaries] == [second["purchase_order_id"], first["purchase_order_id"]]
        assert summaries[0]["supplier_name"] == "Saigon Textiles"
        assert summaries[0]["total_quantity"] == 6
        assert summaries[0]["total_items"] == 2
        assert summaries[0]["total_cost"] == 2 * 5 + 4 * 20
        assert summaries[1]["total_items"] == 1

    def test_list_paging(self, db_session, supplier, variant):
        for _ in range(3):
            purchase_order_service.create_purchase_order(
                supplier_id=supplier.id,
                items=[_item(variant.id, quantity=1, cost_price=5, selling_price=10)],
            )
        page, total = purchase_order_service.list_purchase_orders(limit=2, offset=2)
        assert total == 3
        assert len(page) == 1

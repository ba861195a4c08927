# Overview: Pytest coverage for cart lines and price snapshots.

import pytest

from storefront.models import CartItem, ProductVariant
from storefront.services import cart_service
from storefront.services.cart_service import CartItemNotFoundError
from storefront.services.catalog_service import VariantNotFoundError
from storefront.validation import ValidationError

USER = 7
OTHER_USER = 8


class TestAddItem:

    def test_first_add_snapshots_resolved_price(self, db_session, priced_variant):
        cart = cart_service.add_item(USER, priced_variant.id, 2)

        assert len(cart["items"]) == 1
        line = cart["items"][0]
        assert line["variant_id"] == priced_variant.id
        assert line["quantity"] == 2
        assert line["price_snapshot"] == 100
        assert cart["total_price"] == 200

    def test_repeat_add_merges_and_keeps_first_snapshot(self, db_session, product, priced_variant, make_sale):
        cart_service.add_item(USER, priced_variant.id, 1)

        # Price changes between the two adds
        make_sale([product.id], 50)
        db_session.query(ProductVariant).filter_by(id=priced_variant.id).update({"price": 300})
        db_session.commit()

        cart = cart_service.add_item(USER, priced_variant.id, 3)

        assert db_session.query(CartItem).filter_by(user_id=USER).count() == 1
        line = cart["items"][0]
        assert line["quantity"] == 4
        assert line["price_snapshot"] == 100

    def test_sale_price_is_snapshotted(self, db_session, product, priced_variant, make_sale):
        make_sale([product.id], 15)
        cart = cart_service.add_item(USER, priced_variant.id, 1)
        assert cart["items"][0]["price_snapshot"] == 85

    def test_unknown_variant_rejected(self, db_session):
        with pytest.raises(VariantNotFoundError):
            cart_service.add_item(USER, 999, 1)
        assert db_session.query(CartItem).count() == 0

    @pytest.mark.parametrize("quantity", [0, -1, "abc", None])
    def test_non_positive_quantity_rejected(self, db_session, priced_variant, quantity):
        with pytest.raises(ValidationError):
            cart_service.add_item(USER, priced_variant.id, quantity)

    def test_carts_are_per_user(self, db_session, priced_variant):
        cart_service.add_item(USER, priced_variant.id, 1)
        cart_service.add_item(OTHER_USER, priced_variant.id, 5)

        assert cart_service.get_cart(USER)["total_quantity"] == 1
        assert cart_service.get_cart(OTHER_USER)["total_quantity"] == 5

    def test_stock_is_not_touched(self, db_session, priced_variant):
        cart_service.add_item(USER, priced_variant.id, 4)
        assert db_session.get(ProductVariant, priced_variant.id).stock == 10


class TestUpdateRemoveClear:

    def _line_id(self, user_id=USER):
        return cart_service.get_cart(user_id)["items"][0]["id"]

    def test_update_changes_quantity_only(self, db_session, product, priced_variant, make_sale):
        cart_service.add_item(USER, priced_variant.id, 1)
        make_sale([product.id], 50)

        cart = cart_service.update_item(USER, self._line_id(), 6)

        assert cart["items"][0]["quantity"] == 6
        assert cart["items"][0]["price_snapshot"] == 100

    def test_update_to_zero_deletes(self, db_session, priced_variant):
        cart_service.add_item(USER, priced_variant.id, 1)
        cart = cart_service.update_item(USER, self._line_id(), 0)
        assert cart["items"] == []

    def test_update_other_users_item_not_found(self, db_session, priced_variant):
        cart_service.add_item(USER, priced_variant.id, 1)
        with pytest.raises(CartItemNotFoundError):
            cart_service.update_item(OTHER_USER, self._line_id(), 3)
        assert cart_service.get_cart(USER)["items"][0]["quantity"] == 1

    def test_remove(self, db_session, priced_variant):
        cart_service.add_item(USER, priced_variant.id, 1)
        line_id = self._line_id()

        cart_service.remove_item(USER, line_id)
        assert cart_service.get_cart(USER)["items"] == []

        with pytest.raises(CartItemNotFoundError):
            cart_service.remove_item(USER, line_id)

    def test_clear(self, db_session, variant, priced_variant):
        cart_service.add_item(USER, variant.id, 1)
        cart_service.add_item(USER, priced_variant.id, 1)

        assert cart_service.clear_cart(USER) == 2
        assert cart_service.clear_cart(USER) == 0
        assert cart_service.get_cart(USER)["items"] == []

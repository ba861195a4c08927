# Overview: Service-layer operations for supplier purchase orders; encapsulates business logic.

"""
Purchase Order Service

A purchase order restocks variants from one supplier and resets their cost
and selling price.

VALIDATION (all before any write):
- supplier must exist                          -> SupplierNotFoundError
- at least one item                            -> ValidationError
- per item, in order:
    variant_id positive integer                -> VariantNotFoundError
    quantity positive integer                  -> InvalidQuantityError
    cost_price and selling_price parse and lie
    within 0..MAX_PRICE                        -> InvalidPriceError
    cost_price < selling_price                 -> MarginInvalidError
    variant exists                             -> VariantNotFoundError
  an item is checked completely before the next one is looked at

POSTING (one transaction):
1. Insert the PurchaseOrder header (its id links the audit records)
2. Per item: lock the variant, stock += quantity, cost_price and price
   OVERWRITTEN with the item's values (no averaging)
3. Per item: append an InventoryImportRecord with supplier and PO ids

Any failure rolls back the header, every stock change and every record.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Mapping

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import InventoryImportRecord, Product, ProductVariant, PurchaseOrder, Supplier
from ..validation import (
    BusinessRuleError,
    NotFoundError,
    ValidationError,
    check_price_range,
    parse_currency,
    to_int,
    to_text,
)
from .catalog_service import VariantNotFoundError, VariantUpdate, get_variant, increment_stock
from .concurrency import atomic, run_with_retry
from .supplier_service import get_supplier


class PurchaseOrderNotFoundError(NotFoundError):
    """Raised when a purchase order is not found."""

    def __init__(self, purchase_order_id):
        super().__init__("Purchase order not found", details={"purchase_order_id": purchase_order_id})


class InvalidQuantityError(ValidationError):
    """Raised when an item quantity is missing or not positive."""
    pass


class InvalidPriceError(ValidationError):
    """Raised when an item's cost or selling price cannot be read."""
    pass


class MarginInvalidError(BusinessRuleError):
    """Raised when an item's cost price is not below its selling price."""
    pass


@dataclass
class PurchaseOrderItem:
    variant_id: int
    quantity: int
    cost_price: int
    selling_price: int


def _validate_item(raw: Any, index: int) -> PurchaseOrderItem:
    if not isinstance(raw, Mapping):
        raise ValidationError("Each item must be an object", details={"index": index})

    variant_id = to_int(raw.get("variant_id"))
    if variant_id is None or variant_id <= 0:
        raise VariantNotFoundError(raw.get("variant_id"))

    quantity = to_int(raw.get("quantity"))
    if quantity is None or quantity <= 0:
        raise InvalidQuantityError(
            "Quantity must be greater than 0",
            details={"index": index, "variant_id": variant_id},
        )

    cost_price = parse_currency(raw.get("cost_price"))
    selling_price = parse_currency(raw.get("selling_price"))
    if cost_price is None or selling_price is None:
        raise InvalidPriceError(
            "Cost and selling prices are required",
            details={"index": index, "variant_id": variant_id},
        )
    where = {"index": index, "variant_id": variant_id}
    check_price_range(cost_price, "cost_price", InvalidPriceError, where)
    check_price_range(selling_price, "selling_price", InvalidPriceError, where)

    if cost_price >= selling_price:
        raise MarginInvalidError(
            "Cost price must be lower than selling price",
            details={
                "index": index,
                "variant_id": variant_id,
                "cost_price": cost_price,
                "selling_price": selling_price,
            },
        )

    return PurchaseOrderItem(
        variant_id=variant_id,
        quantity=quantity,
        cost_price=cost_price,
        selling_price=selling_price,
    )


def _ensure_variant_exists(item: PurchaseOrderItem) -> PurchaseOrderItem:
    found = db.session.query(ProductVariant.id).filter(ProductVariant.id == item.variant_id).first()
    if found is None:
        raise VariantNotFoundError(item.variant_id)
    return item


def create_purchase_order(*, supplier_id, note=None, items=None) -> dict:
    """
    Create a purchase order and apply it to inventory.

    Args:
        supplier_id: Supplier providing the goods (REQUIRED)
        note: Optional free text
        items: List of {variant_id, quantity, cost_price, selling_price}

    Returns:
        Dict with purchase_order_id, supplier_id, note, created_at,
        total_items, total_quantity and the normalized items

    Raises:
        SupplierNotFoundError, ValidationError, VariantNotFoundError,
        InvalidQuantityError, InvalidPriceError, MarginInvalidError
    """
    supplier = get_supplier(supplier_id)

    if not isinstance(items, (list, tuple)) or not items:
        raise ValidationError("At least one variant must be included")

    # Each item is fully checked, existence included, before the next one
    normalized = [_ensure_variant_exists(_validate_item(raw, index)) for index, raw in enumerate(items)]
    note = to_text(note)
    supplier_pk = supplier.id

    def _op():
        lines = []
        with atomic():
            po = PurchaseOrder(supplier_id=supplier_pk, note=note)
            db.session.add(po)
            db.session.flush()

            for item in normalized:
                get_variant(item.variant_id, lock=True)
                variant = increment_stock(
                    item.variant_id,
                    item.quantity,
                    VariantUpdate(price=item.selling_price, cost_price=item.cost_price),
                )

                db.session.add(InventoryImportRecord(
                    product_id=variant.product_id,
                    variant_id=variant.id,
                    sku=variant.sku,
                    size=variant.size,
                    color=variant.color,
                    quantity=item.quantity,
                    cost_price=item.cost_price,
                    selling_price=item.selling_price,
                    supplier_id=supplier_pk,
                    purchase_order_id=po.id,
                    source_file=None,
                ))

                line = asdict(item)
                line.update(sku=variant.sku, size=variant.size, color=variant.color, product_id=variant.product_id)
                lines.append(line)

            po_id = po.id
        return po_id, lines

    po_id, lines = run_with_retry(_op)
    po = db.session.get(PurchaseOrder, po_id)

    current_app.logger.info(
        "Purchase order %s from supplier %s restocked %d variants",
        po_id, supplier_pk, len(lines),
    )

    return {
        "purchase_order_id": po_id,
        "supplier_id": supplier_pk,
        "note": po.note or "",
        "created_at": po.to_dict()["created_at"],
        "total_items": len(lines),
        "total_quantity": sum(line["quantity"] for line in lines),
        "items": lines,
    }


def get_purchase_order(purchase_order_id: int) -> dict:
    """
    Purchase order header, supplier and its audit-record items.

    Raises:
        PurchaseOrderNotFoundError: If not found
    """
    po = db.session.get(PurchaseOrder, purchase_order_id)
    if po is None:
        raise PurchaseOrderNotFoundError(purchase_order_id)

    rows = (
        db.session.query(InventoryImportRecord, Product.title)
        .outerjoin(Product, InventoryImportRecord.product_id == Product.id)
        .filter(InventoryImportRecord.purchase_order_id == po.id)
        .order_by(InventoryImportRecord.id.asc())
        .all()
    )

    result = po.to_dict()
    result["supplier"] = po.supplier.to_dict() if po.supplier else None
    result["items"] = []
    for record, title in rows:
        item = record.to_dict()
        item["product_title"] = title
        result["items"].append(item)
    result["total_quantity"] = sum(item["quantity"] for item in result["items"])
    result["total_cost"] = sum(item["quantity"] * (item["cost_price"] or 0) for item in result["items"])
    return result


def list_purchase_orders(*, limit: int = 25, offset: int = 0) -> tuple[list[dict], int]:
    """
    Purchase orders newest first with per-order aggregates.

    Returns:
        Tuple of (list of summary dicts, total count)
    """
    total = db.session.query(func.count(PurchaseOrder.id)).scalar() or 0

    rows = (
        db.session.query(
            PurchaseOrder,
            Supplier.name,
            Supplier.address,
            func.coalesce(func.sum(InventoryImportRecord.quantity), 0),
            func.count(InventoryImportRecord.id),
            func.coalesce(
                func.sum(InventoryImportRecord.quantity * func.coalesce(InventoryImportRecord.cost_price, 0)),
                0,
            ),
        )
        .outerjoin(Supplier, PurchaseOrder.supplier_id == Supplier.id)
        .outerjoin(InventoryImportRecord, InventoryImportRecord.purchase_order_id == PurchaseOrder.id)
        .group_by(PurchaseOrder.id, Supplier.name, Supplier.address)
        .order_by(PurchaseOrder.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )

    summaries = []
    for po, supplier_name, supplier_address, total_quantity, total_items, total_cost in rows:
        summary = po.to_dict()
        summary.update(
            supplier_name=supplier_name,
            supplier_address=supplier_address,
            total_quantity=int(total_quantity or 0),
            total_items=int(total_items or 0),
            total_cost=int(total_cost or 0),
        )
        summaries.append(summary)
    return summaries, int(total)

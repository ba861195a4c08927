# Overview: Service-layer reconciliation of normalized inventory rows against product variants.

"""
Inventory Import Service

Input rows come from an external spreadsheet parser that has already found
the header row and mapped column aliases; this service only sees
InventoryRow records (sku, quantity, optional product_id/size/color/
cost_price/selling_price).

FLOW:
1. Group rows by product_id (row's own, else the caller default).
2. Validate everything up front; no write happens if any check fails:
   - every target product exists                      -> ProductNotFoundError
   - every target product has at least one usable row -> EmptyImportError
     (usable = sku present and quantity > 0)
   - prices on usable rows lie within 0..MAX_PRICE    -> ValidationError
   - optional supplier exists                         -> SupplierNotFoundError
3. Unusable rows are dropped and reported as skipped.
4. Apply each product's rows in ONE transaction:
   - variant with (product_id, sku) exists -> stock += quantity; size, color,
     price, cost_price overwritten only when the row provides them
   - otherwise -> new variant with stock = quantity
   - one InventoryImportRecord per row, whatever the outcome
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from flask import current_app

from ..extensions import db
from ..models import InventoryImportRecord, Product
from ..validation import BusinessRuleError, ValidationError, check_price_range, parse_currency, to_int, to_text
from .catalog_service import (
    ProductNotFoundError,
    VariantUpdate,
    create_variant,
    find_variant_by_sku,
    increment_stock,
)
from .concurrency import atomic, lock_for_update, run_with_retry
from .supplier_service import get_supplier


class EmptyImportError(BusinessRuleError):
    """Raised when an import has no usable rows for a target product."""
    pass


@dataclass
class InventoryRow:
    sku: str | None
    quantity: int | None
    product_id: int | None = None
    size: str | None = None
    color: str | None = None
    cost_price: int | None = None
    selling_price: int | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "InventoryRow":
        return cls(
            sku=to_text(data.get("sku")),
            quantity=to_int(data.get("quantity")),
            product_id=to_int(data.get("product_id")),
            size=to_text(data.get("size")),
            color=to_text(data.get("color")),
            cost_price=parse_currency(data.get("cost_price")),
            selling_price=parse_currency(data.get("selling_price")),
        )

    @property
    def is_usable(self) -> bool:
        return bool(self.sku) and self.quantity is not None and self.quantity > 0

    def changes(self) -> VariantUpdate:
        return VariantUpdate(
            size=self.size,
            color=self.color,
            price=self.selling_price,
            cost_price=self.cost_price,
        )


def _coerce_rows(rows: Iterable[InventoryRow | Mapping[str, Any]]) -> list[InventoryRow]:
    coerced = []
    for row in rows or []:
        if isinstance(row, InventoryRow):
            coerced.append(row)
        elif isinstance(row, Mapping):
            coerced.append(InventoryRow.from_mapping(row))
        else:
            raise ValidationError("Each import row must be an object")
    return coerced


def _group_by_product(rows: list[InventoryRow], default_product_id: int | None) -> "OrderedDict[int, list[InventoryRow]]":
    """
    Group every row, usable or not, by its target product.

    A usable row without a product is an error; an unusable one cannot be
    attributed to any product and is only counted as skipped.
    """
    groups: OrderedDict[int, list[InventoryRow]] = OrderedDict()
    for row in rows:
        product_id = row.product_id if row.product_id is not None else default_product_id
        if product_id is None:
            if not row.is_usable:
                continue
            raise ValidationError(
                "product_id is required when no default product is given",
                details={"sku": row.sku},
            )
        groups.setdefault(product_id, []).append(row)
    return groups


def _check_row_prices(rows: list[InventoryRow]) -> None:
    for index, row in enumerate(rows):
        if not row.is_usable:
            continue
        where = {"row": index, "sku": row.sku}
        check_price_range(row.cost_price, "cost_price", ValidationError, where)
        check_price_range(row.selling_price, "selling_price", ValidationError, where)


def _apply_product_rows(
    product_id: int,
    rows: list[InventoryRow],
    *,
    source_file: str | None,
    supplier_id: int | None,
) -> dict:
    created = 0
    updated = 0

    with atomic():
        # Serializes variant creation for this product across concurrent imports
        product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        if product is None:
            raise ProductNotFoundError(product_id)

        for row in rows:
            variant = find_variant_by_sku(product_id, row.sku, lock=True)
            if variant is not None:
                variant = increment_stock(variant.id, row.quantity, row.changes())
                updated += 1
            else:
                variant = create_variant(
                    product_id=product_id,
                    sku=row.sku,
                    size=row.size,
                    color=row.color,
                    price=row.selling_price,
                    cost_price=row.cost_price,
                    stock=row.quantity,
                )
                created += 1

            db.session.add(InventoryImportRecord(
                product_id=product_id,
                variant_id=variant.id,
                sku=variant.sku,
                size=variant.size,
                color=variant.color,
                quantity=row.quantity,
                cost_price=row.cost_price,
                selling_price=row.selling_price,
                supplier_id=supplier_id,
                purchase_order_id=None,
                source_file=source_file,
            ))

    return {
        "product_id": product_id,
        "rows": len(rows),
        "created": created,
        "updated": updated,
        "total_quantity": sum(row.quantity for row in rows),
    }


def import_inventory(
    rows: Iterable[InventoryRow | Mapping[str, Any]],
    *,
    default_product_id: int | None = None,
    source_file: str | None = None,
    supplier_id: int | None = None,
) -> dict:
    """
    Reconcile normalized rows against product variants.

    Args:
        rows: InventoryRow records or plain mappings with the same keys
        default_product_id: Product used for rows that do not name one
        source_file: Originating file name, copied onto each audit record
        supplier_id: Optional supplier recorded on each audit record

    Returns:
        Summary dict with one entry per product batch

    Raises:
        EmptyImportError: If the import, or any target product's share of
            it, has no usable rows
        ValidationError: If a usable row has no resolvable product, or a
            negative or out-of-range price
        ProductNotFoundError: If a target product does not exist
        SupplierNotFoundError: If supplier_id is given but does not exist
    """
    all_rows = _coerce_rows(rows)

    if default_product_id is not None:
        default_product_id = to_int(default_product_id)

    groups = _group_by_product(all_rows, default_product_id)
    if not groups:
        raise EmptyImportError(
            "No importable rows",
            details={"product_id": default_product_id, "skipped_rows": len(all_rows)},
        )

    for product_id, product_rows in groups.items():
        if db.session.get(Product, product_id) is None:
            raise ProductNotFoundError(product_id)
        if not any(row.is_usable for row in product_rows):
            raise EmptyImportError(
                f"No importable rows for product {product_id}",
                details={"product_id": product_id, "skipped_rows": len(product_rows)},
            )

    _check_row_prices(all_rows)

    if supplier_id is not None:
        supplier_id = get_supplier(supplier_id).id
    source_file = to_text(source_file)

    usable_groups = OrderedDict(
        (product_id, [row for row in product_rows if row.is_usable])
        for product_id, product_rows in groups.items()
    )
    imported = sum(len(product_rows) for product_rows in usable_groups.values())

    batches = []
    for product_id, product_rows in usable_groups.items():
        summary = run_with_retry(
            lambda: _apply_product_rows(
                product_id,
                product_rows,
                source_file=source_file,
                supplier_id=supplier_id,
            )
        )
        current_app.logger.info(
            "Imported %d rows (%d created, %d updated) for product %s from %s",
            summary["rows"], summary["created"], summary["updated"], product_id, source_file or "<inline>",
        )
        batches.append(summary)

    return {
        "source_file": source_file,
        "products": batches,
        "imported_rows": imported,
        "skipped_rows": len(all_rows) - imported,
        "total_quantity": sum(b["total_quantity"] for b in batches),
    }


def list_import_records(
    *,
    product_id: int | None = None,
    variant_id: int | None = None,
    purchase_order_id: int | None = None,
    limit: int = 100,
    offset: int = 0,
) -> tuple[list[InventoryImportRecord], int]:
    """Audit trail, newest first. Returns (records, total count)."""
    query = db.session.query(InventoryImportRecord)
    if product_id:
        query = query.filter(InventoryImportRecord.product_id == product_id)
    if variant_id:
        query = query.filter(InventoryImportRecord.variant_id == variant_id)
    if purchase_order_id:
        query = query.filter(InventoryImportRecord.purchase_order_id == purchase_order_id)

    total = query.count()
    records = query.order_by(InventoryImportRecord.id.desc()).offset(offset).limit(limit).all()
    return records, total

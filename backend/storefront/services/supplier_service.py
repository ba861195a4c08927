# Overview: Service-layer operations for suppliers.

"""
Supplier Service

Suppliers are the counterparty of every purchase order and may optionally
be attached to a row import for traceability.
"""

from __future__ import annotations

from ..extensions import db
from ..models import Supplier
from ..validation import NotFoundError, ValidationError, to_int, to_text
from .concurrency import atomic


class SupplierNotFoundError(NotFoundError):
    """Raised when a supplier is not found."""

    def __init__(self, supplier_id):
        super().__init__("Supplier not found", details={"supplier_id": supplier_id})


def create_supplier(*, name, address=None) -> Supplier:
    """
    Raises:
        ValidationError: If name is blank
    """
    name = to_text(name)
    if not name:
        raise ValidationError("Supplier name is required")

    with atomic():
        supplier = Supplier(name=name, address=to_text(address))
        db.session.add(supplier)
    return supplier


def get_supplier(supplier_id) -> Supplier:
    """
    Raises:
        SupplierNotFoundError: If the id is not a positive integer or does not exist
    """
    parsed = to_int(supplier_id)
    if parsed is None or parsed <= 0:
        raise SupplierNotFoundError(supplier_id)
    supplier = db.session.get(Supplier, parsed)
    if supplier is None:
        raise SupplierNotFoundError(supplier_id)
    return supplier


def list_suppliers() -> list[Supplier]:
    return db.session.query(Supplier).order_by(Supplier.name.asc()).all()

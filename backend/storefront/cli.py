# Overview: Flask CLI command groups for bootstrap, suppliers, inventory import and purchase orders.

# backend/storefront/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to storefront (PowerShell: $env:FLASK_APP="storefront").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables that do not exist yet.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Suppliers:
# - python -m flask suppliers list
# - python -m flask suppliers create --name "Acme Textiles" --address "12 Nguyen Trai"
#
# Inventory:
# - python -m flask inventory import rows.json --product-id 7 [--supplier-id 2]
#   Import a JSON array of normalized rows (sku, quantity, size, color,
#   cost_price, selling_price, product_id). The file name is kept on the
#   audit trail.
#
# Purchase orders:
# - python -m flask purchase-orders list [--limit 25]
# - python -m flask purchase-orders show 3

import json
import os

import click
from flask.cli import with_appcontext

from .extensions import db
from .services import inventory_import_service, purchase_order_service, supplier_service
from .validation import CommerceError


def _fail(e: CommerceError):
    raise click.ClickException(f"{e.message} {e.details}" if e.details else e.message)


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet (idempotent)."""
    db.create_all()
    click.echo("PASS Tables created.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete.")


@click.group('suppliers')
def suppliers_group():
    """Supplier registry."""


@suppliers_group.command('list')
@with_appcontext
def list_suppliers():
    suppliers = supplier_service.list_suppliers()
    if not suppliers:
        click.echo("No suppliers.")
        return
    click.echo(f"{'ID':<5} {'Name':<30} Address")
    click.echo("-" * 70)
    for s in suppliers:
        click.echo(f"{s.id:<5} {s.name:<30} {s.address or ''}")


@suppliers_group.command('create')
@click.option('--name', required=True, help='Supplier name')
@click.option('--address', default=None, help='Supplier address')
@with_appcontext
def create_supplier(name, address):
    try:
        supplier = supplier_service.create_supplier(name=name, address=address)
    except CommerceError as e:
        _fail(e)
    click.echo(f"PASS Created supplier {supplier.id}: {supplier.name}")


@click.group('inventory')
def inventory_group():
    """Inventory replenishment."""


@inventory_group.command('import')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--product-id', type=int, default=None, help='Default product for rows without product_id')
@click.option('--supplier-id', type=int, default=None, help='Supplier recorded on the audit trail')
@with_appcontext
def import_inventory(path, product_id, supplier_id):
    """Import a JSON array of normalized inventory rows."""
    with open(path, encoding="utf-8") as fh:
        try:
            rows = json.load(fh)
        except json.JSONDecodeError as e:
            raise click.ClickException(f"Invalid JSON in {path}: {e}")
    if not isinstance(rows, list):
        raise click.ClickException("Expected a JSON array of rows")

    try:
        summary = inventory_import_service.import_inventory(
            rows,
            default_product_id=product_id,
            source_file=os.path.basename(path),
            supplier_id=supplier_id,
        )
    except CommerceError as e:
        _fail(e)

    for batch in summary["products"]:
        click.echo(
            f"product {batch['product_id']}: {batch['rows']} rows, "
            f"{batch['created']} created, {batch['updated']} updated, +{batch['total_quantity']} units"
        )
    click.echo(f"PASS Imported {summary['imported_rows']} rows, skipped {summary['skipped_rows']}.")


@click.group('purchase-orders')
def purchase_orders_group():
    """Purchase order inspection."""


@purchase_orders_group.command('list')
@click.option('--limit', type=int, default=25, show_default=True)
@with_appcontext
def list_purchase_orders(limit):
    orders, total = purchase_order_service.list_purchase_orders(limit=limit)
    click.echo(f"{total} purchase orders")
    for po in orders:
        click.echo(
            f"{po['id']:<5} {po['created_at'] or '':<22} {po['supplier_name'] or '':<25} "
            f"qty={po['total_quantity']:<6} items={po['total_items']:<4} cost={po['total_cost']}"
        )


@purchase_orders_group.command('show')
@click.argument('purchase_order_id', type=int)
@with_appcontext
def show_purchase_order(purchase_order_id):
    try:
        po = purchase_order_service.get_purchase_order(purchase_order_id)
    except CommerceError as e:
        _fail(e)

    supplier = po["supplier"] or {}
    click.echo(f"Purchase order {po['id']} from {supplier.get('name', '?')} at {po['created_at']}")
    if po["note"]:
        click.echo(f"Note: {po['note']}")
    for item in po["items"]:
        click.echo(
            f"  {item['sku']:<20} {item['size'] or '':<6} {item['color'] or '':<10} "
            f"x{item['quantity']:<5} cost={item['cost_price']} price={item['selling_price']}"
        )
    click.echo(f"Total quantity: {po['total_quantity']}  Total cost: {po['total_cost']}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(suppliers_group)
    app.cli.add_command(inventory_group)
    app.cli.add_command(purchase_orders_group)

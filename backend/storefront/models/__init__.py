from .catalog import Category, Brand, Product, ProductVariant
from .promotions import Sale, SaleDetail
from .carts import CartItem
from .orders import Order, OrderItem, ORDER_STATUSES
from .inventory import Supplier, PurchaseOrder, InventoryImportRecord

__all__ = [
    'Category', 'Brand', 'Product', 'ProductVariant',
    'Sale', 'SaleDetail',
    'CartItem',
    'Order', 'OrderItem', 'ORDER_STATUSES',
    'Supplier', 'PurchaseOrder', 'InventoryImportRecord',
]

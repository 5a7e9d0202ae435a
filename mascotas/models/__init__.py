"""Models package - exports cart, discount and order models."""
from mascotas.models.cart_line import (
    CartLine, ComboLine, LineKind, ProductLine, PurchaseMode,
    line_from_dict, line_from_item, to_decimal
)
from mascotas.models.discount import AppliedDiscount, DiscountKind
from mascotas.models.order import Order, OrderItem, OrderStatus, ShippingData

__all__ = [
    # Cart
    'CartLine', 'ComboLine', 'LineKind', 'ProductLine', 'PurchaseMode',
    'line_from_dict', 'line_from_item', 'to_decimal',
    # Discounts
    'AppliedDiscount', 'DiscountKind',
    # Orders
    'Order', 'OrderItem', 'OrderStatus', 'ShippingData',
]

"""
Checkout totals: subtotal, coupon discount and payment-method surcharge.

The same computation feeds the live summary and the persisted order, so the
two can never disagree.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional, Tuple

from mascotas.services.cart_service import CartStore
from mascotas.services.currency_service import CurrencyProvider

CENTS = Decimal('0.01')

# Matched against the payment method label, first hit wins
SURCHARGE_RULES: Tuple[Tuple[str, Decimal], ...] = (
    ('Transferencia', Decimal('3.5')),
    ('Tarjeta', Decimal('10')),
)

PAYMENT_METHODS = (
    'Efectivo',
    'Transferencia (+3.5%)',
    'Tarjeta (+10%)',
)


def surcharge_percentage(payment_method: Optional[str]) -> Decimal:
    """Surcharge (%) for a payment method label; 0 when no rule matches."""
    label = payment_method or ''
    for keyword, percentage in SURCHARGE_RULES:
        if keyword in label:
            return percentage
    return Decimal('0')


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CheckoutTotals:
    """
    Reconciled checkout amounts.

    ``discount_value`` and ``surcharge`` are derived by subtraction, so
    ``subtotal - discount_value + surcharge == total`` holds exactly.
    """
    subtotal: Decimal
    discounted_total: Decimal
    discount_value: Decimal
    surcharge_percentage: Decimal
    surcharge: Decimal
    total: Decimal
    payment_method: str
    discount_code: Optional[str] = None
    free_shipping: bool = False

    def is_reconciled(self) -> bool:
        return self.subtotal - self.discount_value + self.surcharge == self.total

    def display(self, currency: CurrencyProvider) -> Dict[str, Any]:
        """Every amount converted and formatted for the summary panel."""
        return {
            'subtotal': currency.format(self.subtotal),
            'discount': currency.format(self.discount_value) if self.discount_code else None,
            'discount_code': self.discount_code,
            'surcharge': currency.format(self.surcharge) if self.surcharge > 0 else None,
            'surcharge_percentage': str(self.surcharge_percentage),
            'total': currency.format(self.total),
            'free_shipping': self.free_shipping,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            'subtotal': str(self.subtotal),
            'discounted_total': str(self.discounted_total),
            'discount_value': str(self.discount_value),
            'discount_code': self.discount_code,
            'surcharge_percentage': str(self.surcharge_percentage),
            'surcharge': str(self.surcharge),
            'total': str(self.total),
            'payment_method': self.payment_method,
            'free_shipping': self.free_shipping,
        }


def compute_totals(store: CartStore, payment_method: str) -> CheckoutTotals:
    """Reconcile the cart's subtotal, discount and surcharge into a payable total."""
    subtotal = _money(store.cart_total)
    discounted = _money(store.get_discounted_total())
    percentage = surcharge_percentage(payment_method)
    final = _money(discounted * (Decimal('1') + percentage / Decimal('100')))

    discount = store.applied_discount
    return CheckoutTotals(
        subtotal=subtotal,
        discounted_total=discounted,
        discount_value=subtotal - discounted,
        surcharge_percentage=percentage,
        surcharge=final - discounted,
        total=final,
        payment_method=payment_method,
        discount_code=discount.code if discount else None,
        free_shipping=bool(discount and discount.waives_shipping),
    )

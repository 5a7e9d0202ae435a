"""Applied discount (coupon) model."""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict
import enum

from mascotas.models.cart_line import to_decimal


class DiscountKind(str, enum.Enum):
    """Closed set of coupon types handled by the storefront (backend wire values)."""
    PERCENTAGE = 'percentage'
    FIXED = 'fixed'
    FREE_SHIPPING = 'shipping'

    @classmethod
    def parse(cls, value: Any) -> 'DiscountKind':
        """Accept backend spellings such as 'free_shipping' or 'FIXED'."""
        text = str(value).strip().lower().replace('_', '-')
        if text in ('free-shipping', 'freeshipping'):
            return cls.FREE_SHIPPING
        return cls(text)


@dataclass
class AppliedDiscount:
    """The single active coupon attached to a cart."""

    code: str
    kind: DiscountKind
    value: Decimal = Decimal('0')
    # Checked by the backend when validating; not re-checked afterwards.
    min_purchase: Decimal = Decimal('0')

    def __post_init__(self):
        self.code = (self.code or '').strip().upper()

    @property
    def waives_shipping(self) -> bool:
        return self.kind is DiscountKind.FREE_SHIPPING

    def apply(self, total: Decimal) -> Decimal:
        """Return ``total`` after this discount (never negative)."""
        if self.kind is DiscountKind.FIXED:
            return max(Decimal('0'), total - self.value)
        if self.kind is DiscountKind.PERCENTAGE:
            return total * (Decimal('1') - self.value / Decimal('100'))
        # Shipping is not itemized, so free shipping leaves the total as is.
        return total

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'AppliedDiscount':
        """Build from the backend's ``/discounts/validate`` descriptor."""
        return cls(
            code=data['code'],
            kind=DiscountKind.parse(data.get('type') or data.get('kind')),
            value=to_decimal(data.get('value')),
            min_purchase=to_decimal(data.get('minPurchase')),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AppliedDiscount':
        return cls(
            code=data['code'],
            kind=DiscountKind.parse(data['kind']),
            value=to_decimal(data.get('value')),
            min_purchase=to_decimal(data.get('min_purchase')),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'code': self.code,
            'kind': self.kind.value,
            'value': str(self.value),
            'min_purchase': str(self.min_purchase),
        }

"""Order models (snapshot of a completed checkout)."""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
import enum

from mascotas.models.cart_line import to_decimal


class OrderStatus(str, enum.Enum):
    """Order status; values are the backend's wire values."""
    PENDING = 'pendiente'
    PROCESSING = 'procesando'
    SHIPPED = 'enviado'
    DELIVERED = 'entregado'
    CANCELLED = 'cancelado'

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass
class ShippingData:
    """Contact and delivery fields captured at checkout."""
    name: str
    phone: str
    city: str
    email: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'phone': self.phone,
            'email': self.email or '',
            'city': self.city,
        }

    @classmethod
    def from_api(cls, data: Optional[Dict[str, Any]]) -> 'ShippingData':
        data = data or {}
        return cls(
            name=data.get('name', ''),
            phone=data.get('phone', ''),
            city=data.get('city', ''),
            email=data.get('email') or None,
        )


@dataclass
class OrderItem:
    """Order line frozen at the unit price charged when the order was placed."""
    product: str
    name: str
    unit_price: Decimal
    quantity: int
    kind: str = 'product'

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'OrderItem':
        product = data.get('product')
        if isinstance(product, dict):
            product = product.get('_id')
        return cls(
            product=str(product or ''),
            name=data.get('nombre') or data.get('name', ''),
            unit_price=to_decimal(data.get('precio')),
            quantity=int(data.get('quantity', 1)),
            kind=data.get('type', 'product'),
        )


@dataclass
class Order:
    """Persisted order. Only ``status`` changes after creation (admin only)."""
    id: str
    items: List[OrderItem]
    subtotal: Decimal
    discount_value: Decimal
    surcharge: Decimal
    total: Decimal
    shipping: ShippingData
    payment_method: str
    discount_code: Optional[str] = None
    observations: str = ''
    status: OrderStatus = OrderStatus.PENDING
    created_at: Optional[datetime] = None

    @property
    def payment_label(self) -> str:
        """Payment method without the surcharge hint, e.g. 'Transferencia'."""
        return (self.payment_method or '').split(' (')[0]

    @property
    def short_id(self) -> str:
        return self.id[-6:].upper()

    def is_reconciled(self, tolerance: float = 1e-6) -> bool:
        """subtotal - discount + surcharge must reproduce the stored total."""
        rebuilt = self.subtotal - self.discount_value + self.surcharge
        return abs(rebuilt - self.total) <= Decimal(str(tolerance))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'short_id': self.short_id,
            'items': [
                {
                    'product': item.product,
                    'name': item.name,
                    'unit_price': str(item.unit_price),
                    'quantity': item.quantity,
                    'kind': item.kind,
                    'line_total': str(item.line_total),
                }
                for item in self.items
            ],
            'subtotal': str(self.subtotal),
            'discount_value': str(self.discount_value),
            'surcharge': str(self.surcharge),
            'total': str(self.total),
            'shipping': self.shipping.to_dict(),
            'payment_method': self.payment_method,
            'discount_code': self.discount_code,
            'observations': self.observations,
            'status': self.status.value,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'Order':
        created_at = data.get('createdAt')
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at.replace('Z', '+00:00'))
        return cls(
            id=str(data.get('_id') or data.get('id') or ''),
            items=[OrderItem.from_api(i) for i in data.get('items', [])],
            subtotal=to_decimal(data.get('subtotal')),
            discount_value=to_decimal(data.get('discountValue')),
            surcharge=to_decimal(data.get('surcharge')),
            total=to_decimal(data.get('total')),
            shipping=ShippingData.from_api(data.get('shippingData')),
            payment_method=data.get('paymentMethod', ''),
            discount_code=data.get('discountCode'),
            observations=data.get('observations') or '',
            status=OrderStatus(data.get('status', OrderStatus.PENDING.value)),
            created_at=created_at,
        )

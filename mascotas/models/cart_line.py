"""Cart line models.

A cart line is either a ``ProductLine`` (sold by sealed bag or by loose
weight) or a ``ComboLine`` (fixed bundle at one aggregate price). Both share
``id``, ``name`` and ``quantity``; pricing code dispatches on the class.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, ClassVar, Dict, Optional, Tuple, Union
import enum


class LineKind(str, enum.Enum):
    """Kind of purchasable unit (shared id namespace)."""
    PRODUCT = 'product'
    COMBO = 'combo'


class PurchaseMode(str, enum.Enum):
    """How a product is bought: sealed bag or extracted weight."""
    BAG = 'bag'
    LOOSE = 'loose'


def to_decimal(value: Any, default: str = '0') -> Decimal:
    """Convert JSON/backend numbers to Decimal (None and '' map to default)."""
    if value is None or value == '':
        return Decimal(default)
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass
class ProductLine:
    """Product bought by bag (optionally plus loose kilos) or by loose weight."""

    kind: ClassVar[LineKind] = LineKind.PRODUCT

    id: str
    name: str
    quantity: int = 1
    purchase_mode: PurchaseMode = PurchaseMode.BAG
    # Loose mode: total kilos requested. Bag mode: kilos added to each bag.
    extra_weight: Decimal = Decimal('0')
    base_price: Decimal = Decimal('0')        # precio
    list_price: Decimal = Decimal('0')        # precioLista
    low_tier_price: Decimal = Decimal('0')    # precioMenor
    high_tier_price: Decimal = Decimal('0')   # precioMayor
    unit_weight: Decimal = Decimal('0')       # kilos per bag
    category: Optional[str] = None

    @property
    def key(self) -> Tuple[str, LineKind, PurchaseMode]:
        return (self.id, self.kind, self.purchase_mode)

    @property
    def is_loose(self) -> bool:
        return self.purchase_mode is PurchaseMode.LOOSE

    def detail(self) -> str:
        """Short purchase-mode description shown next to the line."""
        kilos = _fmt_kilos(self.extra_weight)
        if self.is_loose:
            return f'{kilos}kg sueltos'
        if self.extra_weight > 0:
            return f'Bolsa + {kilos}kg extra'
        return 'Bolsa'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'kind': self.kind.value,
            'name': self.name,
            'quantity': self.quantity,
            'purchase_mode': self.purchase_mode.value,
            'extra_weight': str(self.extra_weight),
            'base_price': str(self.base_price),
            'list_price': str(self.list_price),
            'low_tier_price': str(self.low_tier_price),
            'high_tier_price': str(self.high_tier_price),
            'unit_weight': str(self.unit_weight),
            'category': self.category,
        }


@dataclass
class ComboLine:
    """Fixed bundle of products sold at its precomputed final price."""

    kind: ClassVar[LineKind] = LineKind.COMBO
    is_loose: ClassVar[bool] = False

    id: str
    name: str
    quantity: int = 1
    final_price: Decimal = Decimal('0')
    base_price: Decimal = Decimal('0')

    @property
    def key(self) -> Tuple[str, LineKind, PurchaseMode]:
        # Combos have no purchase mode; they always dedup as a single bag.
        return (self.id, self.kind, PurchaseMode.BAG)

    def detail(self) -> str:
        return 'Combo'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'kind': self.kind.value,
            'name': self.name,
            'quantity': self.quantity,
            'final_price': str(self.final_price),
            'base_price': str(self.base_price),
        }


CartLine = Union[ProductLine, ComboLine]


def _fmt_kilos(value: Decimal) -> str:
    if value == value.to_integral_value():
        return str(int(value))
    return f'{value.normalize()}'.replace('.', ',')


def _weight(value: Any) -> Decimal:
    weight = to_decimal(value)
    if not weight.is_finite() or weight < 0:
        raise ValueError(f'Invalid extra_weight {value!r}')
    return weight


def line_from_dict(data: Dict[str, Any]) -> CartLine:
    """
    Rebuild a cart line from its stored JSON shape.

    Raises:
        KeyError, ValueError, TypeError, decimal.InvalidOperation on malformed data
    """
    kind = LineKind(data['kind'])
    quantity = int(data['quantity'])
    if quantity < 1:
        raise ValueError(f'Invalid quantity {quantity}')

    if kind is LineKind.COMBO:
        return ComboLine(
            id=str(data['id']),
            name=data.get('name', ''),
            quantity=quantity,
            final_price=to_decimal(data.get('final_price')),
            base_price=to_decimal(data.get('base_price')),
        )

    return ProductLine(
        id=str(data['id']),
        name=data.get('name', ''),
        quantity=quantity,
        purchase_mode=PurchaseMode(data.get('purchase_mode', PurchaseMode.BAG.value)),
        extra_weight=_weight(data.get('extra_weight')),
        base_price=to_decimal(data.get('base_price')),
        list_price=to_decimal(data.get('list_price')),
        low_tier_price=to_decimal(data.get('low_tier_price')),
        high_tier_price=to_decimal(data.get('high_tier_price')),
        unit_weight=to_decimal(data.get('unit_weight')),
        category=data.get('category'),
    )


def line_from_item(
    item: Dict[str, Any],
    kind: Union[LineKind, str] = LineKind.PRODUCT,
    purchase_mode: Union[PurchaseMode, str] = PurchaseMode.BAG,
    extra_weight: Any = 0,
) -> CartLine:
    """
    Build a new cart line (quantity 1) from a backend catalog document.

    Catalog documents use the backend's field names: ``_id``, ``nombre``,
    ``precio``, ``precioLista``, ``precioMenor``, ``precioMayor``, ``kilos``,
    ``categoria`` for products and ``finalPrice``/``basePrice`` for combos.
    """
    kind = LineKind(kind)
    item_id = item.get('_id') or item.get('id')
    if not item_id:
        raise ValueError('Catalog item without id')
    name = item.get('nombre') or item.get('name') or ''

    if kind is LineKind.COMBO:
        return ComboLine(
            id=str(item_id),
            name=name,
            final_price=to_decimal(item.get('finalPrice')),
            base_price=to_decimal(item.get('basePrice')),
        )

    return ProductLine(
        id=str(item_id),
        name=name,
        purchase_mode=PurchaseMode(purchase_mode),
        extra_weight=_weight(extra_weight),
        base_price=to_decimal(item.get('precio')),
        list_price=to_decimal(item.get('precioLista')),
        low_tier_price=to_decimal(item.get('precioMenor')),
        high_tier_price=to_decimal(item.get('precioMayor')),
        unit_weight=to_decimal(item.get('kilos')),
        category=item.get('categoria') or item.get('category'),
    )

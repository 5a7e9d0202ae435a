# ==============================================================================
# SERVICIO DE CARRITO
# ==============================================================================
# Cart store and tier pricing. Lines are persisted as JSON under the 'cart'
# key of a key-value mapping (the Flask session in the storefront, a plain
# dict in tests). Prices are always derived from the stored lines; no total
# is ever stored.
# ==============================================================================

import json
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, MutableMapping, Optional, Union

from mascotas.models import (
    AppliedDiscount, CartLine, ComboLine, LineKind, ProductLine, PurchaseMode,
    line_from_dict, line_from_item
)

logger = logging.getLogger(__name__)

# Bags at or above this quantity use the wholesale (precioMayor) price
BULK_TIER_MIN_QTY = 10

CART_KEY = 'cart'
DISCOUNT_KEY = 'applied_discount'

Notifier = Callable[[str, str], None]


def price_per_kilo(line: ProductLine) -> Decimal:
    """List price spread over the bag weight (a zero weight counts as 1)."""
    return line.list_price / (line.unit_weight or Decimal('1'))


def get_item_price(line: CartLine) -> Decimal:
    """
    Unit price of a cart line, recomputed from the line's own fields.

    - Combo: its precomputed final price.
    - Loose: price per kilo times the kilos requested.
    - Bag: wholesale price from BULK_TIER_MIN_QTY bags, otherwise the retail
      tier price, otherwise the base price; plus any extra loose kilos.
    """
    if isinstance(line, ComboLine):
        return line.final_price

    if line.purchase_mode is PurchaseMode.LOOSE:
        return price_per_kilo(line) * line.extra_weight

    bag_price = line.base_price
    if line.quantity >= BULK_TIER_MIN_QTY and line.high_tier_price > 0:
        bag_price = line.high_tier_price
    elif line.low_tier_price > 0:
        bag_price = line.low_tier_price

    if line.extra_weight > 0:
        return bag_price + price_per_kilo(line) * line.extra_weight

    return bag_price


class CartStorage:
    """
    JSON persistence of cart lines and the applied discount.

    Wraps any mutable mapping; missing or corrupt data loads as empty.
    """

    def __init__(self, backend: MutableMapping[str, Any], key: str = CART_KEY, discount_key: str = DISCOUNT_KEY):
        self.backend = backend
        self.key = key
        self.discount_key = discount_key

    def _touch(self) -> None:
        # Flask's session only re-sends the cookie when flagged as modified
        if hasattr(self.backend, 'modified'):
            self.backend.modified = True

    def load_lines(self) -> List[CartLine]:
        raw = self.backend.get(self.key)
        if not raw:
            return []
        try:
            data = json.loads(raw) if isinstance(raw, str) else raw
            if not isinstance(data, list):
                raise ValueError('cart is not a list')
            return [line_from_dict(item) for item in data]
        except (ValueError, TypeError, KeyError, AttributeError, InvalidOperation) as e:
            logger.warning(f"[CART] Stored cart is corrupt, starting empty: {e}")
            return []

    def save_lines(self, lines: List[CartLine]) -> None:
        self.backend[self.key] = json.dumps([line.to_dict() for line in lines])
        self._touch()

    def load_discount(self) -> Optional[AppliedDiscount]:
        raw = self.backend.get(self.discount_key)
        if not raw:
            return None
        try:
            return AppliedDiscount.from_dict(json.loads(raw) if isinstance(raw, str) else raw)
        except (ValueError, TypeError, KeyError, AttributeError, InvalidOperation) as e:
            logger.warning(f"[CART] Stored discount is corrupt, dropping it: {e}")
            return None

    def save_discount(self, discount: Optional[AppliedDiscount]) -> None:
        if discount is None:
            self.backend.pop(self.discount_key, None)
        else:
            self.backend[self.discount_key] = json.dumps(discount.to_dict())
        self._touch()


def _log_notifier(message: str, category: str) -> None:
    logger.info(f"[CART] ({category}) {message}")


class CartStore:
    """
    Servicio de carrito.

    Responsabilidades:
    - Agregar/eliminar líneas, cambiar cantidades, vaciar
    - Calcular precio por línea y totales
    - Mantener el único cupón aplicado

    Every mutation is written through to the storage immediately.
    """

    def __init__(self, storage: CartStorage, notifier: Optional[Notifier] = None):
        """
        Args:
            storage: Persistence for lines and discount
            notifier: Receives (message, category) user notifications
        """
        self.storage = storage
        self.notify = notifier or _log_notifier
        self._lines: List[CartLine] = storage.load_lines()
        self._discount: Optional[AppliedDiscount] = storage.load_discount()

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines)

    @property
    def applied_discount(self) -> Optional[AppliedDiscount]:
        return self._discount

    def is_empty(self) -> bool:
        return not self._lines

    def _save(self) -> None:
        self.storage.save_lines(self._lines)

    def _find(self, item_id: str, kind: Union[LineKind, str], purchase_mode: Optional[Union[PurchaseMode, str]] = None) -> Optional[CartLine]:
        kind = LineKind(kind)
        mode = PurchaseMode(purchase_mode) if purchase_mode is not None else None
        for line in self._lines:
            if line.id != str(item_id) or line.kind is not kind:
                continue
            if mode is None or line.key[2] is mode:
                return line
        return None

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def add_to_cart(
        self,
        item: Dict[str, Any],
        kind: Union[LineKind, str] = LineKind.PRODUCT,
        purchase_mode: Union[PurchaseMode, str] = PurchaseMode.BAG,
        extra_weight: Any = 0
    ) -> CartLine:
        """
        Add one unit of a catalog item.

        An existing line with the same (id, kind, purchase_mode) gets its
        quantity bumped by one and keeps its extra weight; otherwise a new
        line with quantity 1 is appended.
        """
        new_line = line_from_item(item, kind, purchase_mode, extra_weight)

        existing = next((line for line in self._lines if line.key == new_line.key), None)
        if existing:
            existing.quantity += 1
            self._save()
            self.notify(f'{existing.name} actualizado en el carrito', 'success')
            return existing

        self._lines.append(new_line)
        self._save()
        self.notify(f'{new_line.name} agregado al carrito', 'success')
        return new_line

    def remove_from_cart(
        self,
        item_id: str,
        kind: Union[LineKind, str],
        purchase_mode: Optional[Union[PurchaseMode, str]] = None
    ) -> Optional[CartLine]:
        """
        Remove the first line matching (id, kind), narrowed by purchase_mode
        when given. Returns the removed line, or None if nothing matched.
        """
        line = self._find(item_id, kind, purchase_mode)
        if line is None:
            return None

        self._lines.remove(line)
        self._save()
        self.notify(f'{line.name} eliminado del carrito', 'error')
        return line

    def update_quantity(
        self,
        item_id: str,
        kind: Union[LineKind, str],
        quantity: int,
        purchase_mode: Optional[Union[PurchaseMode, str]] = None
    ) -> Optional[CartLine]:
        """Set a line's quantity; below 1 removes the line instead."""
        if quantity < 1:
            self.remove_from_cart(item_id, kind, purchase_mode)
            return None

        line = self._find(item_id, kind, purchase_mode)
        if line is None:
            return None

        # No upper bound: stock limits are enforced by the backend
        line.quantity = int(quantity)
        self._save()
        return line

    def clear_cart(self) -> None:
        """Drop every line and the applied discount."""
        self._lines = []
        self._discount = None
        self._save()
        self.storage.save_discount(None)

    def apply_discount(self, discount: AppliedDiscount) -> None:
        """Attach a coupon, replacing any previous one (no stacking)."""
        self._discount = discount
        self.storage.save_discount(discount)

    def remove_discount(self) -> None:
        self._discount = None
        self.storage.save_discount(None)

    # =========================================================================
    # PRICING
    # =========================================================================

    def get_item_price(self, line: CartLine) -> Decimal:
        return get_item_price(line)

    @property
    def cart_total(self) -> Decimal:
        return sum((get_item_price(line) * line.quantity for line in self._lines), Decimal('0'))

    @property
    def cart_count(self) -> int:
        return sum(line.quantity for line in self._lines)

    def get_discounted_total(self) -> Decimal:
        total = self.cart_total
        if self._discount is None:
            return total
        return self._discount.apply(total)

    # =========================================================================
    # LOOSE-WEIGHT MINIMUM
    # =========================================================================

    def has_only_loose(self) -> bool:
        """True when the cart is non-empty and every line is loose weight."""
        if not self._lines:
            return False
        return all(line.is_loose for line in self._lines)

    def has_loose(self) -> bool:
        return any(line.is_loose for line in self._lines)

    def meets_minimum_purchase(self, total: Decimal, minimum: Union[int, Decimal]) -> bool:
        """Only carts made exclusively of loose kilos have a minimum."""
        if not self.has_only_loose():
            return True
        return total >= Decimal(str(minimum))

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def to_dict(self) -> Dict[str, Any]:
        """Cart snapshot with per-line prices, as returned by the API."""
        items = []
        for line in self._lines:
            unit_price = get_item_price(line)
            data = line.to_dict()
            data['detail'] = line.detail()
            data['unit_price'] = str(unit_price)
            data['line_total'] = str(unit_price * line.quantity)
            items.append(data)

        return {
            'items': items,
            'cart_count': self.cart_count,
            'cart_total': str(self.cart_total),
            'discounted_total': str(self.get_discounted_total()),
            'applied_discount': self._discount.to_dict() if self._discount else None,
        }

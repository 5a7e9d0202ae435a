"""
Order submission service.

Identified callers get a persisted order; everybody gets the WhatsApp link.
A failure saving the order is logged and reported, never raised: the sale
must still reach the seller through the chat channel.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from mascotas.exceptions import BackendError, BusinessLogicError
from mascotas.models import CartLine, Order
from mascotas.services.api_client import BackendClient
from mascotas.services.cart_service import CartStore, get_item_price
from mascotas.services.checkout_service import CheckoutTotals, compute_totals
from mascotas.services.currency_service import CurrencyProvider
from mascotas.services.whatsapp_service import CheckoutData, build_whatsapp_message, build_whatsapp_url

logger = logging.getLogger(__name__)


@dataclass
class PersistenceOutcome:
    """Result of trying to save the order in the backend."""
    attempted: bool
    succeeded: bool = False
    order: Optional[Order] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'attempted': self.attempted,
            'succeeded': self.succeeded,
            'order_id': self.order.id if self.order else None,
            'error': self.error,
        }


@dataclass
class SubmissionResult:
    whatsapp_url: str
    message: str
    totals: CheckoutTotals
    persistence: PersistenceOutcome


def build_order_payload(
    lines: List[CartLine],
    checkout: CheckoutData,
    totals: CheckoutTotals,
    currency: CurrencyProvider
) -> Dict[str, Any]:
    """Body for ``POST /orders``, with unit prices frozen at order time."""
    return {
        'items': [
            {
                'product': line.id,
                'nombre': line.name,
                'precio': float(get_item_price(line)),
                'quantity': line.quantity,
                'type': line.kind.value,
                'detail': line.detail(),
            }
            for line in lines
        ],
        'subtotal': float(totals.subtotal),
        'discountCode': totals.discount_code,
        'discountValue': float(totals.discount_value),
        'total': float(totals.total),
        'shippingData': {
            'name': checkout.name,
            'phone': checkout.phone,
            'email': checkout.email or '',
            'city': checkout.city,
        },
        'paymentMethod': checkout.payment_method,
        'observations': checkout.observations,
        'surcharge': float(totals.surcharge),
        'exchangeRate': float(currency.exchange_rate),
        'subtotalConverted': float(currency.convert(totals.subtotal)),
        'totalConverted': float(currency.convert(totals.total)),
    }


class OrderService:
    """Turns the resolved cart into an order record and a chat message."""

    def __init__(
        self,
        client: BackendClient,
        currency: CurrencyProvider,
        store_name: str,
        whatsapp_phone: str,
        whatsapp_base_url: str = 'https://wa.me',
        min_loose_purchase: int = 14000
    ):
        self.client = client
        self.currency = currency
        self.store_name = store_name
        self.whatsapp_phone = whatsapp_phone
        self.whatsapp_base_url = whatsapp_base_url
        self.min_loose_purchase = min_loose_purchase

    def check_submittable(self, store: CartStore, totals: CheckoutTotals) -> None:
        """
        Raises:
            BusinessLogicError: Empty cart, or loose-only cart under the minimum
        """
        if store.is_empty():
            raise BusinessLogicError('El carrito está vacío')
        if not store.meets_minimum_purchase(self.currency.convert(totals.total), self.min_loose_purchase):
            raise BusinessLogicError(
                f'El mínimo de compra para kilos sueltos es {self.currency.format(self.min_loose_purchase)}'
            )

    def _persist(self, payload: Dict[str, Any]) -> PersistenceOutcome:
        try:
            response = self.client.create_order(payload)
        except BackendError as e:
            logger.error(f"[ORDER] Error al guardar el pedido: {e.message}")
            return PersistenceOutcome(attempted=True, error=e.message)

        order = None
        if response.get('data'):
            try:
                order = Order.from_api(response['data'])
            except (KeyError, ValueError, ArithmeticError) as e:
                logger.warning(f"[ORDER] Unexpected order payload from backend: {e}")
        if order:
            logger.info(f"[ORDER] Order {order.id} saved ({payload['total']})")
        return PersistenceOutcome(attempted=True, succeeded=True, order=order)

    def submit(self, store: CartStore, checkout: CheckoutData, is_identified: bool) -> SubmissionResult:
        """
        Submit the checkout.

        1. Reconcile totals for the chosen payment method
        2. Save the order when the caller is identified (failures swallowed)
        3. Build the WhatsApp link (always)
        4. Clear the cart
        """
        totals = compute_totals(store, checkout.payment_method)
        self.check_submittable(store, totals)
        lines = store.lines

        if is_identified:
            persistence = self._persist(build_order_payload(lines, checkout, totals, self.currency))
        else:
            persistence = PersistenceOutcome(attempted=False)

        message = build_whatsapp_message(
            checkout,
            lines,
            self.currency.format(totals.total),
            self.store_name,
            discount_code=totals.discount_code,
            free_shipping=totals.free_shipping,
        )
        url = build_whatsapp_url(message, self.whatsapp_phone, self.whatsapp_base_url)

        store.clear_cart()
        return SubmissionResult(whatsapp_url=url, message=message, totals=totals, persistence=persistence)

    def my_orders(self) -> List[Order]:
        """Past orders of the identified caller."""
        response = self.client.get_my_orders()
        return [Order.from_api(o) for o in response.get('data') or []]

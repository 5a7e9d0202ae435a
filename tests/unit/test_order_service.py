"""
Unit tests for order submission (persistence + WhatsApp message).
"""

from decimal import Decimal
from urllib.parse import unquote

import pytest

from mascotas.exceptions import BackendError, BusinessLogicError
from mascotas.models import AppliedDiscount, DiscountKind
from mascotas.services.currency_service import CurrencyProvider
from mascotas.services.order_service import OrderService
from mascotas.services.whatsapp_service import CheckoutData, build_whatsapp_message, build_whatsapp_url


@pytest.fixture
def order_service(backend):
    return OrderService(
        client=backend,
        currency=CurrencyProvider(),
        store_name='Mayorista Mascotas',
        whatsapp_phone='5491134750981',
        min_loose_purchase=14000,
    )


@pytest.fixture
def checkout():
    return CheckoutData(
        name='Ana Gómez',
        phone='11 5555-1234',
        city='Tigre',
        payment_method='Transferencia (+3.5%)',
        observations='Entregar por la tarde',
    )


class TestSubmit:

    def test_identified_caller_persists_order(self, order_service, backend, store, checkout, dog_food, combo):
        store.add_to_cart(dog_food)
        store.add_to_cart(combo, kind='combo')
        store.apply_discount(AppliedDiscount('MIL', DiscountKind.FIXED, Decimal('1000')))
        backend.create_order.return_value = {
            'success': True,
            'data': {'_id': 'abc123def456', 'items': [], 'total': 5175, 'status': 'pendiente'},
        }

        result = order_service.submit(store, checkout, is_identified=True)

        payload = backend.create_order.call_args[0][0]
        assert payload['subtotal'] == 6000.0
        assert payload['discountCode'] == 'MIL'
        assert payload['discountValue'] == 1000.0
        assert payload['surcharge'] == 175.0
        assert payload['total'] == 5175.0
        assert payload['subtotal'] - payload['discountValue'] + payload['surcharge'] == payload['total']
        assert payload['shippingData'] == {'name': 'Ana Gómez', 'phone': '11 5555-1234', 'email': '', 'city': 'Tigre'}
        assert payload['items'][0] == {
            'product': 'p-dog', 'nombre': 'Alimento Perro Adulto 15kg', 'precio': 1000.0,
            'quantity': 1, 'type': 'product', 'detail': 'Bolsa',
        }
        assert payload['items'][1]['type'] == 'combo'
        assert payload['exchangeRate'] == 1.0

        assert result.persistence.succeeded
        assert result.persistence.order.id == 'abc123def456'
        assert store.is_empty()
        assert store.applied_discount is None

    def test_anonymous_caller_is_not_persisted(self, order_service, backend, store, checkout, dog_food):
        store.add_to_cart(dog_food)

        result = order_service.submit(store, checkout, is_identified=False)

        backend.create_order.assert_not_called()
        assert result.persistence.attempted is False
        assert result.whatsapp_url.startswith('https://wa.me/5491134750981?text=')

    def test_persistence_failure_still_builds_message(self, order_service, backend, store, checkout, dog_food):
        store.add_to_cart(dog_food)
        backend.create_order.side_effect = BackendError()

        result = order_service.submit(store, checkout, is_identified=True)

        assert result.persistence.attempted
        assert not result.persistence.succeeded
        assert result.persistence.error == 'El servidor no está disponible'
        assert '*TOTAL:* $ 1.035' in result.message
        assert store.is_empty()

    def test_empty_cart_is_rejected(self, order_service, store, checkout):
        with pytest.raises(BusinessLogicError):
            order_service.submit(store, checkout, is_identified=False)

    def test_loose_only_cart_under_minimum_is_rejected(self, order_service, backend, store, checkout, dog_food):
        store.add_to_cart(dog_food, purchase_mode='loose', extra_weight=5)

        with pytest.raises(BusinessLogicError) as exc:
            order_service.submit(store, checkout, is_identified=True)

        assert '$ 14.000' in exc.value.message
        backend.create_order.assert_not_called()
        assert not store.is_empty()

    def test_loose_only_cart_over_minimum(self, order_service, store, checkout, dog_food):
        store.add_to_cart(dog_food, purchase_mode='loose', extra_weight=150)

        result = order_service.submit(store, checkout, is_identified=False)

        assert result.totals.total == Decimal('15525.00')


class TestWhatsappMessage:

    def test_message_lines(self, store, checkout, dog_food, combo):
        store.add_to_cart(dog_food, purchase_mode='bag', extra_weight=2)
        store.add_to_cart(combo, kind='combo')
        store.add_to_cart(combo, kind='combo')

        message = build_whatsapp_message(checkout, store.lines, '$ 10.000', 'Mayorista Mascotas', discount_code='ENVIO', free_shipping=True)

        assert message.startswith('*NUEVO PEDIDO - Mayorista Mascotas*\n\n')
        assert '*Cliente:* Ana Gómez\n' in message
        assert '*Ciudad/Zona:* Tigre\n' in message
        assert '*Pago:* Transferencia (+3.5%)\n' in message
        assert '*Observaciones:* Entregar por la tarde\n' in message
        assert '- Alimento Perro Adulto 15kg x1 (Producto - Bolsa + 2kg extra)\n' in message
        assert '- Combo Cachorro x2 (Combo)\n' in message
        assert '*Cupón:* ENVIO (envío gratis)' in message
        assert '*TOTAL:* $ 10.000' in message

    def test_observations_omitted_when_empty(self, store, dog_food):
        store.add_to_cart(dog_food)
        data = CheckoutData(name='A', phone='1', city='C', payment_method='Efectivo')

        assert 'Observaciones' not in build_whatsapp_message(data, store.lines, '$ 1', 'X')

    def test_url_escaping(self):
        url = build_whatsapp_url('*Hola* & chau\n(1+1)', '5491100000000')

        assert url == 'https://wa.me/5491100000000?text=*Hola*%20%26%20chau%0A(1%2B1)'
        assert unquote(url.split('text=')[1]) == '*Hola* & chau\n(1+1)'

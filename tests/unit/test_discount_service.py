"""
Unit tests for coupon validation.
"""

from decimal import Decimal

import pytest

from mascotas.exceptions import BackendError
from mascotas.models import AppliedDiscount, DiscountKind
from mascotas.services.discount_service import DEFAULT_REJECTION, DiscountService


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def service(backend, clock):
    return DiscountService(backend, feedback_seconds=3, clock=clock)


class TestValidate:

    def test_success_applies_descriptor(self, service, backend, store, dog_food):
        store.add_to_cart(dog_food)
        backend.validate_discount.return_value = {
            'success': True,
            'data': {'code': 'verano10', 'type': 'percentage', 'value': 10, 'minPurchase': 500},
        }

        result = service.validate(store, ' verano10 ', is_identified=True)

        assert result.success
        assert result.message == 'VERANO10 aplicado'
        backend.validate_discount.assert_called_once_with('VERANO10', 1000.0, True)
        assert store.applied_discount.kind is DiscountKind.PERCENTAGE
        assert store.get_discounted_total() == Decimal('900')

    def test_shipping_coupon_is_applied(self, service, backend, store, dog_food):
        store.add_to_cart(dog_food)
        backend.validate_discount.return_value = {
            'success': True,
            'data': {'code': 'ENVIO', 'type': 'shipping', 'value': 0},
        }

        result = service.validate(store, 'envio', is_identified=True)

        assert result.success
        assert store.applied_discount.kind is DiscountKind.FREE_SHIPPING
        assert store.applied_discount.waives_shipping
        assert store.get_discounted_total() == store.cart_total

    def test_rejection_message_is_shown_verbatim(self, service, backend, store, dog_food):
        store.add_to_cart(dog_food)
        backend.validate_discount.side_effect = BackendError('Compra mínima no alcanzada', status_code=400)

        result = service.validate(store, 'BIG', is_identified=False)

        assert not result.success
        assert result.message == 'Compra mínima no alcanzada'
        assert store.applied_discount is None

    def test_backend_down_gives_generic_rejection(self, service, backend, store, dog_food):
        store.add_to_cart(dog_food)
        backend.validate_discount.side_effect = BackendError()

        result = service.validate(store, 'PROMO', is_identified=False)

        assert result.message == DEFAULT_REJECTION
        assert store.get_discounted_total() == store.cart_total

    def test_failure_keeps_previous_discount(self, service, backend, store, dog_food):
        store.add_to_cart(dog_food)
        store.apply_discount(AppliedDiscount('VIEJO', DiscountKind.FIXED, Decimal('100')))
        backend.validate_discount.return_value = {'success': False, 'message': 'Cupón agotado'}

        result = service.validate(store, 'NUEVO', is_identified=True)

        assert result.message == 'Cupón agotado'
        assert store.applied_discount.code == 'VIEJO'

    def test_malformed_descriptor_is_rejected(self, service, backend, store):
        backend.validate_discount.return_value = {'success': True, 'data': {'code': 'X', 'type': 'bogus'}}

        result = service.validate(store, 'X', is_identified=False)

        assert not result.success
        assert result.message == DEFAULT_REJECTION
        assert store.applied_discount is None

    def test_empty_code_is_not_sent(self, service, backend, store):
        result = service.validate(store, '   ', is_identified=False)

        assert not result.success
        backend.validate_discount.assert_not_called()


class TestFeedback:

    def test_error_feedback_expires_after_three_seconds(self, service, backend, store, clock):
        backend.validate_discount.return_value = {'success': False, 'message': 'Cupón inválido'}
        service.validate(store, 'NOPE', is_identified=False)

        assert service.feedback.status == 'error'
        clock.now += 2.9
        assert service.feedback is not None
        clock.now += 0.2
        assert service.feedback is None

    def test_expiry_does_not_retry(self, service, backend, store, clock):
        backend.validate_discount.return_value = {'success': False, 'message': 'Cupón inválido'}
        service.validate(store, 'NOPE', is_identified=False)

        clock.now += 10
        assert service.feedback is None
        assert backend.validate_discount.call_count == 1


class TestRemove:

    def test_remove_is_idempotent(self, service, store, dog_food):
        store.add_to_cart(dog_food)
        store.apply_discount(AppliedDiscount('X', DiscountKind.FIXED, Decimal('10')))

        service.remove_discount(store)
        service.remove_discount(store)

        assert store.applied_discount is None
        assert store.get_discounted_total() == store.cart_total

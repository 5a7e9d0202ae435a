"""
Unit tests for cart, discount and order models.
"""

from datetime import datetime
from decimal import Decimal

import pytest

from mascotas.models import (
    AppliedDiscount, ComboLine, DiscountKind, LineKind, Order, OrderStatus,
    ProductLine, PurchaseMode, line_from_dict, line_from_item
)


class TestCartLineModel:

    def test_product_from_catalog_document(self, cat_food):
        line = line_from_item(cat_food, 'product', 'loose', '1.5')

        assert isinstance(line, ProductLine)
        assert line.key == ('p-cat', LineKind.PRODUCT, PurchaseMode.LOOSE)
        assert line.quantity == 1
        assert line.low_tier_price == Decimal('100')
        assert line.high_tier_price == Decimal('80')
        assert line.unit_weight == Decimal('10')
        assert line.category == 'Gatos'

    def test_combo_key_uses_bag(self, combo):
        line = line_from_item(combo, LineKind.COMBO)

        assert isinstance(line, ComboLine)
        assert line.key == ('c-1', LineKind.COMBO, PurchaseMode.BAG)
        assert not line.is_loose

    def test_negative_weight_is_rejected(self, dog_food):
        with pytest.raises(ValueError):
            line_from_item(dog_food, purchase_mode='loose', extra_weight=-1)

    @pytest.mark.parametrize('weight', ['Infinity', float('inf'), 'NaN', '-Infinity'])
    def test_non_finite_weight_is_rejected(self, dog_food, weight):
        with pytest.raises(ValueError):
            line_from_item(dog_food, purchase_mode='loose', extra_weight=weight)

    def test_stored_non_finite_weight_is_invalid(self):
        with pytest.raises(ValueError):
            line_from_dict({'id': 'x', 'kind': 'product', 'quantity': 1, 'extra_weight': 'Infinity'})

    def test_item_without_id_is_rejected(self):
        with pytest.raises(ValueError):
            line_from_item({'nombre': 'Sin id'})

    def test_stored_line_with_zero_quantity_is_invalid(self):
        with pytest.raises(ValueError):
            line_from_dict({'id': 'x', 'kind': 'product', 'quantity': 0})

    def test_to_dict_round_trip(self, dog_food):
        line = line_from_item(dog_food, purchase_mode='loose', extra_weight='2.25')
        assert line_from_dict(line.to_dict()) == line

    @pytest.mark.parametrize('mode, weight, expected', [
        ('bag', 0, 'Bolsa'),
        ('bag', 3, 'Bolsa + 3kg extra'),
        ('loose', 5, '5kg sueltos'),
    ])
    def test_detail(self, dog_food, mode, weight, expected):
        assert line_from_item(dog_food, purchase_mode=mode, extra_weight=weight).detail() == expected


class TestAppliedDiscountModel:

    def test_from_api_normalizes_kind_and_code(self):
        discount = AppliedDiscount.from_api({'code': 'envio', 'type': 'FREE_SHIPPING', 'value': 0})

        assert discount.code == 'ENVIO'
        assert discount.kind is DiscountKind.FREE_SHIPPING
        assert discount.waives_shipping

    @pytest.mark.parametrize('wire', ['shipping', 'free-shipping', 'free_shipping', 'SHIPPING'])
    def test_free_shipping_spellings(self, wire):
        assert DiscountKind.parse(wire) is DiscountKind.FREE_SHIPPING

    def test_stored_free_shipping_survives_reload(self):
        stored = {'code': 'ENVIO', 'kind': 'free-shipping', 'value': '0', 'min_purchase': '0'}
        assert AppliedDiscount.from_dict(stored).kind is DiscountKind.FREE_SHIPPING

    def test_fixed_floor(self):
        discount = AppliedDiscount('X', DiscountKind.FIXED, Decimal('500'))
        assert discount.apply(Decimal('200')) == Decimal('0')

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            DiscountKind.parse('buy-one-get-one')


class TestOrderModel:

    @pytest.fixture
    def api_order(self):
        return {
            '_id': '65f1a2b3c4d5e6f7a8b9c0d1',
            'items': [
                {'product': {'_id': 'p1'}, 'nombre': 'Alimento', 'precio': 1000, 'quantity': 2, 'type': 'product'},
                {'product': 'c1', 'nombre': 'Combo', 'precio': 5000, 'quantity': 1, 'type': 'combo'},
            ],
            'subtotal': 7000,
            'discountCode': 'DIEZ',
            'discountValue': 700,
            'surcharge': 630,
            'total': 6930,
            'shippingData': {'name': 'Ana', 'phone': '11', 'city': 'Tigre', 'email': ''},
            'paymentMethod': 'Tarjeta (+10%)',
            'status': 'enviado',
            'createdAt': '2026-03-01T14:30:00.000Z',
        }

    def test_from_api(self, api_order):
        order = Order.from_api(api_order)

        assert order.items[0].product == 'p1'
        assert order.items[0].line_total == Decimal('2000')
        assert order.status is OrderStatus.SHIPPED
        assert order.status.label == 'Enviado'
        assert order.payment_label == 'Tarjeta'
        assert order.short_id == 'B9C0D1'
        assert order.shipping.email is None
        assert order.created_at == datetime.fromisoformat('2026-03-01T14:30:00+00:00')

    def test_reconciled(self, api_order):
        assert Order.from_api(api_order).is_reconciled()

    def test_not_reconciled(self, api_order):
        api_order['total'] = 7000
        assert not Order.from_api(api_order).is_reconciled()

    def test_to_dict(self, api_order):
        data = Order.from_api(api_order).to_dict()

        assert data['status'] == 'enviado'
        assert data['total'] == '6930'
        assert data['items'][1]['kind'] == 'combo'

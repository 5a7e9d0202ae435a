"""
Unit tests for the cart store and its persistence.
"""

import json
from decimal import Decimal

from mascotas.models import AppliedDiscount, DiscountKind, LineKind, PurchaseMode
from mascotas.services.cart_service import CART_KEY, CartStorage, CartStore


class TestAddToCart:

    def test_same_key_increments_quantity(self, store, dog_food):
        for _ in range(5):
            store.add_to_cart(dog_food)

        assert len(store.lines) == 1
        assert store.lines[0].quantity == 5
        assert store.cart_count == 5

    def test_different_purchase_mode_creates_new_line(self, store, dog_food):
        store.add_to_cart(dog_food, purchase_mode='bag')
        store.add_to_cart(dog_food, purchase_mode='loose', extra_weight=5)

        assert len(store.lines) == 2
        assert {line.purchase_mode for line in store.lines} == {PurchaseMode.BAG, PurchaseMode.LOOSE}

    def test_increment_keeps_first_extra_weight(self, store, dog_food):
        store.add_to_cart(dog_food, purchase_mode='loose', extra_weight=2)
        store.add_to_cart(dog_food, purchase_mode='loose', extra_weight=7)

        line = store.lines[0]
        assert line.quantity == 2
        assert line.extra_weight == Decimal('2')

    def test_product_and_combo_with_same_id_are_distinct(self, store, dog_food, combo):
        combo['_id'] = dog_food['_id']
        store.add_to_cart(dog_food)
        store.add_to_cart(combo, kind='combo')

        assert [line.kind for line in store.lines] == [LineKind.PRODUCT, LineKind.COMBO]

    def test_notifications(self, store, notifications, dog_food):
        store.add_to_cart(dog_food)
        store.add_to_cart(dog_food)

        assert notifications == [
            ('success', 'Alimento Perro Adulto 15kg agregado al carrito'),
            ('success', 'Alimento Perro Adulto 15kg actualizado en el carrito'),
        ]


class TestRemoveAndUpdate:

    def test_remove_only_first_match(self, store, dog_food):
        store.add_to_cart(dog_food, purchase_mode='bag')
        store.add_to_cart(dog_food, purchase_mode='loose', extra_weight=3)

        removed = store.remove_from_cart('p-dog', 'product')

        assert removed.purchase_mode is PurchaseMode.BAG
        assert len(store.lines) == 1
        assert store.lines[0].purchase_mode is PurchaseMode.LOOSE

    def test_remove_with_purchase_mode(self, store, dog_food):
        store.add_to_cart(dog_food, purchase_mode='bag')
        store.add_to_cart(dog_food, purchase_mode='loose', extra_weight=3)

        store.remove_from_cart('p-dog', 'product', purchase_mode='loose')

        assert [line.purchase_mode for line in store.lines] == [PurchaseMode.BAG]

    def test_remove_missing_is_silent(self, store, notifications):
        assert store.remove_from_cart('nope', 'product') is None
        assert notifications == []

    def test_remove_notifies_with_line_name(self, store, notifications, combo):
        store.add_to_cart(combo, kind='combo')
        store.remove_from_cart('c-1', 'combo')

        assert notifications[-1] == ('error', 'Combo Cachorro eliminado del carrito')

    def test_update_quantity_sets_value(self, store, dog_food):
        store.add_to_cart(dog_food)
        store.update_quantity('p-dog', 'product', 250)

        assert store.lines[0].quantity == 250

    def test_update_quantity_below_one_removes(self, store, dog_food):
        store.add_to_cart(dog_food)
        assert store.update_quantity('p-dog', LineKind.PRODUCT, 0) is None
        assert store.is_empty()

    def test_clear_cart_drops_discount(self, store, dog_food):
        store.add_to_cart(dog_food)
        store.apply_discount(AppliedDiscount('PROMO', DiscountKind.FIXED, Decimal('100')))

        store.clear_cart()

        assert store.is_empty()
        assert store.applied_discount is None
        assert store.cart_total == Decimal('0')


class TestTotals:

    def test_cart_total_sums_lines(self, store, dog_food, combo):
        store.add_to_cart(dog_food)
        store.add_to_cart(dog_food)
        store.add_to_cart(combo, kind='combo')

        assert store.cart_total == Decimal('7000')

    def test_fixed_discount_never_negative(self, store, dog_food):
        store.add_to_cart(dog_food)
        store.apply_discount(AppliedDiscount('MEGA', DiscountKind.FIXED, Decimal('5000')))

        assert store.get_discounted_total() == Decimal('0')

    def test_percentage_discount(self, store, dog_food):
        store.add_to_cart(dog_food)
        store.apply_discount(AppliedDiscount('DIEZ', DiscountKind.PERCENTAGE, Decimal('10')))

        assert store.get_discounted_total() == Decimal('900')

    def test_free_shipping_leaves_total(self, store, dog_food):
        store.add_to_cart(dog_food)
        store.apply_discount(AppliedDiscount('ENVIO', DiscountKind.FREE_SHIPPING))

        assert store.get_discounted_total() == store.cart_total

    def test_new_discount_replaces_previous(self, store, dog_food):
        store.add_to_cart(dog_food)
        store.apply_discount(AppliedDiscount('UNO', DiscountKind.FIXED, Decimal('100')))
        store.apply_discount(AppliedDiscount('DOS', DiscountKind.FIXED, Decimal('300')))

        assert store.applied_discount.code == 'DOS'
        assert store.get_discounted_total() == Decimal('700')

    def test_remove_discount_is_idempotent(self, store, dog_food):
        store.add_to_cart(dog_food)
        store.remove_discount()
        store.remove_discount()

        assert store.get_discounted_total() == store.cart_total


class TestLooseMinimum:

    def test_only_loose_cart_below_minimum(self, store, dog_food):
        store.add_to_cart(dog_food, purchase_mode='loose', extra_weight=2)

        assert store.has_only_loose()
        assert not store.meets_minimum_purchase(store.cart_total, 14000)

    def test_mixed_cart_has_no_minimum(self, store, dog_food):
        store.add_to_cart(dog_food, purchase_mode='loose', extra_weight=2)
        store.add_to_cart(dog_food, purchase_mode='bag')

        assert store.has_loose()
        assert not store.has_only_loose()
        assert store.meets_minimum_purchase(store.cart_total, 14000)

    def test_empty_cart_is_not_loose_only(self, store):
        assert not store.has_only_loose()


class TestPersistence:

    def test_round_trip_preserves_lines(self, storage_backend, store, dog_food, cat_food, combo):
        store.add_to_cart(cat_food, purchase_mode='bag', extra_weight=3)
        store.add_to_cart(dog_food, purchase_mode='loose', extra_weight='4.5')
        store.add_to_cart(combo, kind='combo')
        store.update_quantity('p-cat', 'product', 11)

        reloaded = CartStore(CartStorage(storage_backend))

        assert reloaded.lines == store.lines
        assert reloaded.cart_total == store.cart_total

    def test_discount_survives_reload(self, storage_backend, store, dog_food):
        store.add_to_cart(dog_food)
        store.apply_discount(AppliedDiscount('promo', DiscountKind.PERCENTAGE, Decimal('15')))

        reloaded = CartStore(CartStorage(storage_backend))

        assert reloaded.applied_discount.code == 'PROMO'
        assert reloaded.get_discounted_total() == store.get_discounted_total()

    def test_every_mutation_is_written(self, storage_backend, store, dog_food):
        store.add_to_cart(dog_food)
        assert json.loads(storage_backend[CART_KEY])[0]['quantity'] == 1

        store.update_quantity('p-dog', 'product', 4)
        assert json.loads(storage_backend[CART_KEY])[0]['quantity'] == 4

        store.remove_from_cart('p-dog', 'product')
        assert json.loads(storage_backend[CART_KEY]) == []

    def test_corrupt_storage_loads_empty(self):
        for raw in ('{not json', '{"a": 1}', '[{"kind": "product"}]', '[{"id": "x", "kind": "gift", "quantity": 1}]'):
            store = CartStore(CartStorage({CART_KEY: raw}))
            assert store.is_empty()

    def test_missing_storage_loads_empty(self):
        assert CartStore(CartStorage({})).is_empty()

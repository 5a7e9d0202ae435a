"""
Cart blueprint: cart lines, quantities and the applied coupon.

The cart lives in the signed session cookie; every endpoint answers with the
recomputed cart snapshot plus any notifications raised while handling it.
"""

from typing import Any, Dict, Optional, Tuple, Union

from flask import Blueprint, Response, current_app, g, jsonify, request

from mascotas.exceptions import BackendError, BusinessLogicError, NotFoundError
from mascotas.forms.checkout_forms import CouponForm
from mascotas.models import LineKind, PurchaseMode
from mascotas.services.cart_service import CartStore
from mascotas.services.discount_service import DiscountService
from mascotas.utils.request_context import (
    form_errors, get_backend, get_cart_store, get_currency, pop_notifications
)


cart_bp = Blueprint('cart', __name__, url_prefix='/cart')


def _parse_kind(value: Optional[str]) -> LineKind:
    try:
        return LineKind(value or LineKind.PRODUCT.value)
    except ValueError:
        raise BusinessLogicError(f'Tipo de ítem inválido: {value}')


def _parse_mode(value: Optional[str]) -> Optional[PurchaseMode]:
    if value is None:
        return None
    try:
        return PurchaseMode(value)
    except ValueError:
        raise BusinessLogicError(f'Modo de compra inválido: {value}')


def cart_payload(store: CartStore, **extra: Any) -> Dict[str, Any]:
    """Cart snapshot with display amounts and pending notifications."""
    currency = get_currency()
    body = {
        'status': 'success',
        'cart': store.to_dict(),
        'display': {
            'cart_total': currency.format(store.cart_total),
            'discounted_total': currency.format(store.get_discounted_total()),
        },
        'notifications': pop_notifications(),
    }
    body.update(extra)
    return body


def _fetch_catalog_item(kind: LineKind, item_id: str) -> Dict[str, Any]:
    """Load the item from the backend so prices never come from the client."""
    client = get_backend()
    try:
        if kind is LineKind.COMBO:
            response = client.get_combo(item_id)
        else:
            response = client.get_product(item_id)
    except BackendError as e:
        if e.status_code == 404:
            raise NotFoundError('Producto no encontrado')
        raise

    item = response.get('data')
    if not item:
        raise NotFoundError('Producto no encontrado')
    return item


@cart_bp.route('', methods=['GET'])
def view_cart() -> Response:
    """Current cart with per-line prices and totals."""
    return jsonify(cart_payload(get_cart_store()))


@cart_bp.route('/items', methods=['POST'])
def add_item() -> Union[Response, Tuple[Response, int]]:
    """
    Add one unit of a product or combo.

    Body: {"id": str, "kind": "product"|"combo",
           "purchase_mode": "bag"|"loose", "extra_weight": number}
    """
    data = request.get_json(silent=True) or {}
    item_id = str(data.get('id') or '').strip()
    if not item_id:
        raise BusinessLogicError('Falta el identificador del producto')

    kind = _parse_kind(data.get('kind'))
    mode = _parse_mode(data.get('purchase_mode')) or PurchaseMode.BAG
    item = _fetch_catalog_item(kind, item_id)

    store = get_cart_store()
    try:
        line = store.add_to_cart(item, kind, mode, data.get('extra_weight') or 0)
    except (ValueError, ArithmeticError) as e:
        current_app.logger.warning(f"[CART] Rejected item {item_id}: {e}")
        raise BusinessLogicError('Cantidad de kilos inválida')

    return jsonify(cart_payload(store, line=line.to_dict())), 201


@cart_bp.route('/items/<kind>/<item_id>', methods=['PATCH'])
def update_item(kind: str, item_id: str) -> Response:
    """Body: {"quantity": int, "purchase_mode": optional}. Below 1 removes the line."""
    data = request.get_json(silent=True) or {}
    try:
        quantity = int(data.get('quantity'))
    except (TypeError, ValueError):
        raise BusinessLogicError('Cantidad inválida')

    line_kind = _parse_kind(kind)
    mode = _parse_mode(data.get('purchase_mode'))

    store = get_cart_store()
    line = store.update_quantity(item_id, line_kind, quantity, mode)
    if line is None and quantity >= 1:
        raise NotFoundError('El producto no está en el carrito')

    return jsonify(cart_payload(store))


@cart_bp.route('/items/<kind>/<item_id>', methods=['DELETE'])
def remove_item(kind: str, item_id: str) -> Response:
    """Remove a line; ?purchase_mode= narrows which line when both exist."""
    store = get_cart_store()
    removed = store.remove_from_cart(item_id, _parse_kind(kind), _parse_mode(request.args.get('purchase_mode')))
    if removed is None:
        raise NotFoundError('El producto no está en el carrito')
    return jsonify(cart_payload(store))


@cart_bp.route('', methods=['DELETE'])
def clear_cart() -> Response:
    store = get_cart_store()
    store.clear_cart()
    return jsonify(cart_payload(store))


@cart_bp.route('/discount', methods=['POST'])
def apply_discount() -> Union[Response, Tuple[Response, int]]:
    """Validate a coupon against the backend and attach it to the cart."""
    form = CouponForm()
    if not form.validate_on_submit():
        return form_errors(form)

    store = get_cart_store()
    service = DiscountService(get_backend(), current_app.config['COUPON_FEEDBACK_SECONDS'])
    result = service.validate(store, form.code.data, g.get('is_authenticated', False))

    feedback = {
        'status': 'success' if result.success else 'error',
        'message': result.message,
        'expires_in': service.feedback_seconds,
    }
    if not result.success:
        return jsonify(cart_payload(store, status='error', message=result.message, feedback=feedback)), 400

    return jsonify(cart_payload(store, feedback=feedback))


@cart_bp.route('/discount', methods=['DELETE'])
def remove_discount() -> Response:
    store = get_cart_store()
    DiscountService(get_backend()).remove_discount(store)
    return jsonify(cart_payload(store))

"""
Checkout blueprint: live totals, order submission and the caller's orders.
"""

from typing import Tuple, Union

from flask import Blueprint, Response, current_app, g, jsonify, request

from mascotas.exceptions import BusinessLogicError
from mascotas.forms.checkout_forms import CheckoutForm
from mascotas.middleware import require_login
from mascotas.services.checkout_service import PAYMENT_METHODS, compute_totals
from mascotas.services.order_service import OrderService
from mascotas.utils.request_context import (
    form_errors, get_backend, get_cart_store, get_currency, pop_notifications
)


checkout_bp = Blueprint('checkout', __name__, url_prefix='/checkout')


def get_order_service() -> OrderService:
    config = current_app.config
    return OrderService(
        client=get_backend(),
        currency=get_currency(),
        store_name=config['STORE_NAME'],
        whatsapp_phone=config['WHATSAPP_PHONE'],
        whatsapp_base_url=config['WHATSAPP_BASE_URL'],
        min_loose_purchase=config['MIN_LOOSE_PURCHASE'],
    )


@checkout_bp.route('/summary', methods=['GET'])
def summary() -> Response:
    """Totals for ?payment_method= (defaults to cash), recomputed on every call."""
    payment_method = request.args.get('payment_method', PAYMENT_METHODS[0])
    if payment_method not in PAYMENT_METHODS:
        raise BusinessLogicError('Método de pago inválido')

    store = get_cart_store()
    currency = get_currency()
    totals = compute_totals(store, payment_method)
    minimum = current_app.config['MIN_LOOSE_PURCHASE']

    return jsonify({
        'status': 'success',
        'totals': totals.to_dict(),
        'display': totals.display(currency),
        'payment_methods': list(PAYMENT_METHODS),
        'has_only_loose': store.has_only_loose(),
        'meets_minimum_purchase': store.meets_minimum_purchase(currency.convert(totals.total), minimum),
        'min_loose_purchase': currency.format(minimum),
        'cart_count': store.cart_count,
    })


@checkout_bp.route('', methods=['POST'])
def submit() -> Union[Response, Tuple[Response, int]]:
    """
    Submit the order.

    Identified callers also get the order saved in the backend; a failure
    there is reported under "order" but the WhatsApp link is still returned.
    """
    form = CheckoutForm()
    if not form.validate_on_submit():
        return form_errors(form)

    store = get_cart_store()
    result = get_order_service().submit(store, form.to_checkout_data(), g.get('is_authenticated', False))

    current_app.logger.info(
        f"[CHECKOUT] Order sent via WhatsApp ({result.totals.total}, persisted={result.persistence.succeeded})"
    )
    return jsonify({
        'status': 'success',
        'whatsapp_url': result.whatsapp_url,
        'message': result.message,
        'totals': result.totals.to_dict(),
        'order': result.persistence.to_dict(),
        'notifications': pop_notifications(),
    })


@checkout_bp.route('/my-orders', methods=['GET'])
@require_login
def my_orders() -> Response:
    orders = get_order_service().my_orders()
    return jsonify({'status': 'success', 'orders': [order.to_dict() for order in orders]})

"""
Admin blueprint (back-office).

Every route requires a session user with role 'admin'. Writes are proxied to
the backend with the admin's bearer token; catalog writes drop the cached
listings.
"""

from datetime import datetime
from typing import Any, Dict, Tuple, Union

from flask import Blueprint, Response, current_app, jsonify, request, send_file

from mascotas.blueprints.catalog import CATALOG_CACHE_MODULE
from mascotas.exceptions import BusinessLogicError, NotFoundError
from mascotas.forms.admin_forms import DiscountForm, OrderStatusForm, SettingsForm
from mascotas.middleware import require_admin
from mascotas.models import Order
from mascotas.services.ticket_service import generate_order_ticket_pdf
from mascotas.utils.request_context import form_errors, get_backend, get_currency


admin_bp = Blueprint('admin', __name__, url_prefix='/admin')


def invalidate_catalog_cache() -> None:
    cache = current_app.extensions.get('cache')
    if cache is not None:
        cache.invalidate_module(CATALOG_CACHE_MODULE)


def _json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise BusinessLogicError('Se esperaba un cuerpo JSON')
    return data


def _ok(response: Dict[str, Any], status: int = 200) -> Tuple[Response, int]:
    return jsonify({'status': 'success', 'data': response.get('data'), 'message': response.get('message')}), status


# =========================================================================
# PRODUCTS
# =========================================================================

@admin_bp.route('/products', methods=['GET'])
@require_admin
def list_products():
    return _ok(get_backend().list_products(dict(request.args) or None))


@admin_bp.route('/products', methods=['POST'])
@require_admin
def create_product():
    response = get_backend().create_product(_json_body())
    invalidate_catalog_cache()
    current_app.logger.info("[ADMIN] Product created")
    return _ok(response, 201)


@admin_bp.route('/products/<product_id>', methods=['PUT'])
@require_admin
def update_product(product_id: str):
    response = get_backend().update_product(product_id, _json_body())
    invalidate_catalog_cache()
    return _ok(response)


@admin_bp.route('/products/<product_id>', methods=['DELETE'])
@require_admin
def delete_product(product_id: str):
    response = get_backend().delete_product(product_id)
    invalidate_catalog_cache()
    current_app.logger.info(f"[ADMIN] Product {product_id} deleted")
    return _ok(response)


@admin_bp.route('/products/<product_id>/status', methods=['PATCH'])
@require_admin
def toggle_product_status(product_id: str):
    response = get_backend().toggle_product_status(product_id)
    invalidate_catalog_cache()
    return _ok(response)


# =========================================================================
# COMBOS
# =========================================================================

@admin_bp.route('/combos', methods=['GET'])
@require_admin
def list_combos():
    return _ok(get_backend().list_combos())


@admin_bp.route('/combos', methods=['POST'])
@require_admin
def create_combo():
    response = get_backend().create_combo(_json_body())
    invalidate_catalog_cache()
    return _ok(response, 201)


@admin_bp.route('/combos/<combo_id>', methods=['PUT'])
@require_admin
def update_combo(combo_id: str):
    response = get_backend().update_combo(combo_id, _json_body())
    invalidate_catalog_cache()
    return _ok(response)


@admin_bp.route('/combos/<combo_id>', methods=['DELETE'])
@require_admin
def delete_combo(combo_id: str):
    response = get_backend().delete_combo(combo_id)
    invalidate_catalog_cache()
    return _ok(response)


# =========================================================================
# USERS
# =========================================================================

@admin_bp.route('/users', methods=['GET'])
@require_admin
def list_users():
    return _ok(get_backend().list_users())


@admin_bp.route('/users', methods=['POST'])
@require_admin
def create_user():
    return _ok(get_backend().create_user(_json_body()), 201)


@admin_bp.route('/users/<user_id>', methods=['PUT'])
@require_admin
def update_user(user_id: str):
    return _ok(get_backend().update_user(user_id, _json_body()))


@admin_bp.route('/users/<user_id>', methods=['DELETE'])
@require_admin
def delete_user(user_id: str):
    return _ok(get_backend().delete_user(user_id))


@admin_bp.route('/users/<user_id>/status', methods=['PATCH'])
@require_admin
def toggle_user_status(user_id: str):
    return _ok(get_backend().toggle_user_status(user_id))


@admin_bp.route('/users/<user_id>/points', methods=['PATCH'])
@require_admin
def update_user_points(user_id: str):
    """Body: {"points": int >= 0} (loyalty points)."""
    try:
        points = int(_json_body().get('points'))
    except (TypeError, ValueError):
        raise BusinessLogicError('Los puntos deben ser un número entero')
    if points < 0:
        raise BusinessLogicError('Los puntos no pueden ser negativos')
    return _ok(get_backend().update_user_points(user_id, points))


# =========================================================================
# ORDERS
# =========================================================================

@admin_bp.route('/orders', methods=['GET'])
@require_admin
def list_orders():
    response = get_backend().list_orders()
    orders = [Order.from_api(o) for o in response.get('data') or []]
    status = request.args.get('status')
    if status:
        orders = [o for o in orders if o.status.value == status]
    return jsonify({'status': 'success', 'orders': [o.to_dict() for o in orders]})


@admin_bp.route('/orders/<order_id>/status', methods=['PATCH'])
@require_admin
def update_order_status(order_id: str) -> Union[Response, Tuple[Response, int]]:
    form = OrderStatusForm()
    if not form.validate_on_submit():
        return form_errors(form)

    response = get_backend().update_order_status(order_id, form.status.data)
    current_app.logger.info(f"[ADMIN] Order {order_id} -> {form.status.data}")
    return _ok(response)


@admin_bp.route('/orders/<order_id>/ticket', methods=['GET'])
@require_admin
def order_ticket(order_id: str):
    """Printable PDF ticket of a persisted order."""
    response = get_backend().get_order(order_id)
    if not response.get('data'):
        raise NotFoundError('Pedido no encontrado')
    order = Order.from_api(response['data'])

    config = current_app.config
    business_info = {
        'name': config['STORE_NAME'],
        'address': config['BUSINESS_ADDRESS'],
        'email': config['BUSINESS_EMAIL'],
        'phone': config['BUSINESS_PHONE'],
    }
    pdf_buffer = generate_order_ticket_pdf(order, business_info)

    date_str = (order.created_at or datetime.now()).strftime('%Y%m%d')
    filename = f"Pedido_{order.short_id}_{date_str}.pdf"
    return send_file(
        pdf_buffer,
        mimetype='application/pdf',
        as_attachment=request.args.get('download') == '1',
        download_name=filename
    )


# =========================================================================
# DISCOUNTS
# =========================================================================

@admin_bp.route('/discounts', methods=['GET'])
@require_admin
def list_discounts():
    return _ok(get_backend().list_discounts())


@admin_bp.route('/discounts', methods=['POST'])
@require_admin
def create_discount():
    form = DiscountForm()
    if not form.validate_on_submit():
        return form_errors(form)

    response = get_backend().create_discount(form.to_payload())
    current_app.logger.info(f"[ADMIN] Discount {form.code.data.upper()} created")
    return _ok(response, 201)


@admin_bp.route('/discounts/<discount_id>/assign', methods=['PUT'])
@require_admin
def assign_discount(discount_id: str):
    """Reserve a coupon for one customer. Body: {"user_id": str}."""
    user_id = _json_body().get('user_id')
    if not user_id:
        raise BusinessLogicError('Seleccioná un usuario')
    return _ok(get_backend().update_discount(discount_id, {'assignedTo': user_id}))


@admin_bp.route('/discounts/<discount_id>', methods=['DELETE'])
@require_admin
def delete_discount(discount_id: str):
    return _ok(get_backend().delete_discount(discount_id))


# =========================================================================
# SETTINGS & NEWSLETTER
# =========================================================================

@admin_bp.route('/settings', methods=['GET'])
@require_admin
def get_settings():
    currency = get_currency(refresh=True)
    return jsonify({'status': 'success', 'settings': currency.to_dict()})


@admin_bp.route('/settings', methods=['PUT'])
@require_admin
def update_settings():
    form = SettingsForm()
    if not form.validate_on_submit():
        return form_errors(form)

    currency = get_currency()
    currency.update_settings(form.suggested_price_percentage.data)
    invalidate_catalog_cache()
    return jsonify({'status': 'success', 'settings': currency.to_dict()})


@admin_bp.route('/emails', methods=['GET'])
@require_admin
def list_emails():
    return _ok(get_backend().list_emails())

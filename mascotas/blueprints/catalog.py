"""
Catalog blueprint: read-only product and combo listings.

Listings are cached per query string and annotated with the suggested retail
price and the price per kilo.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Callable, Dict, List, Optional

from flask import Blueprint, Response, current_app, jsonify, request

from mascotas.models import to_decimal
from mascotas.services.checkout_service import PAYMENT_METHODS
from mascotas.services.currency_service import CurrencyProvider
from mascotas.utils.request_context import get_backend, get_currency


catalog_bp = Blueprint('catalog', __name__, url_prefix='/catalog')

CATALOG_CACHE_MODULE = 'catalog'


def _cached(key: str, loader: Callable[[], Any]) -> Any:
    cache = current_app.extensions.get('cache')
    if cache is None:
        return loader()
    return cache.memoize(CATALOG_CACHE_MODULE, key, loader, current_app.config.get('CACHE_CATALOG_TTL'))


def _cache_key(name: str) -> str:
    args = sorted(request.args.items())
    if not args:
        return f"{name}:all"
    return name + ':' + '&'.join(f"{k}={v}" for k, v in args)


def price_per_kilo(product: Dict[str, Any]) -> Optional[int]:
    """round(precioLista / kilos), or None when the weight is unknown."""
    try:
        kilos = to_decimal(product.get('kilos'))
        list_price = to_decimal(product.get('precioLista'))
    except (InvalidOperation, ValueError):
        return None
    if kilos <= 0:
        return None
    return int((list_price / kilos).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def annotate_product(product: Dict[str, Any], currency: CurrencyProvider) -> Dict[str, Any]:
    annotated = dict(product)
    try:
        annotated['suggestedPrice'] = float(currency.suggested_price(to_decimal(product.get('precio'))))
    except (InvalidOperation, ValueError):
        annotated['suggestedPrice'] = None
    annotated['pricePerKilo'] = price_per_kilo(product)
    return annotated


@catalog_bp.route('/products', methods=['GET'])
def list_products() -> Response:
    """Products (filters such as ?category= are forwarded to the backend)."""
    client = get_backend()
    params = dict(request.args) or None
    response = _cached(_cache_key('products'), lambda: client.list_products(params))

    currency = get_currency(refresh=True)
    products: List[Dict[str, Any]] = response.get('data') or []
    return jsonify({
        'status': 'success',
        'products': [annotate_product(p, currency) for p in products],
    })


@catalog_bp.route('/combos', methods=['GET'])
def list_combos() -> Response:
    client = get_backend()
    response = _cached(_cache_key('combos'), client.list_combos)
    return jsonify({'status': 'success', 'combos': response.get('data') or []})


@catalog_bp.route('/settings', methods=['GET'])
def settings() -> Response:
    """Public pricing settings used by the storefront."""
    currency = get_currency(refresh=True)
    config = current_app.config
    return jsonify({
        'status': 'success',
        'settings': currency.to_dict(),
        'min_loose_purchase': config['MIN_LOOSE_PURCHASE'],
        'payment_methods': list(PAYMENT_METHODS),
        'whatsapp_phone': config['WHATSAPP_PHONE'],
    })

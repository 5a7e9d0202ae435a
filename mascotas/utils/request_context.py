"""Per-request service wiring shared by the blueprints."""
from typing import Any, Dict, List

from flask import current_app, flash, g, get_flashed_messages, jsonify, session

from mascotas.services.api_client import BackendClient
from mascotas.services.cart_service import CartStorage, CartStore
from mascotas.services.currency_service import CurrencyProvider


def get_backend() -> BackendClient:
    """Backend client acting on behalf of the current caller."""
    return current_app.extensions['backend'].with_token(g.get('auth_token'))


def get_cart_store() -> CartStore:
    """Fresh cart store over the session; notifications go to flash()."""
    return CartStore(CartStorage(session), notifier=flash)


def get_currency(refresh: bool = False) -> CurrencyProvider:
    provider = CurrencyProvider(
        client=get_backend(),
        cache=current_app.extensions.get('cache'),
        default_percentage=current_app.config['DEFAULT_SUGGESTED_PRICE_PERCENTAGE'],
        settings_ttl=current_app.config.get('CACHE_SETTINGS_TTL'),
    )
    if refresh:
        provider.refresh_settings()
    return provider


def pop_notifications() -> List[Dict[str, str]]:
    """Flashed notifications of this request, consumed for the JSON body."""
    return [
        {'category': category, 'message': message}
        for category, message in get_flashed_messages(with_categories=True)
    ]


def form_errors(form: Any):
    """Field-level validation errors (422)."""
    return jsonify({'status': 'error', 'message': 'Revisá los datos ingresados', 'errors': form.errors}), 422

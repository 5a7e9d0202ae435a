"""REST backend client for catalog, discounts, orders, settings and admin CRUD."""
import logging
from typing import Any, Dict, Optional

import requests

from mascotas.exceptions import BackendError

logger = logging.getLogger(__name__)


def _extract_message(response: Optional[requests.Response]) -> Optional[str]:
    """Pull the backend's ``message`` out of an error response, if any."""
    if response is None:
        return None
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get('message')
    return None


class BackendClient:
    """Cliente para interactuar con la API REST del backend."""

    def __init__(
        self,
        base_url: str,
        timeout: int = 10,
        token: Optional[str] = None,
        http: Optional[requests.Session] = None
    ):
        """
        Initialize backend client.

        Args:
            base_url: API root, e.g. https://api.example.com/api
            timeout: Seconds before a request is abandoned
            token: Bearer token of the identified caller (None for anonymous)
            http: Shared requests session (connection pooling)
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.token = token
        self.http = http or requests.Session()

    def with_token(self, token: Optional[str]) -> 'BackendClient':
        """Same backend, acting on behalf of another caller."""
        return BackendClient(self.base_url, self.timeout, token, self.http)

    @property
    def headers(self) -> Dict[str, str]:
        headers = {'Content-Type': 'application/json'}
        if self.token:
            headers['Authorization'] = f'Bearer {self.token}'
        return headers

    def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Perform a request and return the decoded JSON body.

        Raises:
            BackendError: On HTTP error status, transport failure or non-JSON body
        """
        url = f"{self.base_url}{path}"

        try:
            response = self.http.request(
                method, url, json=json, params=params,
                headers=self.headers, timeout=self.timeout
            )
            response.raise_for_status()
            return response.json()

        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else 502
            message = _extract_message(e.response)
            logger.warning(f"[API] {method} {path} -> {status}: {message}")
            raise BackendError(
                message or 'Error del servidor',
                status_code=status if status < 500 else 502
            ) from e
        except (requests.RequestException, ValueError) as e:
            logger.error(f"[API] {method} {path} failed: {e}")
            raise BackendError() from e

    # =========================================================================
    # DISCOUNTS
    # =========================================================================

    def validate_discount(self, code: str, cart_total: float, is_authenticated: bool) -> Dict[str, Any]:
        """
        Validate a coupon against the cart subtotal and caller identity class.

        Returns:
            ``{'success': True, 'data': {...}}`` or ``{'success': False, 'message': ...}``
        """
        return self._request('POST', '/discounts/validate', json={
            'code': code,
            'cartTotal': cart_total,
            'isAuthenticated': is_authenticated,
        })

    def list_discounts(self) -> Dict[str, Any]:
        return self._request('GET', '/discounts')

    def create_discount(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request('POST', '/discounts', json=data)

    def update_discount(self, discount_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request('PUT', f'/discounts/{discount_id}', json=data)

    def delete_discount(self, discount_id: str) -> Dict[str, Any]:
        return self._request('DELETE', f'/discounts/{discount_id}')

    # =========================================================================
    # ORDERS
    # =========================================================================

    def create_order(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Persist an order for the identified caller."""
        return self._request('POST', '/orders', json=payload)

    def get_my_orders(self) -> Dict[str, Any]:
        return self._request('GET', '/orders/my-orders')

    def list_orders(self) -> Dict[str, Any]:
        return self._request('GET', '/orders')

    def get_order(self, order_id: str) -> Dict[str, Any]:
        return self._request('GET', f'/orders/{order_id}')

    def update_order_status(self, order_id: str, status: str) -> Dict[str, Any]:
        return self._request('PUT', f'/orders/{order_id}', json={'status': status})

    # =========================================================================
    # SETTINGS
    # =========================================================================

    def get_settings(self) -> Dict[str, Any]:
        return self._request('GET', '/settings')

    def update_settings(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request('PUT', '/settings', json=data)

    # =========================================================================
    # CATALOG
    # =========================================================================

    def list_products(self, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._request('GET', '/products', params=params)

    def get_product(self, product_id: str) -> Dict[str, Any]:
        return self._request('GET', f'/products/{product_id}')

    def create_product(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request('POST', '/products', json=data)

    def update_product(self, product_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request('PUT', f'/products/{product_id}', json=data)

    def delete_product(self, product_id: str) -> Dict[str, Any]:
        return self._request('DELETE', f'/products/{product_id}')

    def toggle_product_status(self, product_id: str) -> Dict[str, Any]:
        return self._request('PATCH', f'/products/{product_id}/status')

    def list_combos(self) -> Dict[str, Any]:
        return self._request('GET', '/combos')

    def get_combo(self, combo_id: str) -> Dict[str, Any]:
        return self._request('GET', f'/combos/{combo_id}')

    def create_combo(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request('POST', '/combos', json=data)

    def update_combo(self, combo_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request('PUT', f'/combos/{combo_id}', json=data)

    def delete_combo(self, combo_id: str) -> Dict[str, Any]:
        return self._request('DELETE', f'/combos/{combo_id}')

    # =========================================================================
    # USERS & NEWSLETTER
    # =========================================================================

    def list_users(self) -> Dict[str, Any]:
        return self._request('GET', '/auth/users')

    def create_user(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request('POST', '/auth/users', json=data)

    def update_user(self, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request('PUT', f'/auth/users/{user_id}', json=data)

    def delete_user(self, user_id: str) -> Dict[str, Any]:
        return self._request('DELETE', f'/auth/users/{user_id}')

    def toggle_user_status(self, user_id: str) -> Dict[str, Any]:
        return self._request('PATCH', f'/auth/users/{user_id}/status')

    def update_user_points(self, user_id: str, points: int) -> Dict[str, Any]:
        return self._request('PUT', f'/auth/users/{user_id}/points', json={'points': points})

    def list_emails(self) -> Dict[str, Any]:
        return self._request('GET', '/emails')

import pytest
from unittest.mock import MagicMock

from mascotas import create_app
from mascotas.services.api_client import BackendClient
from mascotas.services.cart_service import CartStorage, CartStore


@pytest.fixture(scope='function')
def backend():
    """Backend client double; every call returns what the test configures."""
    mock = MagicMock(spec=BackendClient)
    mock.with_token.return_value = mock
    mock.get_settings.return_value = {'success': True, 'data': {'suggestedPricePercentage': 10}}
    return mock


@pytest.fixture(scope='function')
def app(backend):
    """Create application instance for testing."""
    app = create_app('config.TestingConfig')
    app.extensions['backend'] = backend
    return app


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def authenticated_client(client):
    """Client with an identified customer in the session."""
    with client.session_transaction() as sess:
        sess['user'] = {'_id': 'u1', 'name': 'Cliente Uno', 'role': 'user'}
        sess['token'] = 'customer-token'
    return client


@pytest.fixture(scope='function')
def admin_client(client):
    """Client with an admin in the session."""
    with client.session_transaction() as sess:
        sess['user'] = {'_id': 'admin1', 'name': 'Admin', 'role': 'admin'}
        sess['token'] = 'admin-token'
    return client


@pytest.fixture(scope='function')
def notifications():
    return []


@pytest.fixture(scope='function')
def storage_backend():
    """Plain dict standing in for the session."""
    return {}


@pytest.fixture(scope='function')
def store(storage_backend, notifications):
    """Fresh cart store per test."""
    return CartStore(
        CartStorage(storage_backend),
        notifier=lambda message, category: notifications.append((category, message))
    )


@pytest.fixture
def dog_food():
    """15kg bag, list price 1500 (100 per kilo), no tier prices."""
    return {
        '_id': 'p-dog',
        'nombre': 'Alimento Perro Adulto 15kg',
        'precio': 1000,
        'precioLista': 1500,
        'precioMenor': 0,
        'precioMayor': 0,
        'kilos': 15,
        'categoria': 'Perros',
    }


@pytest.fixture
def cat_food():
    """Tiered product: base 120, retail 100, wholesale 80."""
    return {
        '_id': 'p-cat',
        'nombre': 'Alimento Gato 10kg',
        'precio': 120,
        'precioLista': 1000,
        'precioMenor': 100,
        'precioMayor': 80,
        'kilos': 10,
        'categoria': 'Gatos',
    }


@pytest.fixture
def combo():
    return {
        '_id': 'c-1',
        'nombre': 'Combo Cachorro',
        'basePrice': 6000,
        'finalPrice': 5000,
    }

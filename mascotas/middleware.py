"""Middleware for the identified caller (customer or admin)."""
from functools import wraps
from flask import session, g

from mascotas.exceptions import UnauthorizedError


def load_user():
    """
    Load the current caller into g (Flask's per-request global).

    Called before each request. The backend issues the bearer token at login;
    the storefront only keeps it in the session and forwards it.
    Sets g.user, g.auth_token, g.is_authenticated and g.is_admin.
    """
    g.user = None
    g.auth_token = None
    g.is_authenticated = False
    g.is_admin = False

    user = session.get('user')
    token = session.get('token')
    if user and token:
        g.user = user
        g.auth_token = token
        g.is_authenticated = True
        g.is_admin = user.get('role') == 'admin'


def require_login(f):
    """
    Decorator: Require an identified caller.

    Raises UnauthorizedError, rendered as JSON by the app error handler.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not g.get('is_authenticated'):
            raise UnauthorizedError('Debes iniciar sesión para acceder a esta página.')
        return f(*args, **kwargs)
    return decorated_function


def require_admin(f):
    """Decorator: Require a caller with the admin role."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not g.get('is_admin'):
            raise UnauthorizedError('No tienes permisos para acceder a esta sección.')
        return f(*args, **kwargs)
    return decorated_function

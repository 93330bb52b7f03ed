from functools import wraps
from flask import g
from flask_login import current_user
from ..services.authz import resolve_principal

def principal_required(view):
    """Resolve the caller's roles once and expose them as ``g.principal``."""
    @wraps(view)
    def wrapped(*args, **kwargs):
        user_id = current_user.get_id() if current_user.is_authenticated else None
        g.principal = resolve_principal(int(user_id) if user_id is not None else None)
        return view(*args, **kwargs)
    return wrapped

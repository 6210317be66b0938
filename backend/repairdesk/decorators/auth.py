from functools import wraps
from flask import g
from repairdesk.constants.roles import Role
from repairdesk.errors import Forbidden
from repairdesk.services.identity import resolve_actor


def require_actor(*roles: Role, optional: bool = False):
    """Resolve the caller into ``g.actor`` and optionally restrict by role.

    With ``optional=True`` anonymous callers pass through with ``g.actor = None``.
    """
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            actor = resolve_actor(optional=optional)
            if actor is not None and roles and actor.role not in roles:
                raise Forbidden('Insufficient role')
            g.actor = actor
            return fn(*args, **kwargs)
        return wrapper
    return outer


def current_actor():
    return g.get('actor')

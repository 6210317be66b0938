from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional
from flask import current_app
from repairdesk.constants.roles import Action, ORDER_SCOPED_ACTIONS, Role
from repairdesk.errors import Forbidden
from repairdesk.models.order import RepairOrder

# Config flag names
FLAG_CONCEAL_EXISTENCE = 'ORDER_CONCEAL_EXISTENCE'

# Actions a role may take on any order, before ownership is considered.
GLOBAL_GRANTS: Dict[Role, FrozenSet[Action]] = {
    Role.ADMIN: frozenset(Action),
    Role.SERVICE: frozenset({Action.READ, Action.UPDATE_STATUS, Action.ADD_NOTE, Action.LIST}),
    Role.TECHNICIAN: frozenset({Action.LIST}),
    Role.USER: frozenset({Action.LIST}),
}

# Listing scope per role: column that must equal the actor id, None = unrestricted.
LIST_SCOPES = {
    Role.ADMIN: None,
    Role.SERVICE: None,
    Role.TECHNICIAN: RepairOrder.assigned_to,
    Role.USER: RepairOrder.user_id,
}

PRIVILEGED_ROLES: FrozenSet[Role] = frozenset(r for r, grants in GLOBAL_GRANTS.items() if ORDER_SCOPED_ACTIONS <= grants)

_uncovered = (set(Role) - set(GLOBAL_GRANTS)) | (set(Role) - set(LIST_SCOPES))
if _uncovered:
    raise RuntimeError(f'Policy tables missing roles: {sorted(r.value for r in _uncovered)}')


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None

    def __bool__(self):
        return self.allowed


ALLOW = Decision(True)


def can(actor, action: Action, order: Optional[RepairOrder] = None) -> Decision:
    """Decide whether actor may perform action on order (first matching rule wins).

    1. admin: everything.  2. service: reads, status changes, notes, listing.
    3. order-scoped actions: owner or assigned technician.
    4. technician assignment: admin only, ownership never applies.
    Listing is allowed for every role; its row scope comes from ``scope_order_query``.
    """
    if actor is None:
        return Decision(False, 'Authentication required')
    if not actor.active:
        return Decision(False, 'Account disabled')
    if action in GLOBAL_GRANTS[actor.role]:
        return ALLOW
    if action is Action.ASSIGN_TECHNICIAN:
        return Decision(False, 'Admin role required')
    if action in ORDER_SCOPED_ACTIONS:
        if order is None:
            return Decision(False, 'Order required')
        if actor.id == order.user_id or (order.assigned_to is not None and actor.id == order.assigned_to):
            return ALLOW
        return Decision(False, 'Not permitted to access this order')
    return Decision(False, 'Action not permitted')


def authorize(actor, action: Action, order: Optional[RepairOrder] = None) -> None:
    decision = can(actor, action, order)
    if not decision:
        raise Forbidden(decision.reason)


def is_privileged(actor) -> bool:
    return actor is not None and actor.role in PRIVILEGED_ROLES


def conceal_existence_enabled() -> bool:
    return bool(current_app.config.get(FLAG_CONCEAL_EXISTENCE, True))


def scope_order_query(query, actor, assigned_to: Optional[int] = None):
    """Restrict an order query to the rows actor may list.

    Applied before counting and pagination so restricted roles learn nothing
    about orders outside their scope. ``assigned_to`` is honoured only for
    unrestricted roles.
    """
    authorize(actor, Action.LIST)
    column = LIST_SCOPES[actor.role]
    if column is not None:
        return query.where(column == actor.id)
    if assigned_to is not None:
        query = query.where(RepairOrder.assigned_to == assigned_to)
    return query


__all__ = [
    'Decision', 'can', 'authorize', 'is_privileged', 'scope_order_query',
    'conceal_existence_enabled', 'GLOBAL_GRANTS', 'LIST_SCOPES', 'PRIVILEGED_ROLES',
]

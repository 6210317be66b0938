from __future__ import annotations
"""Order lifecycle engine.

States: pending -> assigned -> in_progress -> completed, with cancelled
reachable from any non-terminal state. Every state-changing operation

  1. authorizes the actor against the order (``services.policy``),
  2. validates the transition through ``is_transition_allowed``,
  3. mutates the order and stages exactly one audit entry in the same session,
  4. commits both together (rollback + ``Internal`` on store failure),
  5. dispatches the SMS notification, if any, after the commit.

Status updates run against a permissive graph unless ``ORDER_TRANSITION_MODE``
is ``'strict'``; assignment never applies to completed or cancelled orders.
"""
import logging
from typing import Any, List, Mapping, NamedTuple, Optional

from flask import current_app
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from repairdesk import get_db
from repairdesk.constants.roles import (
    ALL_STATUSES, ASSIGNEE_STATUSES, ORDER_SCOPED_ACTIONS, TERMINAL_STATUSES,
    Action, AuditKind, OrderStatus, Role, Urgency,
)
from repairdesk.errors import (
    Forbidden, Internal, InvalidInput, InvalidState, InvalidTechnician, NotFound, Unauthenticated,
)
from repairdesk.models.audit import OrderLog
from repairdesk.models.order import OrderImage, RepairOrder
from repairdesk.models.user import User, utcnow
from repairdesk.services.audit import append_entry
from repairdesk.services.notifications import (
    ORDER_ASSIGNED, ORDER_COMPLETED, ORDER_CREATED, NotificationEvent, dispatch,
)
from repairdesk.services.policy import (
    LIST_SCOPES, authorize, can, conceal_existence_enabled, is_privileged, scope_order_query,
)
from repairdesk.utils.fsm import TransitionValidator
from repairdesk.utils.sorting import apply_multi_sort
from repairdesk.utils.validation import (
    fits_db_int, parse_int, require_fields, require_str, require_text, validate_status,
)

logger = logging.getLogger(__name__)

PENDING = OrderStatus.PENDING.value
ASSIGNED = OrderStatus.ASSIGNED.value
IN_PROGRESS = OrderStatus.IN_PROGRESS.value
COMPLETED = OrderStatus.COMPLETED.value
CANCELLED = OrderStatus.CANCELLED.value

MODE_PERMISSIVE = 'permissive'
MODE_STRICT = 'strict'

PERMISSIVE_FSM = TransitionValidator.permissive(ALL_STATUSES)
STRICT_FSM = TransitionValidator({
    PENDING: {ASSIGNED, CANCELLED},
    ASSIGNED: {IN_PROGRESS, CANCELLED},
    IN_PROGRESS: {COMPLETED, CANCELLED},
    COMPLETED: set(),
    CANCELLED: set(),
})
ASSIGNMENT_FSM = TransitionValidator({s: {ASSIGNED} for s in ALL_STATUSES if s not in TERMINAL_STATUSES})

REQUIRED_FIELDS = ('device_type', 'device_model', 'service_type', 'contact_name', 'contact_phone', 'appointment_time')
OPTIONAL_FIELDS = ('appointment_service', 'problem_description', 'issue_description', 'service_details')
URGENCIES = frozenset(u.value for u in Urgency)

SORTABLE = {
    'id': RepairOrder.id,
    'status': RepairOrder.status,
    'created_at': RepairOrder.created_at,
    'updated_at': RepairOrder.updated_at,
    'urgency': RepairOrder.urgency,
}


class OrderPage(NamedTuple):
    items: List[RepairOrder]
    total: int
    limit: int
    offset: int


# ---------------- Transition predicate ---------------- #

def transition_mode() -> str:
    mode = current_app.config.get('ORDER_TRANSITION_MODE', MODE_PERMISSIVE)
    if mode not in (MODE_PERMISSIVE, MODE_STRICT):
        raise RuntimeError(f'Unknown ORDER_TRANSITION_MODE {mode!r}')
    return mode


def is_transition_allowed(current: str, target: str, *, assignment: bool = False) -> bool:
    """Single gate for every status change the engine performs."""
    if assignment:
        return ASSIGNMENT_FSM.can_transition(current, ASSIGNED)
    fsm = STRICT_FSM if transition_mode() == MODE_STRICT else PERMISSIVE_FSM
    return fsm.can_transition(current, target)


def assignment_target(current: str) -> str:
    """Status an order takes when a technician is (re)assigned.

    Permissive mode always resets to ``assigned``, even mid-repair; strict mode
    keeps an in-progress order in progress.
    """
    if transition_mode() == MODE_STRICT and current == IN_PROGRESS:
        return IN_PROGRESS
    return ASSIGNED


# ---------------- Internal helpers ---------------- #

def _require_active(actor) -> None:
    if actor is None:
        raise Unauthenticated()
    if not actor.active:
        raise Forbidden('Account disabled')


def _load_order(session, order_id) -> Optional[RepairOrder]:
    oid = parse_int(order_id, 'order_id', bounded=False)
    if not fits_db_int(oid):
        return None
    try:
        return session.get(RepairOrder, oid)
    except SQLAlchemyError:
        logger.exception('Order lookup failed for %s', oid)
        raise Internal()


def _order_for(actor, action: Action, order_id):
    """Load an order and authorize action on it.

    Non-privileged actors without rights get NotFound, same as for a missing
    order, unless ORDER_CONCEAL_EXISTENCE is disabled.
    """
    _require_active(actor)
    session = get_db()
    order = _load_order(session, order_id)
    if order is None:
        raise NotFound()
    decision = can(actor, action, order)
    if not decision:
        if action in ORDER_SCOPED_ACTIONS and conceal_existence_enabled() and not is_privileged(actor):
            logger.info('Actor %s denied %s on order %s (concealed)', actor.id, action.value, order.id)
            raise NotFound()
        raise Forbidden(decision.reason)
    return session, order


def _commit(session, what: str) -> None:
    try:
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.exception('%s failed; changes rolled back', what)
        raise Internal()


def _after_commit(event: NotificationEvent) -> None:
    delivered = dispatch(event)
    logger.debug('Notification %s for %s delivered=%s', event.kind, event.payload.get('order_id'), delivered)


def _as_bool(value):
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(value)


def _image_rows(order_id: int, images) -> List[OrderImage]:
    if not images:
        return []
    if not isinstance(images, list):
        raise InvalidInput('images must be a list')
    rows = []
    for img in images:
        if isinstance(img, str):
            url, kind = img, 'problem'
        elif isinstance(img, dict) and img.get('url'):
            url, kind = img['url'], img.get('type') or 'problem'
        else:
            raise InvalidInput('each image needs a url')
        rows.append(OrderImage(order_id=order_id, image_url=str(url), image_type=str(kind)))
    return rows


# ---------------- Operations ---------------- #

def create_order(actor, fields: Mapping[str, Any]) -> RepairOrder:
    """Create a pending, unassigned order owned by actor."""
    _require_active(actor)
    data = dict(fields or {})
    require_fields(data, REQUIRED_FIELDS)
    require_str(data, REQUIRED_FIELDS + OPTIONAL_FIELDS + ('urgency',))
    urgency = data.get('urgency') or Urgency.NORMAL.value
    if urgency not in URGENCIES:
        raise InvalidInput('urgency invalid')
    session = get_db()
    order = RepairOrder(
        user_id=actor.id,
        status=PENDING,
        urgency=urgency,
        liquid_metal=_as_bool(data.get('liquid_metal')),
        **{k: data.get(k) for k in REQUIRED_FIELDS + OPTIONAL_FIELDS},
    )
    try:
        session.add(order)
        session.flush()
        session.add_all(_image_rows(order.id, data.get('images')))
        append_entry(session, order.id, actor.id, AuditKind.CREATED, 'Order created')
    except SQLAlchemyError:
        session.rollback()
        logger.exception('Staging new order for user %s failed', actor.id)
        raise Internal()
    except InvalidInput:
        session.rollback()
        raise
    _commit(session, f'Create order for user {actor.id}')
    logger.info('Order %s created by user %s', order.id, actor.id)
    _after_commit(NotificationEvent(order.contact_phone, ORDER_CREATED, {
        'order_id': order.id,
        'contact_name': order.contact_name,
    }))
    return order


def list_orders(actor, status: Optional[str] = None, assigned_to=None, limit: int = 10, offset: int = 0,
                sort: Optional[str] = None) -> OrderPage:
    """Role-scoped order listing; scope is part of the query, so totals never leak."""
    _require_active(actor)
    stmt = select(RepairOrder)
    tech_filter = None
    # assigned_to only narrows unrestricted listings; restricted roles never parse it
    if LIST_SCOPES[actor.role] is None and assigned_to not in (None, ''):
        tech_filter = parse_int(assigned_to, 'assigned_to')
    stmt = scope_order_query(stmt, actor, assigned_to=tech_filter)
    if status:
        stmt = stmt.where(RepairOrder.status == validate_status(status, ALL_STATUSES))
    stmt = apply_multi_sort(stmt, sort, SORTABLE, RepairOrder.id.desc())
    session = get_db()
    try:
        total = session.execute(select(func.count()).select_from(stmt.order_by(None).subquery())).scalar_one()
        rows = list(session.execute(stmt.offset(offset).limit(limit)).scalars())
    except SQLAlchemyError:
        logger.exception('Listing orders for user %s failed', actor.id)
        raise Internal()
    return OrderPage(rows, total, limit, offset)


def get_order(actor, order_id) -> RepairOrder:
    _, order = _order_for(actor, Action.READ, order_id)
    return order


def assign_order(actor, order_id, technician_id) -> RepairOrder:
    """Assign an active technician (admin only); the order moves to ``assigned``."""
    _require_active(actor)
    authorize(actor, Action.ASSIGN_TECHNICIAN)
    if technician_id in (None, ''):
        raise InvalidInput('technician_id required')
    tech_id = parse_int(technician_id, 'technician_id')
    session = get_db()
    order = _load_order(session, order_id)
    if order is None:
        raise NotFound()
    try:
        technician = session.get(User, tech_id)
    except SQLAlchemyError:
        logger.exception('Technician lookup failed for %s', tech_id)
        raise Internal()
    if technician is None or technician.role != Role.TECHNICIAN.value or not technician.is_active:
        raise InvalidTechnician()
    if not is_transition_allowed(order.status, ASSIGNED, assignment=True):
        raise InvalidState(f'Cannot assign an order that is {order.status}')
    order.assigned_to = technician.id
    order.status = assignment_target(order.status)
    order.updated_at = utcnow()
    append_entry(session, order.id, actor.id, AuditKind.ASSIGNED,
                 f'Order assigned to technician {technician.name or technician.id}')
    _commit(session, f'Assign order {order.id}')
    logger.info('Order %s assigned to technician %s by %s', order.id, technician.id, actor.id)
    _after_commit(NotificationEvent(order.contact_phone, ORDER_ASSIGNED, {
        'order_id': order.id,
        'technician_name': technician.name,
    }))
    return order


def update_order_status(actor, order_id, new_state, note: Optional[str] = None) -> RepairOrder:
    session, order = _order_for(actor, Action.UPDATE_STATUS, order_id)
    target = validate_status(new_state, ALL_STATUSES)
    if note is not None and not isinstance(note, str):
        raise InvalidInput('description must be text')
    if not is_transition_allowed(order.status, target):
        raise InvalidState(f'Cannot move order from {order.status} to {target}')
    order.status = target
    if target not in ASSIGNEE_STATUSES:
        order.assigned_to = None
    order.updated_at = utcnow()
    description = note.strip() if note and note.strip() else f'Order status updated to {target}'
    append_entry(session, order.id, actor.id, AuditKind.STATUS_CHANGED, description)
    _commit(session, f'Status change of order {order.id}')
    logger.info('Order %s status -> %s by %s', order.id, target, actor.id)
    if target == COMPLETED:
        _after_commit(NotificationEvent(order.contact_phone, ORDER_COMPLETED, {
            'order_id': order.id,
            'contact_name': order.contact_name,
        }))
    return order


def add_order_note(actor, order_id, text) -> OrderLog:
    session, order = _order_for(actor, Action.ADD_NOTE, order_id)
    body = require_text(text, 'description')
    entry = append_entry(session, order.id, actor.id, AuditKind.NOTE_ADDED, body)
    _commit(session, f'Note on order {order.id}')
    return entry


__all__ = [
    'OrderPage', 'is_transition_allowed', 'assignment_target', 'create_order', 'list_orders', 'get_order',
    'assign_order', 'update_order_status', 'add_order_note',
]

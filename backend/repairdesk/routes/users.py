from __future__ import annotations
import logging
import secrets
from typing import Optional
from flask import Blueprint, request
from sqlalchemy import select, func, or_
from sqlalchemy.exc import SQLAlchemyError
from repairdesk import get_db
from repairdesk.config.pagination import normalize_pagination
from repairdesk.constants.roles import OPEN_STATUSES, Role
from repairdesk.decorators.auth import require_actor, current_actor
from repairdesk.errors import Forbidden, Internal, InvalidInput, NotFound
from repairdesk.models.audit import OrderLog
from repairdesk.models.order import RepairOrder
from repairdesk.models.user import User
from repairdesk.utils.responses import ok, iso
from repairdesk.utils.validation import fits_db_int, json_object, require_str, validate_phone

logger = logging.getLogger(__name__)

users_bp = Blueprint('users', __name__)

ROLE_VALUES = {r.value for r in Role}
MIN_PASSWORD_LENGTH = 6


@users_bp.get('')
@require_actor(Role.ADMIN)
def list_users():
    args = request.args
    limit, offset = normalize_pagination(args.get('limit'), args.get('offset'), args.get('page'))
    stmt = select(User)
    role = args.get('role')
    if role:
        if role not in ROLE_VALUES:
            raise InvalidInput('role invalid')
        stmt = stmt.where(User.role == role)
    search = args.get('search')
    if search:
        stmt = stmt.where(or_(User.name.ilike(f'%{search}%'), User.phone.ilike(f'%{search}%')))
    is_active = args.get('is_active')
    if is_active not in (None, ''):
        stmt = stmt.where(User.is_active == (is_active == 'true'))
    session = get_db()
    total = session.execute(select(func.count()).select_from(stmt.subquery())).scalar_one()
    rows = session.execute(stmt.order_by(User.id.desc()).offset(offset).limit(limit)).scalars().all()
    return ok({
        'users': [_user_json(u) for u in rows],
        'pagination': {'total': total, 'limit': limit, 'offset': offset, 'returned': len(rows)},
    })


@users_bp.get('/technicians')
@require_actor(Role.ADMIN)
def list_technicians():
    stmt = select(User).where(User.role == Role.TECHNICIAN.value, User.is_active.is_(True)).order_by(User.name)
    rows = get_db().execute(stmt).scalars().all()
    return ok({'technicians': [{'id': u.id, 'name': u.name, 'phone': u.phone} for u in rows]})


@users_bp.post('')
@require_actor(Role.ADMIN)
def create_user():
    data = json_object(request.get_json(silent=True))
    require_str(data, ('phone', 'name', 'role', 'password'))
    phone, name, role = data.get('phone'), data.get('name'), data.get('role')
    if not phone or not name or not role:
        raise InvalidInput('phone, name and role required')
    validate_phone(phone)
    if role not in ROLE_VALUES:
        raise InvalidInput('role invalid')
    session = get_db()
    if _phone_taken(session, phone):
        raise InvalidInput('phone already registered')
    user = User(phone=phone, name=name, role=role, is_active=True)
    if data.get('password'):
        user.set_password(_checked_password(data['password']))
    session.add(user)
    _commit(session, 'Creating user')
    logger.info('User %s (%s) created by admin %s', user.id, role, current_actor().id)
    return ok({'user': _user_json(user)}, 'User created', 201)


@users_bp.get('/stats/overview')
@require_actor(Role.ADMIN)
def user_stats():
    session = get_db()
    counts = dict(session.execute(select(User.role, func.count()).group_by(User.role)).all())
    active = session.execute(select(func.count()).select_from(User).where(User.is_active.is_(True))).scalar_one()
    role_stats = {r.value: counts.get(r.value, 0) for r in Role}
    return ok({
        'total_users': sum(counts.values()),
        'active_users': active,
        'role_stats': role_stats,
    })


@users_bp.get('/<int:user_id>')
@require_actor()
def get_user(user_id: int):
    _require_self_or_admin(user_id)
    return ok({'user': _user_json(_load_user(get_db(), user_id))})


@users_bp.put('/<int:user_id>')
@require_actor()
def update_user(user_id: int):
    """Profile update; the account owner may change name and phone, only admins role and activation."""
    actor = current_actor()
    _require_self_or_admin(user_id)
    data = json_object(request.get_json(silent=True))
    require_str(data, ('name', 'phone', 'role'))
    is_admin = actor.role is Role.ADMIN
    if not is_admin and ('role' in data or 'is_active' in data):
        raise Forbidden('Only admins can change role or activation')
    session = get_db()
    user = _load_user(session, user_id)
    changed = False
    if 'name' in data:
        if not (data['name'] or '').strip():
            raise InvalidInput('name must not be empty')
        user.name = data['name'].strip()
        changed = True
    if 'phone' in data:
        phone = validate_phone(data['phone'])
        if phone != user.phone and _phone_taken(session, phone, exclude_id=user.id):
            raise InvalidInput('phone already registered')
        user.phone = phone
        changed = True
    if 'role' in data:
        if data['role'] not in ROLE_VALUES:
            raise InvalidInput('role invalid')
        if user.id == actor.id and data['role'] != user.role:
            raise InvalidInput('Cannot change your own role')
        user.role = data['role']
        changed = True
    if 'is_active' in data:
        _apply_active(user, data['is_active'])
        changed = True
    if not changed:
        raise InvalidInput('nothing to update')
    _commit(session, f'Updating user {user_id}')
    logger.info('User %s updated by %s', user_id, actor.id)
    return ok({'user': _user_json(user)}, 'User updated')


@users_bp.put('/<int:user_id>/active')
@require_actor(Role.ADMIN)
def set_active(user_id: int):
    data = json_object(request.get_json(silent=True))
    session = get_db()
    user = _load_user(session, user_id)
    _apply_active(user, data.get('is_active'))
    _commit(session, f'Updating user {user_id}')
    return ok({'user': _user_json(user)}, 'User updated')


@users_bp.delete('/<int:user_id>')
@require_actor(Role.ADMIN)
def delete_user(user_id: int):
    """Delete an account that no order or audit entry refers to.

    Accounts with order history are deactivated instead; audit entries are
    append-only and keep their author.
    """
    if user_id == current_actor().id:
        raise InvalidInput('Cannot delete yourself')
    session = get_db()
    user = _load_user(session, user_id)
    involved = or_(RepairOrder.user_id == user.id, RepairOrder.assigned_to == user.id)
    open_orders = session.execute(
        select(func.count()).select_from(RepairOrder).where(involved, RepairOrder.status.in_(OPEN_STATUSES))
    ).scalar_one()
    if open_orders:
        raise InvalidInput('User has unfinished orders')
    history = session.execute(select(func.count()).select_from(RepairOrder).where(involved)).scalar_one()
    history += session.execute(select(func.count()).select_from(OrderLog).where(OrderLog.user_id == user.id)).scalar_one()
    if history:
        raise InvalidInput('User has order history; deactivate the account instead')
    session.delete(user)
    _commit(session, f'Deleting user {user_id}')
    logger.info('User %s deleted by admin %s', user_id, current_actor().id)
    return ok(message='User deleted')


@users_bp.post('/<int:user_id>/reset-password')
@require_actor(Role.ADMIN)
def reset_password(user_id: int):
    """Set a new password; without one in the body a temporary password is generated and returned."""
    data = json_object(request.get_json(silent=True))
    session = get_db()
    user = _load_user(session, user_id)
    generated = data.get('password') in (None, '')
    password = secrets.token_urlsafe(9) if generated else _checked_password(data['password'])
    user.set_password(password)
    _commit(session, f'Resetting password of user {user_id}')
    logger.info('Password of user %s reset by admin %s', user_id, current_actor().id)
    return ok({'temporary_password': password} if generated else None, 'Password reset')


def _require_self_or_admin(user_id: int) -> None:
    actor = current_actor()
    if actor.role is not Role.ADMIN and actor.id != user_id:
        raise Forbidden()


def _load_user(session, user_id: int) -> User:
    user = session.get(User, user_id) if fits_db_int(user_id) else None
    if user is None:
        raise NotFound('User not found')
    return user


def _phone_taken(session, phone: str, exclude_id: Optional[int] = None) -> bool:
    stmt = select(User.id).where(User.phone == phone)
    if exclude_id is not None:
        stmt = stmt.where(User.id != exclude_id)
    return session.execute(stmt).first() is not None


def _checked_password(raw) -> str:
    if not isinstance(raw, str) or len(raw) < MIN_PASSWORD_LENGTH:
        raise InvalidInput(f'password must be at least {MIN_PASSWORD_LENGTH} characters')
    return raw


def _apply_active(user: User, value) -> None:
    if not isinstance(value, bool):
        raise InvalidInput('is_active must be boolean')
    if user.id == current_actor().id and not value:
        raise InvalidInput('Cannot deactivate yourself')
    user.is_active = value


def _commit(session, what: str) -> None:
    try:
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.exception('%s failed', what)
        raise Internal()


def _user_json(u: User):
    return {
        'id': u.id,
        'phone': u.phone,
        'name': u.name,
        'role': u.role,
        'is_active': u.is_active,
        'created_at': iso(u.created_at),
    }

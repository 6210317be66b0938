from __future__ import annotations
import logging
from flask import Blueprint, request, current_app
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from repairdesk import get_db
from repairdesk.constants.roles import Role
from repairdesk.decorators.auth import require_actor, current_actor
from repairdesk.errors import Internal, InvalidCredential, InvalidInput
from repairdesk.models.user import User
from repairdesk.services.identity import issue_token
from repairdesk.services.notifications import send_verification_code
from repairdesk.services.verification import generate_code
from repairdesk.utils.responses import ok
from repairdesk.utils.validation import json_object, require_str, validate_phone

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)


def _codes():
    return current_app.extensions['verification_codes']


@auth_bp.post('/send-code')
def send_code():
    data = json_object(request.get_json(silent=True))
    phone = validate_phone(data.get('phone'))
    code = generate_code()
    _codes().store(phone, code)
    if not send_verification_code(phone, code):
        raise Internal('Verification code could not be sent')
    return ok(message='Verification code sent')


@auth_bp.post('/login')
def login_with_code():
    """SMS code login; unknown phone numbers are registered as ``user``."""
    data = json_object(request.get_json(silent=True))
    require_str(data, ('name',))
    phone, code = data.get('phone'), data.get('code')
    if not phone or not code:
        raise InvalidInput('phone and code required')
    validate_phone(phone)
    if not _codes().consume_if_valid(phone, str(code)):
        raise InvalidInput('Verification code invalid or expired')
    session = get_db()
    try:
        user = session.execute(select(User).where(User.phone == phone)).scalar_one_or_none()
        if user is None:
            user = User(phone=phone, name=data.get('name') or '', role=Role.USER.value, is_active=True)
            session.add(user)
            session.commit()
            logger.info('Registered user %s via SMS login', user.id)
    except SQLAlchemyError:
        session.rollback()
        logger.exception('SMS login failed for new or existing user')
        raise Internal()
    if not user.is_active:
        raise InvalidCredential('Account disabled')
    return ok({'token': issue_token(user), 'user': _user_json(user)}, 'Login successful')


@auth_bp.post('/password-login')
def password_login():
    data = json_object(request.get_json(silent=True))
    require_str(data, ('phone', 'password'))
    phone, password = data.get('phone'), data.get('password')
    if not phone or not password:
        raise InvalidInput('phone and password required')
    validate_phone(phone)
    user = get_db().execute(select(User).where(User.phone == phone)).scalar_one_or_none()
    if not user or not user.verify_password(password) or not user.is_active:
        raise InvalidCredential('Invalid phone or password')
    return ok({'token': issue_token(user), 'user': _user_json(user)}, 'Login successful')


@auth_bp.get('/me')
@require_actor()
def me():
    user = get_db().get(User, current_actor().id)
    return ok({'user': _user_json(user)})


@auth_bp.post('/refresh')
@require_actor()
def refresh():
    user = get_db().get(User, current_actor().id)
    return ok({'token': issue_token(user)}, 'Token refreshed')


@auth_bp.post('/logout')
@require_actor()
def logout():
    # Tokens are stateless; the client discards its copy
    logger.info('User %s logged out', current_actor().id)
    return ok(message='Logged out')


def _user_json(u: User):
    return {'id': u.id, 'phone': u.phone, 'name': u.name, 'role': u.role, 'is_active': u.is_active}

from __future__ import annotations
"""Identity & role resolution.

Turns the bearer credential of the current request into an ``Actor``. Token
mechanics are delegated to flask-jwt-extended; the account itself is re-read
from the database so that role changes and deactivation take effect
immediately instead of when the token expires.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from flask_jwt_extended import create_access_token, get_jwt_identity, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException, NoAuthorizationError
from jwt.exceptions import PyJWTError
from sqlalchemy.exc import SQLAlchemyError

from repairdesk import get_db
from repairdesk.constants.roles import Role, parse_role
from repairdesk.errors import Forbidden, Internal, InvalidCredential, Unauthenticated
from repairdesk.models.user import User
from repairdesk.utils.validation import fits_db_int

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    id: int
    role: Role
    active: bool = True

    @classmethod
    def from_user(cls, user: User) -> 'Actor':
        return cls(id=user.id, role=parse_role(user.role), active=bool(user.is_active))


def issue_token(user: User) -> str:
    """Mint a signed access token carrying the subject id and role."""
    return create_access_token(identity=str(user.id), additional_claims={'role': user.role})


def _load_actor(identity) -> Actor:
    try:
        user_id = int(identity)
        if not fits_db_int(user_id):
            raise ValueError(identity)
    except (TypeError, ValueError):
        logger.warning('Token subject is not a user id: %r', identity)
        raise InvalidCredential()
    try:
        user = get_db().get(User, user_id)
    except SQLAlchemyError:
        logger.exception('User lookup failed for token subject %s', user_id)
        raise Internal()
    if user is None:
        logger.warning('Token subject %s does not exist', user_id)
        raise InvalidCredential()
    try:
        actor = Actor.from_user(user)
    except ValueError:
        logger.error('User %s carries unknown role %r', user.id, user.role)
        raise InvalidCredential()
    if not actor.active:
        logger.info('Rejected inactive user %s', user.id)
        raise Forbidden('Account disabled')
    return actor


def resolve_actor(optional: bool = False) -> Optional[Actor]:
    """Resolve the request credential to an Actor.

    Raises Unauthenticated when no credential is present and InvalidCredential
    when it is malformed, expired or tampered with. In optional mode any
    credential problem yields ``None`` (anonymous caller) instead.
    """
    try:
        verify_jwt_in_request(optional=optional)
        identity = get_jwt_identity()
    except NoAuthorizationError:
        if optional:
            return None
        raise Unauthenticated()
    except (JWTExtendedException, PyJWTError) as exc:
        logger.info('Credential rejected: %s', exc)
        if optional:
            return None
        raise InvalidCredential()
    if identity is None:
        if optional:
            return None
        raise Unauthenticated()
    if optional:
        try:
            return _load_actor(identity)
        except (InvalidCredential, Forbidden):
            return None
    return _load_actor(identity)


__all__ = ['Actor', 'issue_token', 'resolve_actor']

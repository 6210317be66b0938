from __future__ import annotations
"""Device and service type lookups for the order form.

Anonymous callers and regular accounts see active entries only; admins may ask
for the full table to manage it.
"""
import logging
from typing import List, Type, Union

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from repairdesk import get_db
from repairdesk.constants.roles import Role
from repairdesk.errors import Internal
from repairdesk.models.catalog import DeviceType, ServiceType

logger = logging.getLogger(__name__)

CatalogModel = Type[Union[DeviceType, ServiceType]]


def catalog_entries(model: CatalogModel, actor=None, include_inactive: bool = False) -> List:
    stmt = select(model)
    if not (include_inactive and actor is not None and actor.role is Role.ADMIN):
        stmt = stmt.where(model.is_active.is_(True))
    stmt = stmt.order_by(model.sort_order, model.id)
    try:
        return list(get_db().execute(stmt).scalars())
    except SQLAlchemyError:
        logger.exception('Loading %s failed', model.__tablename__)
        raise Internal()


def device_types(actor=None, include_inactive: bool = False) -> List[DeviceType]:
    return catalog_entries(DeviceType, actor, include_inactive)


def service_types(actor=None, include_inactive: bool = False) -> List[ServiceType]:
    return catalog_entries(ServiceType, actor, include_inactive)


__all__ = ['catalog_entries', 'device_types', 'service_types']

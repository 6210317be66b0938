from __future__ import annotations
from flask import Blueprint, request
from sqlalchemy import select
from repairdesk import get_db
from repairdesk.config.pagination import normalize_pagination
from repairdesk.decorators.auth import require_actor, current_actor
from repairdesk.models.order import OrderImage, RepairOrder
from repairdesk.models.audit import OrderLog
from repairdesk.models.user import User
from repairdesk.services import catalog, lifecycle
from repairdesk.services.audit import entries_for
from repairdesk.utils.responses import ok, iso
from repairdesk.utils.validation import json_object

orders_bp = Blueprint('orders', __name__)


@orders_bp.post('')
@require_actor()
def create_order():
    order = lifecycle.create_order(current_actor(), json_object(request.get_json(silent=True)))
    return ok({'order': _order_json(order, detail=True)}, 'Order created', 201)


@orders_bp.get('')
@require_actor()
def list_orders():
    args = request.args
    limit, offset = normalize_pagination(args.get('limit'), args.get('offset'), args.get('page'))
    page = lifecycle.list_orders(
        current_actor(),
        status=args.get('status'),
        assigned_to=args.get('assigned_to'),
        limit=limit,
        offset=offset,
        sort=args.get('sort'),
    )
    return ok({
        'orders': [_order_json(o) for o in page.items],
        'pagination': {
            'total': page.total,
            'limit': page.limit,
            'offset': page.offset,
            'returned': len(page.items),
        },
    })


@orders_bp.get('/<int:order_id>')
@require_actor()
def get_order(order_id: int):
    order = lifecycle.get_order(current_actor(), order_id)
    return ok({'order': _order_json(order, detail=True)})


@orders_bp.put('/<int:order_id>/assign')
@require_actor()
def assign_order(order_id: int):
    data = json_object(request.get_json(silent=True))
    order = lifecycle.assign_order(current_actor(), order_id, data.get('technician_id'))
    return ok({'order': _order_json(order)}, 'Order assigned')


@orders_bp.put('/<int:order_id>/status')
@require_actor()
def update_status(order_id: int):
    data = json_object(request.get_json(silent=True))
    order = lifecycle.update_order_status(current_actor(), order_id, data.get('status'), data.get('description'))
    return ok({'order': _order_json(order)}, 'Order status updated')


@orders_bp.post('/<int:order_id>/notes')
@require_actor()
def add_note(order_id: int):
    data = json_object(request.get_json(silent=True))
    entry = lifecycle.add_order_note(current_actor(), order_id, data.get('description'))
    return ok({'log': _log_json(entry)}, 'Note added', 201)


@orders_bp.get('/meta/device-types')
@require_actor(optional=True)
def list_device_types():
    rows = catalog.device_types(current_actor(), _include_inactive())
    return ok({'device_types': [_catalog_json(r) for r in rows]})


@orders_bp.get('/meta/service-types')
@require_actor(optional=True)
def list_service_types():
    rows = catalog.service_types(current_actor(), _include_inactive())
    return ok({'service_types': [_catalog_json(r) for r in rows]})


def _include_inactive() -> bool:
    return request.args.get('include_inactive', '').lower() in ('1', 'true', 'yes')


def _catalog_json(entry):
    return {
        'id': entry.id,
        'code': entry.code,
        'name': entry.name,
        'description': entry.description,
        'sort_order': entry.sort_order,
        'is_active': entry.is_active,
    }


def _order_json(o: RepairOrder, detail: bool = False):
    body = {
        'id': o.id,
        'user_id': o.user_id,
        'assigned_to': o.assigned_to,
        'status': o.status,
        'device_type': o.device_type,
        'device_model': o.device_model,
        'service_type': o.service_type,
        'appointment_service': o.appointment_service,
        'liquid_metal': o.liquid_metal,
        'problem_description': o.problem_description,
        'issue_description': o.issue_description,
        'service_details': o.service_details,
        'urgency': o.urgency,
        'contact_name': o.contact_name,
        'contact_phone': o.contact_phone,
        'appointment_time': o.appointment_time,
        'created_at': iso(o.created_at),
        'updated_at': iso(o.updated_at),
    }
    if detail:
        session = get_db()
        images = session.execute(select(OrderImage).where(OrderImage.order_id == o.id).order_by(OrderImage.id)).scalars()
        body['images'] = [{'id': i.id, 'image_url': i.image_url, 'image_type': i.image_type} for i in images]
        body['logs'] = [_log_json(e) for e in entries_for(session, o.id)]
        body['user'] = _contact_json(session.get(User, o.user_id))
        body['assigned_user'] = _contact_json(session.get(User, o.assigned_to)) if o.assigned_to else None
    return body


def _contact_json(u: User):
    if u is None:
        return None
    return {'id': u.id, 'name': u.name, 'phone': u.phone}


def _log_json(e: OrderLog):
    return {
        'id': e.id,
        'order_id': e.order_id,
        'user_id': e.user_id,
        'action': e.action,
        'description': e.description,
        'created_at': iso(e.created_at),
    }

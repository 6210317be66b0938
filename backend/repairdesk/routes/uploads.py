from __future__ import annotations
import logging
from flask import Blueprint, request, current_app, send_file
from sqlalchemy import select
from repairdesk import get_db
from repairdesk.decorators.auth import require_actor, current_actor
from repairdesk.errors import Forbidden, InvalidInput
from repairdesk.models.order import OrderImage
from repairdesk.services.policy import is_privileged
from repairdesk.services.uploads import MAX_FILES_PER_UPLOAD, image_extension
from repairdesk.utils.responses import ok, iso

logger = logging.getLogger(__name__)

uploads_bp = Blueprint('uploads', __name__)


def _store():
    return current_app.extensions['image_store']


def _saved_json(name: str, original_name: str):
    return {'filename': name, 'url': f'/uploads/{name}', 'original_name': original_name}


@uploads_bp.post('')
@require_actor()
def upload_image():
    f = request.files.get('image')
    if f is None:
        raise InvalidInput('image file required')
    name = _store().save(f.stream, f.filename)
    return ok(_saved_json(name, f.filename), 'Upload successful', 201)


@uploads_bp.post('/multiple')
@require_actor()
def upload_images():
    files = [f for f in request.files.getlist('images') if f.filename]
    if not files:
        raise InvalidInput('images required')
    if len(files) > MAX_FILES_PER_UPLOAD:
        raise InvalidInput(f'At most {MAX_FILES_PER_UPLOAD} images per upload')
    # Reject the whole batch before writing anything
    for f in files:
        image_extension(f.filename)
    saved = [_saved_json(_store().save(f.stream, f.filename), f.filename) for f in files]
    return ok({'files': saved}, f'Uploaded {len(saved)} images', 201)


@uploads_bp.get('/<name>')
def get_image(name: str):
    return send_file(_store().path_for(name))


@uploads_bp.get('/info/<name>')
def image_info(name: str):
    info = _store().info(name)
    info['modified_at'] = iso(info['modified_at'])
    return ok(info)


@uploads_bp.delete('/<name>')
@require_actor()
def delete_image(name: str):
    """Delete an upload; files already attached to an order are removable by staff only."""
    actor = current_actor()
    attached = get_db().execute(
        select(OrderImage.id).where(OrderImage.image_url == f'/uploads/{name}')
    ).first() is not None
    if attached and not is_privileged(actor):
        raise Forbidden('Image is attached to an order')
    _store().delete(name)
    logger.info('Upload %s deleted by user %s', name, actor.id)
    return ok(message='File deleted')

from __future__ import annotations
import os
import uuid
from datetime import datetime, timezone
from typing import IO, Any, Dict
from werkzeug.utils import secure_filename
from repairdesk.errors import InvalidInput, NotFound

ALLOWED_EXTENSIONS = {'jpg', 'jpeg', 'png', 'gif', 'webp'}
MAX_FILES_PER_UPLOAD = 5


def image_extension(filename: str) -> str:
    """Lower-cased extension of an allowed image filename, else InvalidInput."""
    safe = secure_filename(filename or '')
    ext = safe.rsplit('.', 1)[-1].lower() if '.' in safe else ''
    if ext not in ALLOWED_EXTENSIONS:
        raise InvalidInput('Only image files are allowed')
    return ext


class LocalImageStore:
    """Stores uploaded images on the local filesystem and hands back a stable name."""

    def __init__(self, root: str):
        self.root = root

    def save(self, stream: IO[bytes], filename: str) -> str:
        ext = image_extension(filename)
        os.makedirs(self.root, exist_ok=True)
        name = f'{uuid.uuid4().hex}.{ext}'
        with open(os.path.join(self.root, name), 'wb') as fh:
            fh.write(stream.read())
        return name

    def path_for(self, name: str) -> str:
        """Path of a stored file; names that are not plain stored filenames never resolve."""
        safe = secure_filename(name)
        path = os.path.join(self.root, safe)
        if not safe or safe != name or not os.path.isfile(path):
            raise NotFound('File not found')
        return path

    def delete(self, name: str) -> None:
        os.remove(self.path_for(name))

    def info(self, name: str) -> Dict[str, Any]:
        stat = os.stat(self.path_for(name))
        return {
            'filename': name,
            'size': stat.st_size,
            'modified_at': datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        }

from __future__ import annotations
from datetime import datetime
from typing import Any, Optional


def ok(data: Optional[Any] = None, message: str = 'ok', status: int = 200):
    """Standard success envelope: {success, message, data?}."""
    body = {'success': True, 'message': message}
    if data is not None:
        body['data'] = data
    return body, status


def iso(ts: Optional[datetime]) -> Optional[str]:
    if ts is None:
        return None
    return ts.isoformat().replace('+00:00', 'Z')

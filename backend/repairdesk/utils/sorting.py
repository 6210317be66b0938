from __future__ import annotations
from repairdesk.errors import InvalidInput


def apply_multi_sort(query, sort_expr: str | None, allowed: dict, default):
    """Apply multi-field sort to a SQLAlchemy query.
    sort_expr: comma-separated tokens, each optionally prefixed with '-'.
    allowed: mapping of field key -> column object.
    default: ordering clause used when sort_expr is empty.
    """
    if not sort_expr:
        return query.order_by(default)
    clauses = []
    for raw in sort_expr.split(','):
        token = raw.strip()
        if not token:
            continue
        desc = token.startswith('-')
        key = token[1:] if desc else token
        col = allowed.get(key)
        if col is None:
            raise InvalidInput(f'Invalid sort field {key}')
        clauses.append(col.desc() if desc else col.asc())
    if not clauses:
        return query.order_by(default)
    return query.order_by(*clauses)

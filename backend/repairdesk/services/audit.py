from __future__ import annotations
from typing import List
from sqlalchemy import select
from sqlalchemy.orm import Session
from repairdesk.constants.roles import AuditKind
from repairdesk.models.audit import OrderLog


def append_entry(session: Session, order_id: int, actor_id: int, kind: AuditKind, description: str) -> OrderLog:
    """Stage an audit entry for an order within the caller's session.

    Parameters:
      order_id: order the action was taken against
      actor_id: user who performed it
      kind: created, assigned, status_changed or note_added
      description: free text shown in the order history
    """
    entry = OrderLog(
        order_id=order_id,
        user_id=actor_id,
        action=AuditKind(kind).value,
        description=description,
    )
    session.add(entry)
    # No commit here; the lifecycle transaction commits entry and mutation together.
    return entry


def entries_for(session: Session, order_id: int) -> List[OrderLog]:
    stmt = select(OrderLog).where(OrderLog.order_id == order_id).order_by(OrderLog.id.asc())
    return list(session.execute(stmt).scalars())

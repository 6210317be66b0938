"""Closed enumerations for roles, order statuses, audit kinds and policy actions.
Extend cautiously; stored values are plain strings, never rename a member's value silently.
"""
from __future__ import annotations
from enum import Enum
from typing import FrozenSet


class Role(str, Enum):
    USER = 'user'
    TECHNICIAN = 'technician'
    SERVICE = 'service'
    ADMIN = 'admin'


class OrderStatus(str, Enum):
    PENDING = 'pending'
    ASSIGNED = 'assigned'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


ALL_STATUSES = tuple(s.value for s in OrderStatus)
TERMINAL_STATUSES: FrozenSet[str] = frozenset({OrderStatus.COMPLETED.value, OrderStatus.CANCELLED.value})
OPEN_STATUSES: FrozenSet[str] = frozenset(ALL_STATUSES) - TERMINAL_STATUSES
# Statuses in which an order may carry an assigned technician
ASSIGNEE_STATUSES: FrozenSet[str] = frozenset({
    OrderStatus.ASSIGNED.value, OrderStatus.IN_PROGRESS.value, OrderStatus.COMPLETED.value,
})


class AuditKind(str, Enum):
    CREATED = 'created'
    ASSIGNED = 'assigned'
    STATUS_CHANGED = 'status_changed'
    NOTE_ADDED = 'note_added'


class Action(str, Enum):
    READ = 'read'
    UPDATE_STATUS = 'update_status'
    ADD_NOTE = 'add_note'
    ASSIGN_TECHNICIAN = 'assign_technician'
    LIST = 'list'


ORDER_SCOPED_ACTIONS: FrozenSet[Action] = frozenset({Action.READ, Action.UPDATE_STATUS, Action.ADD_NOTE})


class Urgency(str, Enum):
    NORMAL = 'normal'
    URGENT = 'urgent'


def parse_role(raw) -> Role:
    """Return the Role for raw, raising ValueError for anything outside the enum."""
    if isinstance(raw, Role):
        return raw
    return Role(raw)

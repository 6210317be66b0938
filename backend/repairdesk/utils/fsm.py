from __future__ import annotations
"""Finite state machine utility for order status transitions.

Usage:
    from repairdesk.utils.fsm import TransitionValidator
    FSM = TransitionValidator({
        'pending': {'assigned', 'cancelled'},
        'assigned': {'in_progress'},
        'completed': set(),
    })
    FSM.can_transition(current_status, target_status)        # -> bool
    FSM.assert_can_transition(current_status, target_status) # raises InvalidState

``permissive`` builds a validator where every listed status may move to any
listed status.
"""
from typing import Dict, Iterable, Set
from repairdesk.errors import InvalidState


class TransitionValidator:
    def __init__(self, graph: Dict[str, Set[str]], field_name: str = 'status'):
        self.graph = graph
        self.field_name = field_name

    @classmethod
    def permissive(cls, statuses: Iterable[str], field_name: str = 'status') -> 'TransitionValidator':
        states = set(statuses)
        return cls({s: set(states) for s in states}, field_name=field_name)

    def can_transition(self, current: str, target: str) -> bool:
        return target in self.graph.get(current, set())

    def assert_can_transition(self, current: str, target: str):
        if not self.can_transition(current, target):
            raise InvalidState(f"Invalid {self.field_name} transition {current} -> {target}")
        return True

__all__ = ['TransitionValidator']

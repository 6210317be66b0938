from repairdesk.utils.fsm import TransitionValidator
from repairdesk.errors import InvalidState
import pytest


def test_transition_validator_allows_valid():
    fsm = TransitionValidator({'A': {'B'}, 'B': set()})
    assert fsm.assert_can_transition('A', 'B') is True


def test_transition_validator_blocks_invalid():
    fsm = TransitionValidator({'A': {'B'}, 'B': set()})
    assert fsm.can_transition('B', 'A') is False
    with pytest.raises(InvalidState):
        fsm.assert_can_transition('A', 'C')


def test_permissive_validator_accepts_any_listed_pair():
    fsm = TransitionValidator.permissive(['A', 'B', 'C'])
    assert fsm.can_transition('C', 'A')
    assert fsm.can_transition('B', 'B')
    assert not fsm.can_transition('A', 'Z')

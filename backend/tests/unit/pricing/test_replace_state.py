"""Unit tests for the replace-tiers state machine"""

import pytest

import sys
from pathlib import Path
backend_src = Path(__file__).parent.parent.parent.parent / "src"
sys.path.insert(0, str(backend_src))

from pricing.replace_state import (
    ALLOWED_TRANSITIONS,
    ReplaceRun,
    ReplaceState,
    StateTransitionError,
    validate_transition,
)


class TestTransitions:
    """Test cases for transition validation"""

    @pytest.mark.parametrize("current,new", [
        (ReplaceState.VALIDATING, ReplaceState.PERSISTING),
        (ReplaceState.VALIDATING, ReplaceState.ABORTED),
        (ReplaceState.PERSISTING, ReplaceState.SYNCING_NEW),
        (ReplaceState.PERSISTING, ReplaceState.ABORTED),
        (ReplaceState.SYNCING_NEW, ReplaceState.GATE),
        (ReplaceState.GATE, ReplaceState.ARCHIVING_OLD),
        (ReplaceState.GATE, ReplaceState.PARTIAL_FAILURE),
        (ReplaceState.ARCHIVING_OLD, ReplaceState.DONE),
    ])
    def test_allowed(self, current, new):
        validate_transition(current, new)

    @pytest.mark.parametrize("current,new", [
        (ReplaceState.GATE, ReplaceState.DONE),
        (ReplaceState.SYNCING_NEW, ReplaceState.ABORTED),
        (ReplaceState.SYNCING_NEW, ReplaceState.ARCHIVING_OLD),
        (ReplaceState.PARTIAL_FAILURE, ReplaceState.ARCHIVING_OLD),
        (ReplaceState.DONE, ReplaceState.VALIDATING),
    ])
    def test_rejected(self, current, new):
        with pytest.raises(StateTransitionError):
            validate_transition(current, new)

    def test_archiving_is_only_reachable_through_gate(self):
        sources = [s for s in ReplaceState if ReplaceState.ARCHIVING_OLD in ALLOWED_TRANSITIONS[s]]

        assert sources == [ReplaceState.GATE]

    def test_terminal_states(self):
        terminal = {s for s, targets in ALLOWED_TRANSITIONS.items() if not targets}

        assert terminal == {ReplaceState.DONE, ReplaceState.PARTIAL_FAILURE, ReplaceState.ABORTED}


class TestReplaceRun:
    """Test cases for ReplaceRun"""

    def test_records_history(self):
        run = ReplaceRun()
        for state in (ReplaceState.PERSISTING, ReplaceState.SYNCING_NEW, ReplaceState.GATE,
                      ReplaceState.ARCHIVING_OLD, ReplaceState.DONE):
            run.advance(state)

        assert run.state == ReplaceState.DONE
        assert run.history[0] == ReplaceState.VALIDATING
        assert run.history[-1] == ReplaceState.DONE
        assert len(run.history) == 6

    def test_invalid_advance_keeps_state(self):
        run = ReplaceRun()

        with pytest.raises(StateTransitionError):
            run.advance(ReplaceState.DONE)

        assert run.state == ReplaceState.VALIDATING
        assert run.history == [ReplaceState.VALIDATING]

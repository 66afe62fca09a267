import pytest

from intake_bot.services.state_machine import (
    InvalidTransitionError,
    TurnState,
    can_transition,
    evaluate_policy,
    finish,
    transition,
)


class TestValidTransitions:
    def test_start_to_policy_evaluated(self):
        assert evaluate_policy(TurnState.START) == TurnState.POLICY_EVALUATED

    @pytest.mark.parametrize("branch", [TurnState.ASKING, TurnState.SUBMITTING, TurnState.RELAYING])
    def test_policy_evaluated_to_branch(self, branch):
        assert transition(TurnState.POLICY_EVALUATED, branch) == branch

    @pytest.mark.parametrize("branch", [TurnState.ASKING, TurnState.SUBMITTING, TurnState.RELAYING])
    def test_branch_finishes(self, branch):
        assert finish(branch) == TurnState.DONE


class TestInvalidTransitions:
    def test_cannot_skip_policy(self):
        with pytest.raises(InvalidTransitionError):
            transition(TurnState.START, TurnState.ASKING)

    def test_cannot_finish_before_branch(self):
        with pytest.raises(InvalidTransitionError):
            finish(TurnState.POLICY_EVALUATED)

    def test_done_is_terminal(self):
        assert can_transition(TurnState.DONE, TurnState.START) is False

    def test_error_message(self):
        with pytest.raises(InvalidTransitionError, match="asking -> submitting"):
            transition(TurnState.ASKING, TurnState.SUBMITTING)

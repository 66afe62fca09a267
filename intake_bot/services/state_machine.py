from enum import Enum


class TurnState(str, Enum):
    START = "start"
    POLICY_EVALUATED = "policy_evaluated"
    ASKING = "asking"
    SUBMITTING = "submitting"
    RELAYING = "relaying"
    DONE = "done"


VALID_TRANSITIONS = {
    TurnState.START: [TurnState.POLICY_EVALUATED],
    TurnState.POLICY_EVALUATED: [TurnState.ASKING, TurnState.SUBMITTING, TurnState.RELAYING],
    TurnState.ASKING: [TurnState.DONE],
    TurnState.SUBMITTING: [TurnState.DONE],
    TurnState.RELAYING: [TurnState.DONE],
    TurnState.DONE: [],
}


class InvalidTransitionError(Exception):
    def __init__(self, from_state: TurnState, to_state: TurnState):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(f"Invalid transition: {from_state.value} -> {to_state.value}")


def can_transition(from_state: TurnState, to_state: TurnState) -> bool:
    """Check if transition is valid."""
    allowed = VALID_TRANSITIONS.get(from_state, [])
    return to_state in allowed


def transition(from_state: TurnState, to_state: TurnState) -> TurnState:
    """Perform state transition. Raises InvalidTransitionError if not allowed."""
    if not can_transition(from_state, to_state):
        raise InvalidTransitionError(from_state, to_state)
    return to_state


def evaluate_policy(current_state: TurnState) -> TurnState:
    """Policy engine has been consulted."""
    return transition(current_state, TurnState.POLICY_EVALUATED)


def finish(current_state: TurnState) -> TurnState:
    """Reply decided, turn is over."""
    return transition(current_state, TurnState.DONE)

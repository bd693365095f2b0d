from dataclasses import dataclass, replace
from typing import Optional

from orientation import Orientation

DEFAULT_COUNT = 3


@dataclass(frozen=True)
class DebounceState:
    confirmed: Orientation = Orientation.INDETERMINATE
    # Label accumulating towards confirmation and how many ticks in a row it
    # has been seen.
    candidate: Optional[Orientation] = None
    count: int = 0


def initial_state():
    return DebounceState()


def step(state, label, count=DEFAULT_COUNT):
    """Feed one classified label, returns the new state and whether the
    confirmed orientation changed on this label."""
    if count < 1:
        raise ValueError("debounce count should be at least 1")
    if label is Orientation.INDETERMINATE or label == state.confirmed:
        return replace(state, candidate=None, count=0), False
    run = state.count + 1 if label == state.candidate else 1
    if run >= count:
        return DebounceState(confirmed=label), True
    return replace(state, candidate=label, count=run), False


def debounced(labels, count=DEFAULT_COUNT, state=None):
    """Yields every newly confirmed orientation from a stream of labels."""
    if state is None:
        state = initial_state()
    for label in labels:
        state, changed = step(state, label, count)
        if changed:
            yield state.confirmed

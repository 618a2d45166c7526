# src/ledger/lifecycle.py - v1
"""Lifecycle order for artifacts and tasks.

registered < submitting < processing < {completed, failed}. The two terminal
states share the top rank, exclude each other and absorb every later update.
"""

from __future__ import annotations

from docparse.core.models import LifecycleState

TERMINAL_STATES: frozenset[str] = frozenset({"completed", "failed"})

_RANK: dict[str, int] = {
    "registered": 0,
    "submitting": 1,
    "processing": 2,
    "completed": 3,
    "failed": 3,
}


def rank(state: LifecycleState) -> int:
    return _RANK[state]


def is_terminal(state: LifecycleState) -> bool:
    return state in TERMINAL_STATES


def accepts(current: LifecycleState, incoming: LifecycleState) -> bool:
    """Whether a record in ``current`` may move to ``incoming``.

    Terminal records accept nothing; otherwise the move must not go down.
    """
    if is_terminal(current):
        return False
    return rank(incoming) >= rank(current)

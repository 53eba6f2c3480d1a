"""
Turn/action-point ledger.

Gates unit actions on the mover's per-turn budgets:
- Movement points are debited by path cost and clamp at 0
- Action points gate attacks and other special actions
- Budgets only increase through reset_for_new_turn, once per owner's turn

Insufficient budgets are reported as False, never raised.
"""

import logging
from typing import Optional, Union

from models import MoverProfile, Path


logger = logging.getLogger(__name__)


def _path_cost(path_or_cost: Union[Path, float]) -> float:
    return path_or_cost.cost if isinstance(path_or_cost, Path) else path_or_cost


def can_afford(mover: MoverProfile, path_or_cost: Union[Path, float]) -> bool:
    """True if the path's total cost fits in the remaining movement points."""
    return _path_cost(path_or_cost) <= mover.movement


def debit_movement(mover: MoverProfile, amount: float) -> float:
    """
    Spend movement points, clamping the remainder at 0.

    Returns:
        The amount actually debited
    """
    if amount <= 0:
        return 0
    debited = min(amount, mover.movement)
    mover.movement = max(0, mover.movement - amount)
    return debited


def debit_action(mover: MoverProfile) -> bool:
    """Spend one action point; False if none are left."""
    if mover.actions <= 0:
        return False
    mover.actions -= 1
    return True


def spend_path(mover: MoverProfile, path: Path) -> bool:
    """Debit a path's cost if affordable; leave the mover untouched otherwise."""
    if not can_afford(mover, path):
        return False
    debit_movement(mover, path.cost)
    return True


def reset_for_new_turn(mover: MoverProfile, turn: Optional[int] = None) -> bool:
    """
    Restore movement and action points to their maxima.

    Args:
        mover: Mover to reset
        turn: Turn number of the owner's turn start; when given, a second
            reset within the same turn is refused

    Returns:
        True if the budgets were reset
    """
    if turn is not None and mover.last_reset_turn == turn:
        logger.warning("Mover already reset for turn %s, ignoring mid-turn reset", turn)
        return False
    mover.movement = mover.max_movement
    mover.actions = mover.max_actions
    if turn is not None:
        mover.last_reset_turn = turn
    return True

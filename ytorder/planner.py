"""Move planning: the fewest single-item relocations from one order to another.

A playlist can only be reordered one item at a time (``playlistItems.update``
costs 50 quota units per call), so the plan keeps the longest run of items
already in correct relative order (the skeleton) and moves everything else
exactly once.
"""

from bisect import bisect_left
from collections import Counter
from collections.abc import Callable, Sequence

from ytorder.logging import logger
from ytorder.models import MoveOperation, Order

Planner = Callable[[Sequence[str], Sequence[str]], list[MoveOperation]]


class PlanPreconditionError(ValueError):
    """Raised when current and desired orders are not permutations of each other."""

    def __init__(
        self,
        only_current: list[str],
        only_desired: list[str],
        duplicates: list[str],
    ) -> None:
        self.only_current = only_current
        self.only_desired = only_desired
        self.duplicates = duplicates
        parts = []
        if only_current:
            parts.append(f"missing from desired order: {', '.join(only_current)}")
        if only_desired:
            parts.append(f"missing from current order: {', '.join(only_desired)}")
        if duplicates:
            parts.append(f"duplicate ids: {', '.join(duplicates)}")
        super().__init__("Orders differ - " + "; ".join(parts))


def check_permutation(current: Sequence[str], desired: Sequence[str]) -> None:
    """Raise PlanPreconditionError unless both orders hold the same unique ids."""
    duplicates = sorted({i for seq in (current, desired) for i, n in Counter(seq).items() if n > 1})
    current_set, desired_set = set(current), set(desired)
    only_current = [i for i in current if i not in desired_set]
    only_desired = [i for i in desired if i not in current_set]
    if only_current or only_desired or duplicates:
        raise PlanPreconditionError(only_current, only_desired, duplicates)


def longest_increasing_subsequence(values: Sequence[int | None]) -> list[int]:
    """Indices of one longest strictly increasing subsequence of ``values``.

    Patience sorting, O(n log n). ``piles[k]`` holds the index of the smallest
    tail of any increasing run of length k + 1. ``None`` entries are skipped.
    """
    piles: list[int] = []
    predecessors = [-1] * len(values)

    for i, value in enumerate(values):
        if value is None:
            continue
        pile = bisect_left(piles, value, key=lambda j: values[j])
        if pile > 0:
            predecessors[i] = piles[pile - 1]
        if pile == len(piles):
            piles.append(i)
        else:
            piles[pile] = i

    lis: list[int] = []
    k = piles[-1] if piles else -1
    while k >= 0:
        lis.append(k)
        k = predecessors[k]
    return lis[::-1]


def find_skeleton(current: Sequence[str], desired: Sequence[str]) -> set[str]:
    """Ids that are already in correct relative order and never need to move."""
    target = {item_id: idx for idx, item_id in enumerate(desired)}
    sequence = [target.get(item_id) for item_id in current]
    return {current[i] for i in longest_increasing_subsequence(sequence)}


def plan_moves(current: Sequence[str], desired: Sequence[str]) -> list[MoveOperation]:
    """Compute the minimal move plan turning ``current`` into ``desired``.

    Each operation must be applied after all earlier ones. Every id outside
    the skeleton moves exactly once, right after its predecessor in
    ``desired``, so the plan has ``len(current) - len(skeleton)`` moves.

    Raises:
        PlanPreconditionError: If the orders are not permutations of each other.
    """
    check_permutation(current, desired)
    skeleton = find_skeleton(current, desired)

    working = Order.from_ids(current)
    moves: list[MoveOperation] = []
    previous: str | None = None
    for item_id in desired:
        if item_id not in skeleton:
            move = MoveOperation(item_id, previous)
            working.relocate(move.id, move.after_id)
            moves.append(move)
        previous = item_id

    if working.ids != list(desired):
        raise RuntimeError("Move plan does not reproduce the desired order")

    logger.debug(
        "Planned {} moves for {} items (skeleton of {})", len(moves), len(current), len(skeleton)
    )
    return moves


def plan_moves_naive(current: Sequence[str], desired: Sequence[str]) -> list[MoveOperation]:
    """Walk ``desired`` and move every id that is not already at its index.

    Always correct, but ignores order already present further down the list
    and can need up to n - 1 moves.
    """
    check_permutation(current, desired)
    working = Order.from_ids(current)
    moves: list[MoveOperation] = []
    previous: str | None = None
    for target_idx, item_id in enumerate(desired):
        if working.index(item_id) != target_idx:
            move = MoveOperation(item_id, previous)
            working.relocate(move.id, move.after_id)
            moves.append(move)
        previous = item_id
    return moves


def apply_moves(current: Sequence[str], plan: Sequence[MoveOperation]) -> list[str]:
    """Simulate a plan on a list of ids and return the resulting order."""
    working = Order.from_ids(current)
    for move in plan:
        working.relocate(move.id, move.after_id)
    return working.ids


PLANNERS: dict[str, Planner] = {
    "minimal": plan_moves,
    "naive": plan_moves_naive,
}


def get_planner(name: str) -> Planner:
    """Look up a planner by name ("minimal" or "naive")."""
    try:
        return PLANNERS[name]
    except KeyError:
        available = ", ".join(sorted(PLANNERS))
        raise ValueError(f"Unknown planner '{name}'. Available: {available}") from None

"""
Play-order sequencing: keep the same players out of back-to-back matches.
"""

from typing import List, Optional, Sequence

from courtmatch.models import Match, Budget
from courtmatch.core.config import SEQUENCING_MAX_PASSES
from courtmatch.core.logging_config import get_logger

logger = get_logger(__name__)


def count_adjacent_conflicts(matches: Sequence[Match]) -> int:
    """Number of neighbouring match pairs that share at least one player."""
    return sum(
        1 for i in range(len(matches) - 1)
        if matches[i].shares_players_with(matches[i + 1])
    )


def _local_conflicts(arr: List[Match], positions) -> int:
    pairs = set()
    for pos in positions:
        if pos - 1 >= 0:
            pairs.add(pos - 1)
        if pos + 1 < len(arr):
            pairs.add(pos)
    return sum(1 for p in pairs if arr[p].shares_players_with(arr[p + 1]))


def sequence_matches(matches: Sequence[Match], budget: Optional[Budget] = None) -> List[Match]:
    """
    Reorder matches so adjacent ones share no players where possible.

    For each adjacent pair that shares a player, the nearest later match that
    clashes with neither neighbour is swapped in, provided the swap lowers the
    number of adjacent clashes. Runs up to ``budget`` passes and stops early
    when a pass changes nothing. Conflicts with no valid swap are left in
    place. The result is always a permutation of the input.
    """
    arr = list(matches)
    if len(arr) <= 1:
        return arr

    max_passes = min((budget or Budget(SEQUENCING_MAX_PASSES)).max_attempts, len(arr))
    starting_conflicts = count_adjacent_conflicts(arr)

    for _ in range(max_passes):
        changed = False
        for i in range(len(arr) - 1):
            if not arr[i].shares_players_with(arr[i + 1]):
                continue

            for j in range(i + 2, len(arr)):
                candidate = arr[j]
                if candidate.shares_players_with(arr[i]):
                    continue
                following = arr[i + 1] if j == i + 2 else arr[i + 2]
                if candidate.shares_players_with(following):
                    continue

                before = _local_conflicts(arr, (i + 1, j))
                arr[i + 1], arr[j] = arr[j], arr[i + 1]
                if _local_conflicts(arr, (i + 1, j)) < before:
                    changed = True
                    break
                arr[i + 1], arr[j] = arr[j], arr[i + 1]

        if not changed:
            break

    remaining = count_adjacent_conflicts(arr)
    if remaining:
        logger.info(
            "Sequencing: %d -> %d back-to-back conflicts (no further valid swaps)",
            starting_conflicts, remaining
        )
    return arr

"""
Safety Algorithm (Banker's Algorithm) for the Banker's Allocator.

Decides whether a snapshot is safe, i.e. whether some order exists in
which every process can obtain its full remaining need and finish.
"""

import numpy as np
from typing import List, Sequence

from algorithms.vectors import is_less_or_equal
from models.decision import SafetyResult
from models.snapshot import SystemSnapshot


def check_safety(snapshot: SystemSnapshot) -> SafetyResult:
    """
    Check if a snapshot is in a safe state.

    Algorithm:
    1. Initialize Work = Available, Finish = [False] * num_processes
    2. Scan processes in ascending index order; for each unfinished i with
       Need[i] <= Work: Work += Allocation[i], Finish[i] = True, append i
    3. Repeat full passes until every process finished (SAFE) or a pass
       finishes nobody (UNSAFE)

    Within a pass the scan continues from i + 1 after a finish rather
    than restarting at 0, so ties resolve by ascending index per pass.

    Time Complexity: O(P²×R)

    Args:
        snapshot: State to check (never modified)

    Returns:
        SafetyResult with the discovered completion order

    References:
        Silberschatz, A., Galvin, P. B., & Gagne, G. (2018).
        Operating System Concepts (10th ed.). Chapter 7.5: Deadlock Avoidance.
    """
    num_processes = snapshot.num_processes

    # Work is a private copy; the snapshot arrays are read-only
    work = snapshot.available.copy()
    finish = np.zeros(num_processes, dtype=bool)
    safe_sequence: List[int] = []

    made_progress = True
    while made_progress and len(safe_sequence) < num_processes:
        made_progress = False

        for i in range(num_processes):
            if finish[i]:
                continue

            if is_less_or_equal(snapshot.need[i], work):
                # Process can finish: its allocation returns to the pool
                work += snapshot.allocation[i]
                finish[i] = True
                safe_sequence.append(i)
                made_progress = True

    blocked = tuple(int(i) for i in np.flatnonzero(~finish))

    return SafetyResult(
        is_safe=len(safe_sequence) == num_processes,
        order=tuple(safe_sequence),
        blocked=blocked
    )


def verify_safe_sequence(snapshot: SystemSnapshot, order: Sequence[int]) -> bool:
    """
    Replay a completion order and check every step fits.

    Each process in turn must have Need <= Available + everything released
    by the processes before it.

    Args:
        snapshot: State the order starts from
        order: Candidate safe sequence

    Returns:
        True if order names every process once and each can finish in turn
    """
    if sorted(order) != list(range(snapshot.num_processes)):
        return False

    work = snapshot.available.copy()
    for pid in order:
        if not is_less_or_equal(snapshot.need[pid], work):
            return False
        work += snapshot.allocation[pid]

    return True

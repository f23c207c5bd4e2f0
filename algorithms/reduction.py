"""
Graph reduction shared by the Banker's safety algorithm and deadlock detection.

Both algorithms repeatedly pick a process whose outstanding demand fits in
the Work vector, pretend it runs to completion and reclaim its allocation.
They differ only in which matrix bounds the demand (Need vs Request), how
the Finish vector is seeded and how a successful run is tagged.
"""

import numpy as np
from dataclasses import dataclass
from typing import List, Optional

from analysis.trace import ExecutionTrace, INITIAL_STATE, DEADLOCK_DETECTED, complete_action


@dataclass(frozen=True)
class ReductionPolicy:
    """
    Parameters of one reduction run.

    Attributes:
        bound: [P][R] demand a process must be able to satisfy from Work
            (Need for Banker's Algorithm, Request for detection)
        initial_finish: [P] Finish flags at the start of the run
        success_action: Tag recorded when every process finishes
    """
    bound: np.ndarray
    initial_finish: List[bool]
    success_action: str


@dataclass(frozen=True)
class ReductionOutcome:
    """
    Result of one reduction run.

    Attributes:
        completed: True if every process could be finished
        sequence: Indices of the processes completed during the run, in order
        finish: Final Finish flags
    """
    completed: bool
    sequence: List[int]
    finish: List[bool]

    @property
    def unfinished(self) -> List[int]:
        """Indices of processes still unfinished, ascending."""
        return [i for i, done in enumerate(self.finish) if not done]


def find_next_completable(
    bound: np.ndarray,
    work: np.ndarray,
    finish: List[bool]
) -> Optional[int]:
    """
    Find the lowest-index unfinished process whose demand fits in Work.

    Args:
        bound: [P][R] demand matrix
        work: [R] current Work vector
        finish: [P] current Finish flags

    Returns:
        Process index, or None if no unfinished process can complete
    """
    for i, done in enumerate(finish):
        if not done and np.all(bound[i] <= work):
            return i
    return None


def reduce_graph(
    allocation: np.ndarray,
    available: np.ndarray,
    policy: ReductionPolicy,
    trace: ExecutionTrace
) -> ReductionOutcome:
    """
    Run the Work/Finish reduction and record every step in the trace.

    Algorithm:
    1. Work = Available.copy(), Finish = policy.initial_finish
    2. Find the first i where Finish[i] == False and Bound[i] <= Work
    3. If found: Finish[i] = True, Work += Allocation[i], restart from step 2
    4. If not found while some Finish[i] == False: stuck (unsafe / deadlock)

    The scan restarts from index 0 after every completion, so the lowest
    completable index always goes first. Time Complexity: O(P²×R)

    Args:
        allocation: [P][R] current allocation matrix
        available: [R] available vector
        policy: Demand bound, Finish seeding and success tag
        trace: Trace to reset and fill

    Returns:
        ReductionOutcome of the run
    """
    # Work and Finish are local to this run
    work = available.copy()
    finish = list(policy.initial_finish)
    sequence = []

    trace.clear()
    trace.record(work, finish, INITIAL_STATE)

    while not all(finish):
        i = find_next_completable(policy.bound, work, finish)

        if i is None:
            trace.record(work, finish, DEADLOCK_DETECTED)
            return ReductionOutcome(completed=False, sequence=sequence, finish=finish)

        # Process can complete: reclaim its allocation
        finish[i] = True
        work += allocation[i]
        sequence.append(i)

        trace.record(work, finish, complete_action(i), current_process=i, allocated=allocation[i])

    trace.record(work, finish, policy.success_action)
    return ReductionOutcome(completed=True, sequence=sequence, finish=finish)

"""
Deadlock Detection Algorithm for the Banker's Algorithm & Deadlock Detection Simulator.

Implements matrix-based deadlock detection (Work/Finish algorithm) for
multi-instance resource systems.
"""

from typing import List, Sequence, Tuple

from algorithms.reduction import ReductionOutcome, ReductionPolicy, reduce_graph
from analysis.trace import ExecutionTrace, Step, NO_DEADLOCK_DETECTED
from models.system_state import DetectionState
from utils.matrix import MatrixShapeError, to_matrix, to_vector, validate_matrix, validate_vector


class DeadlockEngine:
    """
    Deadlock detection over a fixed snapshot of allocations and pending requests.

    CRITICAL: Uses Request[i] (current pending request), NOT Need[i] (max
    future request). The matrices are never modified after construction.

    Four Deadlock Conditions Manifested:
    - Mutual Exclusion: Resource allocation (only one process per instance)
    - Hold and Wait: Process keeps allocation while having pending requests in Request Matrix
    - No Preemption: Resources released only voluntarily
    - Circular Wait: Unsatisfiable pending requests; detection identifies the processes involved

    References:
        Silberschatz, A., Galvin, P. B., & Gagne, G. (2018).
        Operating System Concepts (10th ed.). Chapter 7: Deadlocks.
    """

    def __init__(
        self,
        allocation: Sequence[Sequence[int]],
        request: Sequence[Sequence[int]],
        available: Sequence[int]
    ):
        """
        Initialize the engine from copies of the inputs.

        Args:
            allocation: [P][R] Resources held by each process
            request: [P][R] Resources each process is blocked waiting for
            available: [R] Free instances of each resource type

        Raises:
            MatrixShapeError: If allocation and request disagree on the number
                of processes, a row does not have one entry per resource type,
                or an entry is not a non-negative integer
        """
        validate_vector(available, "available")
        num_resources = len(available)
        num_processes = len(request)

        if len(allocation) != num_processes:
            raise MatrixShapeError(
                f"allocation has {len(allocation)} rows but request has {num_processes}"
            )
        validate_matrix(allocation, num_processes, num_resources, "allocation")
        validate_matrix(request, num_processes, num_resources, "request")

        self._allocation = to_matrix(allocation, num_resources)
        self._request = to_matrix(request, num_resources)
        self._available = to_vector(available)

        self._trace = ExecutionTrace()

    @property
    def num_processes(self) -> int:
        """Number of processes in the system."""
        return self._request.shape[0]

    @property
    def num_resources(self) -> int:
        """Number of resource types in the system."""
        return self._available.shape[0]

    def _initialize_finish(self) -> List[bool]:
        """
        Seed the Finish vector.

        Processes holding no resources cannot be part of a deadlock, so they
        start out finished.
        """
        return [not row.any() for row in self._allocation]

    def _run_detection(self) -> ReductionOutcome:
        policy = ReductionPolicy(
            bound=self._request,
            initial_finish=self._initialize_finish(),
            success_action=NO_DEADLOCK_DETECTED,
        )
        return reduce_graph(self._allocation, self._available, policy, self._trace)

    def is_deadlocked(self) -> bool:
        """
        Check if the system is currently deadlocked. Rebuilds the trace.

        Returns:
            True if some process can never have its pending request satisfied
        """
        return not self._run_detection().completed

    def get_deadlocked_processes(self) -> List[int]:
        """
        Identify the processes involved in a deadlock.

        Returns:
            Indices of every process still unfinished when the reduction gets
            stuck (ascending), or an empty list if there is no deadlock
        """
        outcome = self._run_detection()
        if outcome.completed:
            return []
        return outcome.unfinished

    def detect(self) -> Tuple[bool, List[int]]:
        """
        Detect deadlock and identify the deadlocked processes in one run.

        Returns:
            Tuple of (deadlock_exists, list of deadlocked process indices)
        """
        outcome = self._run_detection()
        deadlocked = [] if outcome.completed else outcome.unfinished
        return not outcome.completed, deadlocked

    def get_state(self) -> DetectionState:
        """Return a copy of the current matrices and vectors."""
        return DetectionState(
            allocation=self._allocation.tolist(),
            request=self._request.tolist(),
            available=self._available.tolist(),
        )

    def get_steps(self) -> List[Step]:
        """Return the steps recorded by the most recent detection run."""
        return self._trace.steps

"""
Deadlock Avoidance Algorithm (Banker's Algorithm) for the Simulator.

Implements Banker's Algorithm to keep the system out of unsafe states:
safety checking, safe sequence discovery and request arbitration with
rollback.
"""

import numpy as np
from typing import List, Sequence, Tuple

from algorithms.reduction import ReductionOutcome, ReductionPolicy, reduce_graph
from analysis.trace import ExecutionTrace, Step, SAFE_STATE
from models.system_state import SafetyState
from utils.matrix import MatrixShapeError, is_count, to_matrix, to_vector, validate_matrix, validate_vector


class InvalidProcessIndexError(ValueError):
    """Exception raised when a request names a process outside [0, P)."""
    pass


class InvalidRequestFormatError(ValueError):
    """Exception raised when a request vector does not have one entry per resource type."""
    pass


class SafetyEngine:
    """
    Banker's Algorithm over a fixed set of processes and resource types.

    Maintains the four matrices of the algorithm:
    - Available[R]: free instances of each resource type
    - Max[P][R]: maximum instances each process may ever claim
    - Allocation[P][R]: instances each process currently holds
    - Need[P][R]: Max - Allocation

    Available and Need are derived at construction and afterwards updated
    incrementally by request_resources(), the only mutating operation.

    References:
        Silberschatz, A., Galvin, P. B., & Gagne, G. (2018).
        Operating System Concepts (10th ed.). Chapter 7.5: Deadlock Avoidance.
    """

    def __init__(
        self,
        resources: Sequence[int],
        allocation: Sequence[Sequence[int]],
        max: Sequence[Sequence[int]]
    ):
        """
        Initialize the engine from copies of the inputs.

        Args:
            resources: [R] Total instances of each resource type
            allocation: [P][R] Resources currently held by each process
            max: [P][R] Maximum resources each process may claim

        Raises:
            MatrixShapeError: If allocation and max disagree on the number of
                processes, a row does not have one entry per resource type,
                or an entry is not a non-negative integer
        """
        validate_vector(resources, "resources")
        num_resources = len(resources)
        num_processes = len(max)

        if len(allocation) != num_processes:
            raise MatrixShapeError(
                f"allocation has {len(allocation)} rows but max has {num_processes}"
            )
        validate_matrix(allocation, num_processes, num_resources, "allocation")
        validate_matrix(max, num_processes, num_resources, "max")

        self._resources = to_vector(resources)
        self._allocation = to_matrix(allocation, num_resources)
        self._max = to_matrix(max, num_resources)

        # Available = Resources - column sums of Allocation
        self._available = self._resources - self._allocation.sum(axis=0)
        # Need = Max - Allocation
        self._need = self._max - self._allocation

        self._trace = ExecutionTrace()

    @property
    def num_processes(self) -> int:
        """Number of processes in the system."""
        return self._max.shape[0]

    @property
    def num_resources(self) -> int:
        """Number of resource types in the system."""
        return self._resources.shape[0]

    def _run_safety_algorithm(self) -> ReductionOutcome:
        """Run the reduction bounded by Need, starting with no process finished."""
        policy = ReductionPolicy(
            bound=self._need,
            initial_finish=[False] * self.num_processes,
            success_action=SAFE_STATE,
        )
        return reduce_graph(self._allocation, self._available, policy, self._trace)

    def is_safe(self) -> bool:
        """
        Check if the current state is safe.

        A state is safe if some ordering exists in which every process can
        obtain its full need and release its holdings. Rebuilds the trace.

        Returns:
            True if a safe sequence exists
        """
        return self._run_safety_algorithm().completed

    def find_safe_sequence(self) -> List[int]:
        """
        Find a safe completion sequence.

        Ties are broken by lowest process index, so the sequence is
        deterministic for a given state.

        Returns:
            Process indices in completion order, or an empty list if the
            state is unsafe
        """
        outcome = self._run_safety_algorithm()
        if not outcome.completed:
            return []
        return outcome.sequence

    def check_safety(self) -> Tuple[bool, List[int]]:
        """
        Check safety and return the safe sequence in a single run.

        Unlike find_safe_sequence(), an unsafe state (False, []) cannot be
        confused with a system without processes (True, []).

        Returns:
            Tuple of (is_safe, safe_sequence if safe else [])
        """
        outcome = self._run_safety_algorithm()
        if not outcome.completed:
            return False, []
        return True, outcome.sequence

    def _validate_request(self, process_index: int, request: Sequence[int]) -> None:
        """
        Validate the shape of a request.

        Request entries only need to be non-negative integers here. An entry
        too large for the engine's arrays exceeds the process's Need, so the
        request is rejected rather than treated as malformed.

        Raises:
            InvalidProcessIndexError: If process_index is not an integer in [0, P)
            InvalidRequestFormatError: If request does not have R non-negative integer entries
        """
        if not is_count(process_index, bounded=False) or process_index >= self.num_processes:
            raise InvalidProcessIndexError(f"Invalid process ID: {process_index}")
        if len(request) != self.num_resources:
            raise InvalidRequestFormatError(
                f"Invalid request format, expected {self.num_resources} resources"
            )
        try:
            validate_vector(request, "request", bounded=False)
        except MatrixShapeError as e:
            raise InvalidRequestFormatError(f"Invalid request format, {e}") from e

    def _is_request_valid(self, process_index: int, request: Sequence[int]) -> bool:
        """
        A request is valid if it exceeds neither the process's Need nor Available.

        Compared as Python ints so that oversized entries are rejected before
        they reach numpy.
        """
        need = self._need[process_index].tolist()
        available = self._available.tolist()
        return all(
            amount <= need[j] and amount <= available[j]
            for j, amount in enumerate(request)
        )

    def _allocate(self, process_index: int, request: np.ndarray) -> None:
        self._available -= request
        self._allocation[process_index] += request
        self._need[process_index] -= request

    def _rollback(self, process_index: int, request: np.ndarray) -> None:
        self._available += request
        self._allocation[process_index] -= request
        self._need[process_index] += request

    def request_resources(self, process_index: int, request: Sequence[int]) -> bool:
        """
        Handle a resource request using Banker's Algorithm.

        Steps:
        1. Validate the process index and the request length (errors)
        2. Reject if Request > Need or Request > Available (no state change)
        3. Tentatively allocate: Available -= Request, Allocation += Request,
           Need -= Request
        4. Run the safety algorithm on the new state
        5. If safe: keep the allocation
           If unsafe: roll back to exactly the previous state

        Args:
            process_index: Index of the requesting process
            request: [R] Instances requested of each resource type

        Returns:
            True if the request was granted, False if it was rejected or
            would leave the system unsafe

        Raises:
            InvalidProcessIndexError: If process_index is not an integer in [0, P)
            InvalidRequestFormatError: If request does not have R non-negative integer entries
        """
        self._validate_request(process_index, request)

        if not self._is_request_valid(process_index, request):
            return False

        request_vector = to_vector(request)

        self._allocate(process_index, request_vector)

        if not self.is_safe():
            self._rollback(process_index, request_vector)
            return False

        # SANITY CHECK: Verify resource conservation after grant
        self.assert_resource_conservation(f"after granting {list(request)} to P{process_index}")
        return True

    def assert_resource_conservation(self, context: str = "") -> None:
        """
        Verify the matrix invariants.

        - Available + column sums of Allocation == Resources
        - Need == Max - Allocation

        Args:
            context: Description of when this check is being run (for error messages)

        Raises:
            AssertionError: If an invariant is violated
        """
        allocated = self._allocation.sum(axis=0)
        assert np.array_equal(allocated + self._available, self._resources), (
            f"Resource conservation violated {context}\n"
            f"  Allocated: {allocated.tolist()}, Available: {self._available.tolist()}, "
            f"Total: {self._resources.tolist()}"
        )
        assert np.array_equal(self._need, self._max - self._allocation), (
            f"Need matrix out of sync with Max - Allocation {context}"
        )

    def get_state(self) -> SafetyState:
        """
        Return a copy of the current matrices and vectors.

        Returns:
            SafetyState sharing no storage with the engine
        """
        return SafetyState(
            resources=self._resources.tolist(),
            allocation=self._allocation.tolist(),
            max=self._max.tolist(),
            available=self._available.tolist(),
            need=self._need.tolist(),
        )

    def get_steps(self) -> List[Step]:
        """Return the steps recorded by the most recent algorithm run."""
        return self._trace.steps

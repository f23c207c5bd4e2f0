"""
Execution Trace for the Banker's Algorithm & Deadlock Detection Simulator.

Records every state transition of a graph-reduction run so that an external
renderer can replay the decision process step by step.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple


# Action tags consumed verbatim by renderers
INITIAL_STATE = "Initial state"
DEADLOCK_DETECTED = "Deadlock detected"
SAFE_STATE = "Safe state"
NO_DEADLOCK_DETECTED = "No deadlock detected"
COMPLETE_PREFIX = "Complete P"


def complete_action(process_index: int) -> str:
    """Build the action tag for a process being simulated to completion."""
    return f"{COMPLETE_PREFIX}{process_index}"


@dataclass(frozen=True)
class Step:
    """
    One recorded point in an algorithm run.

    Attributes:
        action: Action tag ("Initial state", "Complete P{i}", ...)
        work: Snapshot of the work vector after the action
        finish: Snapshot of the per-process finish flags after the action
        current_process: Index of the process completed at this step (if any)
        allocated: Allocation row released by the completed process (if any)
    """
    action: str
    work: Tuple[int, ...]
    finish: Tuple[bool, ...]
    current_process: Optional[int] = None
    allocated: Optional[Tuple[int, ...]] = None

    @property
    def is_completion(self) -> bool:
        """True if this step completes a process."""
        return self.current_process is not None and self.action.startswith(COMPLETE_PREFIX)

    def to_dict(self) -> Dict:
        """Convert to a JSON-serializable dictionary."""
        return {
            'current_process': self.current_process,
            'work': list(self.work),
            'finish': list(self.finish),
            'action': self.action,
            'allocated': list(self.allocated) if self.allocated is not None else None,
        }

    def __str__(self) -> str:
        """Format step for logging."""
        finish_str = "".join("T" if done else "F" for done in self.finish)
        line = f"{self.action:22} work={list(self.work)} finish=[{finish_str}]"
        if self.allocated is not None:
            line += f" released={list(self.allocated)}"
        return line


class ExecutionTrace:
    """
    Append-only log of Step records for the most recent algorithm run.

    The owning engine clears the trace at the start of every algorithmic
    call; readers only ever receive copies of the step list.
    """

    def __init__(self):
        self._steps: List[Step] = []

    def clear(self) -> None:
        """Drop all recorded steps."""
        self._steps = []

    def record(
        self,
        work: Sequence[int],
        finish: Sequence[bool],
        action: str,
        current_process: Optional[int] = None,
        allocated: Optional[Sequence[int]] = None
    ) -> Step:
        """
        Snapshot the current reduction state and append it as a step.

        Values are copied into tuples of builtin ints/bools, so later changes
        to work, finish or the allocation matrix never show up in the trace.

        Args:
            work: Current work vector
            finish: Current finish flags
            action: Action tag
            current_process: Process completed at this step
            allocated: Allocation row of the completed process

        Returns:
            The recorded Step
        """
        step = Step(
            action=action,
            work=tuple(int(value) for value in work),
            finish=tuple(bool(done) for done in finish),
            current_process=int(current_process) if current_process is not None else None,
            allocated=tuple(int(value) for value in allocated) if allocated is not None else None,
        )
        self._steps.append(step)
        return step

    @property
    def steps(self) -> List[Step]:
        """Return all steps in recording order."""
        return list(self._steps)

    def __len__(self) -> int:
        return len(self._steps)

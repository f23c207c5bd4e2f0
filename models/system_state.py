"""
System State snapshots for the Banker's Algorithm & Deadlock Detection Simulator.

Immutable copies of the matrices and vectors held by the engines, handed to
callers by get_state(). They hold plain Python lists, never engine storage.
"""

from dataclasses import dataclass
from typing import Dict, List


def _format_vector(title: str, values: List[int]) -> List[str]:
    """Format a resource vector as a single bracketed line."""
    cells = ", ".join(f"R{j}:{value:2}" for j, value in enumerate(values))
    return [f"\n{title}:", f"  [{cells}]"]


def _format_matrix(title: str, matrix: List[List[int]], num_resources: int) -> List[str]:
    """Format an N×M matrix with P{i} rows and R{j} columns."""
    lines = [f"\n{title}:"]
    lines.append("     " + " ".join([f"R{j:2}" for j in range(num_resources)]))
    for i, row in enumerate(matrix):
        lines.append(f"  P{i}: " + " ".join([f"{value:3}" for value in row]))
    return lines


@dataclass(frozen=True)
class SafetyState:
    """
    Snapshot of a SafetyEngine.

    Attributes:
        resources: [R] Total instances of each resource type
        allocation: [P][R] Resources held by each process
        max: [P][R] Maximum resources each process may claim
        available: [R] Free instances (resources - column sums of allocation)
        need: [P][R] Max - Allocation
    """
    resources: List[int]
    allocation: List[List[int]]
    max: List[List[int]]
    available: List[int]
    need: List[List[int]]

    @property
    def num_processes(self) -> int:
        return len(self.allocation)

    @property
    def num_resources(self) -> int:
        return len(self.resources)

    def to_dict(self) -> Dict:
        """Convert to a JSON-serializable dictionary."""
        return {
            'resources': list(self.resources),
            'allocation': [list(row) for row in self.allocation],
            'max': [list(row) for row in self.max],
            'available': list(self.available),
            'need': [list(row) for row in self.need],
        }

    def display(self) -> str:
        """
        Generate readable string representation of the state.

        Returns:
            Formatted string showing all matrices and vectors
        """
        output = ["\n" + "="*60, "BANKER'S STATE", "="*60]
        output.extend(_format_vector("Total Resources", self.resources))
        output.extend(_format_vector("Available Resources", self.available))
        output.extend(_format_matrix("Allocation Matrix", self.allocation, self.num_resources))
        output.extend(_format_matrix("Max Matrix", self.max, self.num_resources))
        output.extend(_format_matrix("Need Matrix (Max - Allocation)", self.need, self.num_resources))
        output.append("\n" + "="*60)
        return "\n".join(output)


@dataclass(frozen=True)
class DetectionState:
    """
    Snapshot of a DeadlockEngine.

    Attributes:
        allocation: [P][R] Resources held by each process
        request: [P][R] Resources each process is blocked waiting for
        available: [R] Free instances
    """
    allocation: List[List[int]]
    request: List[List[int]]
    available: List[int]

    @property
    def num_processes(self) -> int:
        return len(self.allocation)

    @property
    def num_resources(self) -> int:
        return len(self.available)

    def to_dict(self) -> Dict:
        """Convert to a JSON-serializable dictionary."""
        return {
            'allocation': [list(row) for row in self.allocation],
            'request': [list(row) for row in self.request],
            'available': list(self.available),
        }

    def display(self) -> str:
        """Generate readable string representation of the state."""
        output = ["\n" + "="*60, "DETECTION STATE", "="*60]
        output.extend(_format_vector("Available Resources", self.available))
        output.extend(_format_matrix("Allocation Matrix", self.allocation, self.num_resources))
        output.extend(_format_matrix("Request Matrix (Pending)", self.request, self.num_resources))
        output.append("\n" + "="*60)
        return "\n".join(output)

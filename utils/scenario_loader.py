"""
Scenario Loader for the Banker's Algorithm & Deadlock Detection Simulator.

Loads and validates JSON scenario files describing either a Banker's
Algorithm state (with optional scripted requests) or a deadlock detection
snapshot.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple, Union

from algorithms.avoidance import SafetyEngine
from algorithms.detection import DeadlockEngine
from utils.matrix import MatrixShapeError


SAFETY = 'safety'
DETECTION = 'detection'

REQUIRED_FIELDS = {
    SAFETY: ['resources', 'allocation', 'max'],
    DETECTION: ['allocation', 'request', 'available'],
}


class ScenarioLoadError(Exception):
    """Exception raised when scenario file cannot be loaded or is invalid."""
    pass


@dataclass
class Scenario:
    """
    A loaded scenario.

    Attributes:
        kind: 'safety' or 'detection'
        engine: Engine initialized from the scenario matrices
        requests: Scripted (process_index, request) pairs to arbitrate (safety only)
        description: Free-text description from the file
    """
    kind: str
    engine: Union[SafetyEngine, DeadlockEngine]
    requests: List[Tuple[int, List[int]]] = field(default_factory=list)
    description: str = ""


def load_scenario(file_path: str) -> Scenario:
    """
    Load scenario from JSON file.

    Args:
        file_path: Path to scenario JSON file

    Returns:
        Scenario with an initialized engine

    Raises:
        ScenarioLoadError: If file cannot be loaded or is invalid
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ScenarioLoadError(f"Scenario file not found: {file_path}")
    except json.JSONDecodeError as e:
        raise ScenarioLoadError(f"Invalid JSON in scenario file: {e}")

    return parse_scenario(data)


def parse_scenario(data: Dict[str, Any]) -> Scenario:
    """
    Build a scenario from an already decoded JSON document.

    Args:
        data: Scenario dictionary

    Returns:
        Scenario with an initialized engine

    Raises:
        ScenarioLoadError: If the document is invalid
    """
    if not isinstance(data, dict):
        raise ScenarioLoadError("Scenario must be a JSON object")

    kind = data.get('type')
    if kind not in REQUIRED_FIELDS:
        raise ScenarioLoadError(
            f"Scenario 'type' must be one of {sorted(REQUIRED_FIELDS)}, got {kind!r}"
        )

    # Validate required fields
    for name in REQUIRED_FIELDS[kind]:
        if name not in data:
            raise ScenarioLoadError(f"Scenario missing '{name}' field")

    description = data.get('description', '')

    if kind == SAFETY:
        _validate_banker_allocations(data['resources'], data['allocation'], data['max'])
        try:
            engine = SafetyEngine(data['resources'], data['allocation'], data['max'])
        except MatrixShapeError as e:
            raise ScenarioLoadError(f"Invalid matrices: {e}")
        requests = _load_requests(data.get('requests', []), engine)
        return Scenario(kind=kind, engine=engine, requests=requests, description=description)

    if 'requests' in data:
        raise ScenarioLoadError("'requests' are only supported in safety scenarios")
    try:
        engine = DeadlockEngine(data['allocation'], data['request'], data['available'])
    except MatrixShapeError as e:
        raise ScenarioLoadError(f"Invalid matrices: {e}")
    return Scenario(kind=kind, engine=engine, description=description)


def _validate_banker_allocations(
    resources: List[int],
    allocation: List[List[int]],
    max_matrix: List[List[int]]
) -> None:
    """
    Validate that allocations are consistent with maximum claims and totals.

    Critical validation:
    - allocation[i][r] <= max[i][r] for every process and resource
    - sum(allocation[:,r]) <= resources[r] for every resource

    Shape problems are left to the engine, which reports them precisely.

    Raises:
        ScenarioLoadError: If allocations are invalid
    """
    try:
        for i, (alloc_row, max_row) in enumerate(zip(allocation, max_matrix)):
            for r, (alloc, max_d) in enumerate(zip(alloc_row, max_row)):
                if alloc > max_d:
                    raise ScenarioLoadError(
                        f"Process P{i}: allocation[{r}] ({alloc}) exceeds max[{r}] ({max_d})"
                    )

        for r, total in enumerate(resources):
            allocated = sum(row[r] for row in allocation if r < len(row))
            if allocated > total:
                raise ScenarioLoadError(
                    f"VALIDATION FAILED: Resource R{r} allocations ({allocated}) "
                    f"exceed total instances ({total})"
                )
    except TypeError as e:
        raise ScenarioLoadError(f"Invalid matrices: {e}")


def _load_requests(request_data: List[Dict], engine: SafetyEngine) -> List[Tuple[int, List[int]]]:
    """
    Load scripted requests for a safety scenario.

    Args:
        request_data: List of {"process": i, "request": [...]} dictionaries
        engine: Engine the requests will be made against (for validation)

    Returns:
        List of (process_index, request) tuples in file order
    """
    requests = []

    for n, req in enumerate(request_data):
        if 'process' not in req:
            raise ScenarioLoadError(f"Request {n} missing 'process' field")
        if 'request' not in req:
            raise ScenarioLoadError(f"Request {n} missing 'request' field")

        process_index = req['process']
        vector = req['request']

        if not isinstance(process_index, int) or not 0 <= process_index < engine.num_processes:
            raise ScenarioLoadError(f"Request {n}: invalid process {process_index!r}")
        if len(vector) != engine.num_resources:
            raise ScenarioLoadError(
                f"Request {n}: request length ({len(vector)}) "
                f"does not match resource count ({engine.num_resources})"
            )
        if any(not isinstance(value, int) or value < 0 for value in vector):
            raise ScenarioLoadError(f"Request {n}: amounts must be non-negative integers")

        requests.append((process_index, list(vector)))

    return requests


def get_scenario_description(file_path: str) -> str:
    """
    Get description from scenario file without full loading.

    Args:
        file_path: Path to scenario JSON file

    Returns:
        Description string, or empty string if not present
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError):
        return ''
    if not isinstance(data, dict):
        return ''
    return data.get('description', '')

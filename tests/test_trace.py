"""
Trace and Graph Reduction Tests

Tests Step recording and the reduction routine shared by both engines.
"""

import json
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import numpy as np

from algorithms.reduction import ReductionPolicy, find_next_completable, reduce_graph
from analysis.trace import (
    DEADLOCK_DETECTED,
    INITIAL_STATE,
    SAFE_STATE,
    ExecutionTrace,
    Step,
    complete_action,
)


def test_record_snapshots_values():
    """Recorded steps must not change when the source vectors change."""
    trace = ExecutionTrace()
    work = np.array([1, 2, 3])
    finish = [False, True]
    allocated = np.array([4, 5, 6])

    step = trace.record(work, finish, complete_action(1), current_process=1, allocated=allocated)

    work += 10
    finish[0] = True
    allocated[0] = 0

    assert step.work == (1, 2, 3)
    assert step.finish == (False, True)
    assert step.allocated == (4, 5, 6)
    assert step.action == "Complete P1"
    assert all(type(value) is int for value in step.work), "Snapshots hold builtin ints"


def test_step_is_immutable():
    step = Step(action=INITIAL_STATE, work=(1,), finish=(False,))
    try:
        step.action = SAFE_STATE
        assert False, "Step should be frozen"
    except AttributeError:
        pass


def test_steps_property_returns_copy():
    trace = ExecutionTrace()
    trace.record([0], [False], INITIAL_STATE)

    steps = trace.steps
    steps.clear()

    assert len(trace) == 1


def test_clear():
    trace = ExecutionTrace()
    trace.record([0], [False], INITIAL_STATE)
    trace.record([1], [True], complete_action(0), current_process=0, allocated=[1])
    trace.record([1], [True], SAFE_STATE)

    assert [s.is_completion for s in trace.steps] == [False, True, False]

    trace.clear()
    assert len(trace) == 0
    assert trace.steps == []


def test_step_to_dict_is_json_ready():
    trace = ExecutionTrace()
    trace.record(np.array([3, 3, 2]), [False, False], INITIAL_STATE)
    trace.record(np.array([5, 3, 2]), [False, True], complete_action(1), 1, np.array([2, 0, 0]))

    data = json.loads(json.dumps([step.to_dict() for step in trace.steps]))
    assert data[0] == {
        'current_process': None,
        'work': [3, 3, 2],
        'finish': [False, False],
        'action': "Initial state",
        'allocated': None,
    }
    assert data[1]['allocated'] == [2, 0, 0]
    assert data[1]['current_process'] == 1

    line = str(trace.steps[1])
    assert "Complete P1" in line and "released=[2, 0, 0]" in line


def test_find_next_completable_prefers_lowest_index():
    bound = np.array([[5, 5], [1, 1], [0, 0]])
    work = np.array([2, 2])

    assert find_next_completable(bound, work, [False, False, False]) == 1
    assert find_next_completable(bound, work, [False, True, False]) == 2
    assert find_next_completable(bound, work, [False, True, True]) is None


def test_reduce_graph_gets_stuck():
    """The scan restarts from index 0 after each completion until no process fits."""
    allocation = np.array([[1, 0], [0, 1], [1, 1]])
    bound = np.array([[1, 1], [0, 0], [2, 2]])
    available = np.array([1, 0])
    trace = ExecutionTrace()

    policy = ReductionPolicy(bound=bound, initial_finish=[False] * 3, success_action=SAFE_STATE)
    outcome = reduce_graph(allocation, available, policy, trace)

    # P0 needs [1,1] > [1,0]; P1 completes -> [1,1]; rescan: P0 -> [2,1]; P2 needs [2,2] > [2,1]
    assert not outcome.completed
    assert outcome.sequence == [1, 0]
    assert outcome.unfinished == [2]
    assert available.tolist() == [1, 0], "Available must not be modified"

    actions = [step.action for step in trace.steps]
    assert actions == [INITIAL_STATE, "Complete P1", "Complete P0", DEADLOCK_DETECTED]


def test_reduce_graph_resets_trace_and_honours_seed():
    allocation = np.array([[0, 0], [1, 0]])
    bound = np.array([[9, 9], [0, 0]])
    trace = ExecutionTrace()
    trace.record([7, 7], [True, True], "stale")

    policy = ReductionPolicy(bound=bound, initial_finish=[True, False], success_action=SAFE_STATE)
    outcome = reduce_graph(allocation, np.array([0, 0]), policy, trace)

    assert outcome.completed
    assert outcome.sequence == [1]
    steps = trace.steps
    assert steps[0].action == INITIAL_STATE
    assert steps[0].finish == (True, False)
    assert steps[-1].action == SAFE_STATE
    assert steps[-1].work == (1, 0)


def test_reduce_graph_without_processes():
    allocation = np.zeros((0, 2), dtype=int)
    trace = ExecutionTrace()
    policy = ReductionPolicy(bound=allocation, initial_finish=[], success_action=SAFE_STATE)

    outcome = reduce_graph(allocation, np.array([1, 1]), policy, trace)

    assert outcome.completed
    assert outcome.sequence == []
    assert [s.action for s in trace.steps] == [INITIAL_STATE, SAFE_STATE]


def main():
    """Run all trace and reduction tests."""
    tests = [
        test_record_snapshots_values,
        test_step_is_immutable,
        test_steps_property_returns_copy,
        test_clear,
        test_step_to_dict_is_json_ready,
        test_find_next_completable_prefers_lowest_index,
        test_reduce_graph_gets_stuck,
        test_reduce_graph_resets_trace_and_honours_seed,
        test_reduce_graph_without_processes,
    ]
    for test in tests:
        test()
        print(f"  ✓ {test.__name__}")
    print("\n✅ Trace and Reduction Tests PASSED")
    return 0


if __name__ == '__main__':
    sys.exit(main())

"""
Scenario, Logger and Simulator Tests

Tests JSON scenario loading and validation, the simulator logger and the
command line driver on the bundled scenario files.
"""

import json
import sys
import tempfile
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from algorithms.avoidance import SafetyEngine
from algorithms.detection import DeadlockEngine
from analysis.trace import ExecutionTrace, INITIAL_STATE
from simulator import main as simulator_main
from simulator import run_simulation
from utils.logger import SimulatorLogger
from utils.scenario_loader import (
    ScenarioLoadError,
    get_scenario_description,
    load_scenario,
    parse_scenario,
)


SCENARIOS_DIR = project_root / "scenarios"


def _write_json(directory: str, name: str, data) -> str:
    path = Path(directory) / name
    path.write_text(json.dumps(data), encoding='utf-8')
    return str(path)


def _expect_load_error(data, fragment: str) -> None:
    try:
        parse_scenario(data)
        assert False, f"Should have rejected scenario ({fragment})"
    except ScenarioLoadError as e:
        assert fragment in str(e), f"'{fragment}' not in '{e}'"


def test_load_safety_scenario():
    scenario = load_scenario(str(SCENARIOS_DIR / "banker_textbook.json"))

    assert scenario.kind == "safety"
    assert isinstance(scenario.engine, SafetyEngine)
    assert scenario.engine.get_state().available == [3, 3, 2]
    assert scenario.requests == [(1, [1, 0, 2]), (4, [3, 3, 0]), (0, [0, 2, 0])]
    assert "textbook" in scenario.description


def test_load_detection_scenario():
    scenario = load_scenario(str(SCENARIOS_DIR / "detection_deadlock.json"))

    assert scenario.kind == "detection"
    assert isinstance(scenario.engine, DeadlockEngine)
    assert scenario.requests == []
    assert scenario.engine.get_deadlocked_processes() == [0, 1, 2, 5]

    no_deadlock = load_scenario(str(SCENARIOS_DIR / "detection_no_deadlock.json"))
    assert not no_deadlock.engine.is_deadlocked()


def test_missing_and_malformed_files():
    try:
        load_scenario(str(SCENARIOS_DIR / "does_not_exist.json"))
        assert False, "Should have raised ScenarioLoadError"
    except ScenarioLoadError as e:
        assert "not found" in str(e)

    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "broken.json"
        path.write_text("{not json", encoding='utf-8')
        try:
            load_scenario(str(path))
            assert False, "Should have raised ScenarioLoadError"
        except ScenarioLoadError as e:
            assert "Invalid JSON" in str(e)


def test_invalid_scenarios_rejected():
    base = {
        'type': 'safety',
        'resources': [3, 2],
        'allocation': [[1, 0], [1, 1]],
        'max': [[2, 1], [1, 2]],
    }

    _expect_load_error({**base, 'type': 'banking'}, "type")
    _expect_load_error({k: v for k, v in base.items() if k != 'max'}, "missing 'max'")
    _expect_load_error({**base, 'allocation': [[3, 0], [1, 1]]}, "exceeds max")
    _expect_load_error({**base, 'resources': [1, 2]}, "exceed total instances")
    _expect_load_error({**base, 'max': [[2, 1]]}, "Invalid matrices")
    _expect_load_error({**base, 'requests': [{'process': 2, 'request': [0, 0]}]}, "invalid process")
    _expect_load_error({**base, 'requests': [{'process': 0, 'request': [0]}]}, "does not match")
    _expect_load_error({**base, 'requests': [{'request': [0, 0]}]}, "missing 'process'")
    _expect_load_error(
        {'type': 'detection', 'allocation': [[1]], 'request': [[0], [0]], 'available': [0]},
        "Invalid matrices",
    )
    _expect_load_error([1, 2, 3], "JSON object")


def test_scenario_description():
    assert "P0, P1, P2 and P5" in get_scenario_description(str(SCENARIOS_DIR / "detection_deadlock.json"))
    assert get_scenario_description(str(SCENARIOS_DIR / "missing.json")) == ''


def test_logger_writes_file_and_filters_debug():
    with tempfile.TemporaryDirectory() as tmp:
        log_path = Path(tmp) / "run.log"
        logger = SimulatorLogger(verbose=False, log_file=str(log_path))

        trace = ExecutionTrace()
        trace.record([3, 3, 2], [False, False], INITIAL_STATE)

        logger.log("hidden detail", "debug")
        logger.log_trace(trace.steps)
        logger.log_request(1, [1, 0, 2], True, "Safe state maintained")
        logger.log_safe_sequence(True, [1, 0])
        logger.log_deadlock([0, 2])
        logger.close()

        content = log_path.read_text(encoding='utf-8')

    assert "Banker's Algorithm / Deadlock Detection Log" in content
    assert "hidden detail" not in content
    assert "Step 0: Initial state" in content
    assert "P1 requests [1, 0, 2] - GRANTED (Safe state maintained)" in content
    assert "Safe sequence: P1 -> P0" in content
    assert "[WARNING] DEADLOCK DETECTED - Processes in deadlock: [P0, P2]" in content


def test_logger_verbose_levels():
    with tempfile.TemporaryDirectory() as tmp:
        log_path = Path(tmp) / "verbose.log"
        logger = SimulatorLogger(verbose=True, log_file=str(log_path))
        logger.log("shown detail", "debug")
        logger.log("bad input", "error")
        logger.log_system_state("STATE TABLE")
        logger.close()

        lines = log_path.read_text(encoding='utf-8').splitlines()

    assert "[DEBUG] shown detail" in lines
    assert "[ERROR] bad input" in lines
    assert "System State:" in lines and "STATE TABLE" in lines


def test_run_safety_scenario_exports_trace():
    with tempfile.TemporaryDirectory() as tmp:
        trace_path = Path(tmp) / "trace.json"
        log_path = Path(tmp) / "run.log"

        code = run_simulation(
            str(SCENARIOS_DIR / "banker_textbook.json"),
            verbose=True,
            log_file=str(log_path),
            trace_json=str(trace_path),
        )
        assert code == 0

        export = json.loads(trace_path.read_text(encoding='utf-8'))
        log = log_path.read_text(encoding='utf-8')

    runs = export['runs']
    assert export['kind'] == 'safety'
    assert runs[0]['operation'] == 'check_safety'
    assert runs[0]['safe'] is True
    assert runs[0]['sequence'] == [1, 3, 0, 2, 4]
    assert runs[0]['steps'][0]['action'] == "Initial state"
    assert runs[0]['steps'][-1]['action'] == "Safe state"

    # P1 granted, P4 exceeds available, P0 would be unsafe
    assert [run['granted'] for run in runs[1:]] == [True, False, False]
    assert runs[3]['steps'][-1]['action'] == "Deadlock detected"

    # Each entry carries the state left behind: P1's grant kept, P0's rolled back
    assert runs[0]['state']['available'] == [3, 3, 2]
    assert runs[1]['state']['available'] == [2, 3, 0]
    assert runs[3]['state']['available'] == [2, 3, 0]
    assert runs[3]['state']['allocation'][0] == [0, 1, 0]
    assert runs[3]['state']['need'][1] == [0, 2, 0]

    assert "Insufficient resources" in log
    assert "Unsafe state detected" in log


def test_run_detection_scenario_via_cli():
    with tempfile.TemporaryDirectory() as tmp:
        trace_path = Path(tmp) / "trace.json"
        code = simulator_main([
            '--scenario', str(SCENARIOS_DIR / "detection_deadlock.json"),
            '--trace-json', str(trace_path),
        ])
        assert code == 0
        export = json.loads(trace_path.read_text(encoding='utf-8'))

    run = export['runs'][0]
    assert run['operation'] == 'detect'
    assert run['deadlocked'] is True
    assert run['processes'] == [0, 1, 2, 5]
    assert run['steps'][-1]['action'] == "Deadlock detected"
    assert run['state'] == {
        'allocation': [[1, 0, 2, 1], [2, 0, 1, 1], [0, 1, 0, 0], [1, 0, 1, 0], [0, 0, 0, 0], [2, 1, 1, 0]],
        'request': [[0, 3, 0, 0], [0, 3, 1, 0], [3, 0, 0, 1], [0, 2, 0, 0], [2, 0, 0, 0], [0, 0, 0, 4]],
        'available': [1, 2, 0, 3],
    }


def test_run_simulation_bad_scenario():
    assert run_simulation(str(SCENARIOS_DIR / "does_not_exist.json")) == 1


def main():
    """Run all scenario, logger and simulator tests."""
    tests = [
        test_load_safety_scenario,
        test_load_detection_scenario,
        test_missing_and_malformed_files,
        test_invalid_scenarios_rejected,
        test_scenario_description,
        test_logger_writes_file_and_filters_debug,
        test_logger_verbose_levels,
        test_run_safety_scenario_exports_trace,
        test_run_detection_scenario_via_cli,
        test_run_simulation_bad_scenario,
    ]
    for test in tests:
        test()
        print(f"  ✓ {test.__name__}")
    print("\n✅ Scenario and Simulator Tests PASSED")
    return 0


if __name__ == '__main__':
    sys.exit(main())

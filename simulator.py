#!/usr/bin/env python3
"""
Banker's Algorithm & Deadlock Detection Simulator
Main entry point for the simulation system.

Loads a scenario, runs the matching engine and logs every recorded step.
"""

import argparse
import json
import sys
from typing import Dict, List, Optional

from algorithms.avoidance import SafetyEngine
from algorithms.detection import DeadlockEngine
from utils.logger import SimulatorLogger
from utils.scenario_loader import SAFETY, Scenario, ScenarioLoadError, load_scenario


def _trace_entry(operation: str, engine, **extra) -> Dict:
    """Build one JSON trace export entry from the engine's latest run and its resulting state."""
    entry = {'operation': operation}
    entry.update(extra)
    entry['steps'] = [step.to_dict() for step in engine.get_steps()]
    entry['state'] = engine.get_state().to_dict()
    return entry


def _precheck_reason(engine: SafetyEngine, process_index: int, request: List[int]) -> Optional[str]:
    """
    Explain why a request would be rejected before the safety check runs.

    Returns:
        Reason string, or None if the request fits within need and available
    """
    state = engine.get_state()
    need = state.need[process_index]
    for r, amount in enumerate(request):
        if amount > need[r]:
            return f"Request exceeds need (R{r} requested: {amount}, need: {need[r]})"
    for r, amount in enumerate(request):
        if amount > state.available[r]:
            return f"Insufficient resources (R{r} requested: {amount}, available: {state.available[r]})"
    return None


def run_safety(engine: SafetyEngine, requests, logger: SimulatorLogger) -> List[Dict]:
    """
    Run the Banker's Algorithm on a scenario.

    Order:
    1. Find the safe sequence of the initial state
    2. Arbitrate each scripted request in file order

    Args:
        engine: Initialized SafetyEngine
        requests: List of (process_index, request) tuples
        logger: Logger for output

    Returns:
        Trace export entries, one per operation
    """
    exports = []

    is_safe, sequence = engine.check_safety()
    logger.log("\nSafety check:")
    logger.log_trace(engine.get_steps())
    logger.log_safe_sequence(is_safe, sequence)
    exports.append(_trace_entry('check_safety', engine, safe=is_safe, sequence=sequence))

    for process_index, request in requests:
        logger.log(f"\n{'-'*60}")
        precheck = _precheck_reason(engine, process_index, request)
        granted = engine.request_resources(process_index, request)

        if granted:
            completed = [step.current_process for step in engine.get_steps() if step.is_completion]
            seq_str = " -> ".join(f"P{pid}" for pid in completed)
            reason = f"Safe state maintained, sequence: {seq_str}"
        elif precheck is None:
            reason = "Unsafe state detected, allocation rolled back"
        else:
            reason = precheck

        logger.log_request(process_index, request, granted, reason)
        if precheck is None and logger.verbose:
            logger.log_trace(engine.get_steps())
        logger.log(f"  Available now: {engine.get_state().available}", "debug")

        exports.append(_trace_entry(
            'request_resources',
            engine,
            process=process_index,
            request=list(request),
            granted=granted,
        ))

    logger.log_system_state(engine.get_state().display())
    return exports


def run_detection(engine: DeadlockEngine, logger: SimulatorLogger) -> List[Dict]:
    """
    Run deadlock detection on a scenario.

    Args:
        engine: Initialized DeadlockEngine
        logger: Logger for output

    Returns:
        Trace export entries, one per operation
    """
    deadlock_exists, deadlocked = engine.detect()
    logger.log("\nDeadlock detection:")
    logger.log_trace(engine.get_steps())
    logger.log_deadlock(deadlocked)
    return [_trace_entry('detect', engine, deadlocked=deadlock_exists, processes=deadlocked)]


def run_simulation(
    scenario_path: str,
    verbose: bool = False,
    log_file: Optional[str] = None,
    trace_json: Optional[str] = None
) -> int:
    """
    Run the engine described by a scenario file.

    Args:
        scenario_path: Path to scenario JSON file
        verbose: Enable verbose logging
        log_file: Optional file to mirror the log to
        trace_json: Optional path to write the recorded traces as JSON

    Returns:
        Process exit code (0 on success, 1 if the scenario could not be loaded)
    """
    logger = SimulatorLogger(verbose=verbose, log_file=log_file)

    try:
        try:
            scenario: Scenario = load_scenario(scenario_path)
        except ScenarioLoadError as e:
            logger.log(f"Failed to load scenario: {e}", "error")
            return 1

        logger.log(f"\n{'='*60}")
        logger.log(f"SIMULATION START: {scenario.kind.upper()}")
        logger.log(f"Scenario: {scenario_path}")
        if scenario.description:
            logger.log(f"Description: {scenario.description}")
        logger.log(f"{'='*60}")

        logger.log(scenario.engine.get_state().display())

        if scenario.kind == SAFETY:
            exports = run_safety(scenario.engine, scenario.requests, logger)
        else:
            exports = run_detection(scenario.engine, logger)

        if trace_json:
            with open(trace_json, 'w', encoding='utf-8') as f:
                json.dump({'scenario': scenario_path, 'kind': scenario.kind, 'runs': exports}, f, indent=2)
            logger.log(f"\nTrace written to {trace_json}")

        return 0
    finally:
        logger.close()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the simulator."""
    parser = argparse.ArgumentParser(
        description="Banker's Algorithm & Deadlock Detection Simulator"
    )
    parser.add_argument(
        '--scenario',
        type=str,
        required=True,
        help='Path to scenario JSON file'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )
    parser.add_argument(
        '--log-file',
        type=str,
        default=None,
        help='Also write the log to this file'
    )
    parser.add_argument(
        '--trace-json',
        type=str,
        default=None,
        help='Write the recorded algorithm steps to this JSON file'
    )

    args = parser.parse_args(argv)
    return run_simulation(args.scenario, args.verbose, args.log_file, args.trace_json)


if __name__ == '__main__':
    sys.exit(main())

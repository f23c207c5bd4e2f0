"""
Logger utility for the Banker's Algorithm & Deadlock Detection Simulator.

Provides step-by-step logging with verbosity levels.
"""

from typing import Iterable, List, Optional
from datetime import datetime

from analysis.trace import Step


# Console/file prefix per level; info lines are written bare
LEVEL_PREFIXES = {
    "error": "[ERROR] ",
    "warning": "[WARNING] ",
    "debug": "[DEBUG] ",
}


class SimulatorLogger:
    """
    Logger for engine runs and decisions.

    Every line goes to the console and, when log_file is set, to the file.
    Debug lines are dropped unless verbose is enabled.

    Format: "P{i} requests [a, b, c] - GRANTED/DENIED (reason)"
    """

    def __init__(self, verbose: bool = False, log_file: Optional[str] = None):
        """
        Initialize logger.

        Args:
            verbose: Also emit debug lines and system state tables
            log_file: Optional file to mirror the log to (overwritten)
        """
        self.verbose = verbose
        self.log_file = log_file
        self.file_handle = None

        if self.log_file:
            self.file_handle = open(self.log_file, 'w', encoding='utf-8')
            started = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            self._write(f"Banker's Algorithm / Deadlock Detection Log - {started}")
            self._write("="*60 + "\n")

    def _write(self, line: str) -> None:
        if self.file_handle:
            self.file_handle.write(line + "\n")
            self.file_handle.flush()

    def log(self, message: str, level: str = "info") -> None:
        """
        Log a message.

        Args:
            message: Message to log
            level: Log level (info, debug, warning, error)
        """
        if level == "debug" and not self.verbose:
            return

        line = LEVEL_PREFIXES.get(level, "") + message
        print(line)
        self._write(line)

    def log_step(self, index: int, step: Step) -> None:
        """Log one recorded algorithm step."""
        self.log(f"Step {index}: {step}")

    def log_trace(self, steps: Iterable[Step]) -> None:
        """
        Log every step of an algorithm run.

        Args:
            steps: Steps returned by an engine's get_steps()
        """
        for index, step in enumerate(steps):
            self.log_step(index, step)

    def log_request(
        self,
        pid: int,
        request: List[int],
        granted: bool,
        reason: str
    ) -> None:
        """
        Log a resource request.

        Args:
            pid: Process index
            request: Requested amount of each resource type
            granted: Whether request was granted
            reason: Reason for decision
        """
        status = "GRANTED" if granted else "DENIED"
        self.log(f"P{pid} requests {list(request)} - {status} ({reason})")

    def log_safe_sequence(self, is_safe: bool, sequence: List[int]) -> None:
        """
        Log the outcome of a safety check.

        Args:
            is_safe: Whether the state is safe
            sequence: Safe sequence (empty if unsafe)
        """
        if is_safe:
            seq_str = " -> ".join(f"P{pid}" for pid in sequence)
            self.log(f"SAFE STATE - Safe sequence: {seq_str or '(no processes)'}")
        else:
            self.log("UNSAFE STATE - No safe sequence exists", "warning")

    def log_deadlock(self, deadlocked_pids: List[int]) -> None:
        """
        Log deadlock detection.

        Args:
            deadlocked_pids: List of process indices in deadlock
        """
        if not deadlocked_pids:
            self.log("NO DEADLOCK DETECTED")
            return
        pids_str = ", ".join(f"P{pid}" for pid in deadlocked_pids)
        self.log(f"DEADLOCK DETECTED - Processes in deadlock: [{pids_str}]", "warning")

    def log_system_state(self, state_str: str) -> None:
        """
        Log system state snapshot.

        Args:
            state_str: Formatted system state
        """
        if self.verbose:
            self.log(f"System State:\n{state_str}")

    def close(self) -> None:
        """Close log file if open."""
        if self.file_handle:
            self.file_handle.close()
            self.file_handle = None

    def __del__(self):
        """Cleanup on destruction."""
        self.close()

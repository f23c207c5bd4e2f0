"""
Algorithms package for the Banker's Algorithm & Deadlock Detection Simulator.
Contains the shared graph reduction, deadlock avoidance (Banker's) and deadlock detection engines.
"""

from algorithms.avoidance import InvalidProcessIndexError, InvalidRequestFormatError, SafetyEngine
from algorithms.detection import DeadlockEngine

__all__ = [
    "DeadlockEngine",
    "InvalidProcessIndexError",
    "InvalidRequestFormatError",
    "SafetyEngine",
]

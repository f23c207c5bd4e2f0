"""
Utilities package for the Banker's Algorithm & Deadlock Detection Simulator.
Contains matrix helpers, the scenario loader and the simulator logger.
"""

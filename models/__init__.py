"""
Models package for the Banker's Algorithm & Deadlock Detection Simulator.
Contains the engine state snapshots.
"""

"""
Analysis package for the Banker's Algorithm & Deadlock Detection Simulator.
Contains the step trace recorded by every algorithm run.
"""

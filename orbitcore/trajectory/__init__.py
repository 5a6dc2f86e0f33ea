"""
Trajectory Package
Contains vector helpers and the Lambert boundary-value solver.
"""

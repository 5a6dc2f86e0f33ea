"""
Dynamics Package
Keplerian (two-body) propagation used to check transfer solutions.
"""

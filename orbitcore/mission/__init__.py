"""
Mission Analysis Package
Contains tools for high-level mission design:
- Porkchop grid generation (C3, arrival V_inf, total Delta-V, time of flight)
"""

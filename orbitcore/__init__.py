"""
Interplanetary transfer computation core.

- Ephemeris retrieval from JPL Horizons with a TTL cache
- Universal-variable Lambert solver
- Porkchop grid construction (C3, arrival V_inf, total Delta-V, TOF)
"""

__version__ = "0.1.0"

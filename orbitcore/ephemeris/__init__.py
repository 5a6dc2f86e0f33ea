"""
Ephemeris Package
Horizons state-vector retrieval, parsing and caching.
"""

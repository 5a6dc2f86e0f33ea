"""HTTP boundary for the transfer computation core."""

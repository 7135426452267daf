"""Cube views (geographic, set, network) sharing one time axis."""

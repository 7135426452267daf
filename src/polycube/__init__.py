"""
PolyCube: synchronized geographic, set and network space-time cubes.
"""
__version__ = "0.1.0"

"""
Procedural zone maps built from a short world description.
"""

__version__ = "0.1.0"

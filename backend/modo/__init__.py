"""
MODO Creator Verse backend.
"""

__version__ = "0.1.0"

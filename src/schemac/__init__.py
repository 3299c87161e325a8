"""
schemac: schema compiler passes for rank profiles.
"""

__version__ = "0.1.0"

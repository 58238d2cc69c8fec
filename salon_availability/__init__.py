"""
salon_availability - availability and booking validation engine for salon employees.
"""

__version__ = "0.1.0"

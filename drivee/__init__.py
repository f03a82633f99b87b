"""
drivee - lesson scheduling and financial reporting core for driving schools.
"""

__version__ = "0.3.0"

"""
salonslots - appointment slot availability and booking for a nail salon.
"""

__version__ = "0.1.0"

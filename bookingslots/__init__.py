"""
bookingslots - availability and slot computation for public booking pages.
"""

__version__ = "0.1.0"

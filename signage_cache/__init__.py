"""
Signage Cache
Offline playlist and media cache for digital signage players
"""

__version__ = "1.0.0"

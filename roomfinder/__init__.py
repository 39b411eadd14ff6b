"""
RoomFinder: room rental listings with search, filtering and image uploads.
"""

__version__ = "1.0.0"

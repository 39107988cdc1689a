"""
WebSocket server and event handling for Cards Against Humanity games.
"""

from .events import *
from .server import ConnectionManager, create_app

__all__ = ["ConnectionManager", "create_app"]

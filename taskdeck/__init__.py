"""
TaskDeck — task manager web client on a managed backend.
Version: 1.0
"""

__version__ = "1.0.0"
__all__ = ["backend", "core", "engine", "models", "ui"]

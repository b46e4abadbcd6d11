"""Reversi rules engine, alpha-beta search and match arenas"""

__version__ = "1.0.0"

"""
Duet Game Engine.

Pure Python game logic with zero transport/database dependencies.
Handles turn order, move validation, win and draw detection.
"""

from src.engine.base import (
    BOARD_SIZE,
    DRAW,
    GameState,
    GameStatus,
    IllegalMove,
    MoveResult,
    Symbol,
)
from src.engine.tictactoe import TicTacToeEngine

__all__ = [
    # Constants
    "BOARD_SIZE",
    "DRAW",
    # Data Classes
    "GameState",
    "MoveResult",
    # Enums
    "GameStatus",
    "Symbol",
    # Errors
    "IllegalMove",
    # Engines
    "TicTacToeEngine",
]

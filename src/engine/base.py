"""
Duet - Game Engine Base Classes

This module defines the foundational data structures and enums used by the
turn-based game engine. All classes are immutable (frozen dataclasses) so a
game snapshot can be handed to another thread or serialized without copying.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

BOARD_SIZE = 9
DRAW = "draw"


class GameStatus(Enum):
    """Lifecycle of a game within a session."""
    WAITING_FOR_PLAYERS = "waiting_for_players"
    IN_PROGRESS = "in_progress"
    CONCLUDED = "concluded"


class Symbol(Enum):
    """Marks placed on the board. X always belongs to the first mover."""
    X = "X"
    O = "O"


class IllegalMove(ValueError):
    """Raised when a move or reset is not allowed in the current game state."""


@dataclass(frozen=True)
class GameState:
    """
    Immutable snapshot of a two-player game.

    Attributes:
        players: (first_mover_id, second_mover_id), empty until both are bound
        board: 9 slots, each None or a Symbol value ("X" / "O")
        current_turn: Participant whose move is expected, None unless in progress
        winner: Winning participant id, DRAW, or None
        status: Lifecycle status
        move_count: Number of moves applied since the last reset
    """
    players: tuple[str, ...] = ()
    board: tuple[str | None, ...] = field(default=(None,) * BOARD_SIZE)
    current_turn: str | None = None
    winner: str | None = None
    status: GameStatus = GameStatus.WAITING_FOR_PLAYERS
    move_count: int = 0

    def __post_init__(self) -> None:
        """Validate board shape and turn invariants."""
        if len(self.board) != BOARD_SIZE:
            raise ValueError(f"Board must have {BOARD_SIZE} slots, got {len(self.board)}")
        valid = {None, Symbol.X.value, Symbol.O.value}
        for i, slot in enumerate(self.board):
            if slot not in valid:
                raise ValueError(f"Invalid mark {slot!r} in slot {i}")
        if self.status is GameStatus.IN_PROGRESS and self.current_turn not in self.players:
            raise ValueError("Current turn must belong to one of the players")

    @classmethod
    def waiting(cls) -> "GameState":
        """A game that has not started yet."""
        return cls()

    @property
    def is_in_progress(self) -> bool:
        return self.status is GameStatus.IN_PROGRESS

    @property
    def is_concluded(self) -> bool:
        return self.status is GameStatus.CONCLUDED

    @property
    def first_mover(self) -> str | None:
        return self.players[0] if self.players else None

    def symbol_of(self, participant_id: str) -> Symbol | None:
        """Symbol assigned to a participant, or None if they are not playing."""
        if participant_id not in self.players:
            return None
        return Symbol.X if self.players.index(participant_id) == 0 else Symbol.O

    def opponent_of(self, participant_id: str) -> str:
        """The other player. Raises ValueError for non-players."""
        if participant_id not in self.players:
            raise ValueError(f"{participant_id} is not playing this game")
        return self.players[1] if self.players[0] == participant_id else self.players[0]

    def is_slot_empty(self, slot_index: int) -> bool:
        return self.board[slot_index] is None

    def with_changes(self, **changes: Any) -> "GameState":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def view_for(self, participant_id: str) -> dict[str, Any]:
        """Personalized projection used for game-init and snapshot reads."""
        symbol = self.symbol_of(participant_id)
        return {
            "status": self.status.value,
            "board": list(self.board),
            "symbol": symbol.value if symbol else None,
            "isYourTurn": self.is_in_progress and self.current_turn == participant_id,
            "currentTurn": self.current_turn,
            "firstPlayer": self.first_mover,
            "winner": self.winner,
        }


@dataclass(frozen=True)
class MoveResult:
    """
    Result of applying a single move.

    Attributes:
        state: Game state after the move
        slot_index: Slot that was filled
        symbol: Symbol written into the slot
        next_turn: Participant to move next, None once the game concluded
    """
    state: GameState
    slot_index: int
    symbol: Symbol
    next_turn: str | None

    @property
    def concluded(self) -> bool:
        return self.state.is_concluded

"""
Duet - Tic-Tac-Toe Engine

Strict two-player turn protocol on a 3x3 board.

Game Rules:
- The session host always moves first and plays X; the guest plays O
- A move fills exactly one empty slot and is only accepted from the
  participant whose turn it is
- Three identical marks on any row, column or diagonal win
- A full board with no winning line is a draw
- Once concluded the board is frozen until reset; reset keeps the
  original player order

All methods are stateless class methods operating on immutable data.
"""

from typing import ClassVar

from src.engine.base import (
    BOARD_SIZE,
    DRAW,
    GameState,
    GameStatus,
    IllegalMove,
    MoveResult,
    Symbol,
)
from src.engine.validators import validate_players, validate_slot_index


class TicTacToeEngine:
    """Stateless engine for Tic-Tac-Toe game logic."""

    WIN_LINES: ClassVar[tuple[tuple[int, int, int], ...]] = (
        (0, 1, 2), (3, 4, 5), (6, 7, 8),  # Rows
        (0, 3, 6), (1, 4, 7), (2, 5, 8),  # Columns
        (0, 4, 8), (2, 4, 6),             # Diagonals
    )

    @classmethod
    def new_game(cls, first_mover: str, second_mover: str) -> GameState:
        """
        Start a game with a fresh board.

        Args:
            first_mover: Participant who plays X and moves first
            second_mover: Participant who plays O

        Returns:
            GameState in progress with the first mover to play
        """
        players = validate_players(first_mover, second_mover)
        return GameState(
            players=players,
            current_turn=players[0],
            status=GameStatus.IN_PROGRESS,
        )

    @classmethod
    def find_winning_symbol(cls, board: tuple[str | None, ...]) -> Symbol | None:
        """Return the symbol that completes a line, if any."""
        for a, b, c in cls.WIN_LINES:
            if board[a] is not None and board[a] == board[b] == board[c]:
                return Symbol(board[a])
        return None

    @classmethod
    def is_board_full(cls, board: tuple[str | None, ...]) -> bool:
        return all(slot is not None for slot in board)

    @classmethod
    def apply_move(cls, state: GameState, participant_id: str, slot_index: int) -> MoveResult:
        """
        Apply a move and evaluate the outcome.

        Args:
            state: Current game state
            participant_id: Participant attempting the move
            slot_index: Slot to fill (0-8, row-major)

        Returns:
            MoveResult with the updated state

        Raises:
            IllegalMove: If the game is not in progress, it is not this
                participant's turn, or the slot is occupied
            ValueError: If slot_index is out of range
        """
        slot_index = validate_slot_index(slot_index)

        if not state.is_in_progress:
            raise IllegalMove(f"Game is {state.status.value}, moves are not accepted")
        if participant_id != state.current_turn:
            raise IllegalMove(f"It is not {participant_id}'s turn")
        if not state.is_slot_empty(slot_index):
            raise IllegalMove(f"Slot {slot_index} is already occupied")

        symbol = state.symbol_of(participant_id)
        board = list(state.board)
        board[slot_index] = symbol.value
        board = tuple(board)

        winning_symbol = cls.find_winning_symbol(board)
        if winning_symbol is not None:
            winner = state.players[0] if winning_symbol is Symbol.X else state.players[1]
            new_state = state.with_changes(
                board=board,
                current_turn=None,
                winner=winner,
                status=GameStatus.CONCLUDED,
                move_count=state.move_count + 1,
            )
        elif cls.is_board_full(board):
            new_state = state.with_changes(
                board=board,
                current_turn=None,
                winner=DRAW,
                status=GameStatus.CONCLUDED,
                move_count=state.move_count + 1,
            )
        else:
            new_state = state.with_changes(
                board=board,
                current_turn=state.opponent_of(participant_id),
                move_count=state.move_count + 1,
            )

        return MoveResult(
            state=new_state,
            slot_index=slot_index,
            symbol=symbol,
            next_turn=new_state.current_turn,
        )

    @classmethod
    def reset(cls, state: GameState) -> GameState:
        """
        Clear the board and hand the first move back to the original first mover.

        Raises:
            IllegalMove: If the game never started
        """
        if state.status is GameStatus.WAITING_FOR_PLAYERS:
            raise IllegalMove("Game has not started yet")

        return GameState(
            players=state.players,
            board=(None,) * BOARD_SIZE,
            current_turn=state.players[0],
            status=GameStatus.IN_PROGRESS,
        )

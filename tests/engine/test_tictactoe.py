"""
Tests for the Tic-Tac-Toe game engine.
"""

import pytest

from src.engine.base import BOARD_SIZE, DRAW, GameState, GameStatus, IllegalMove, Symbol
from src.engine.tictactoe import TicTacToeEngine


def play(state: GameState, *slots: int) -> GameState:
    """Apply moves alternately starting with whoever's turn it is."""
    for slot in slots:
        state = TicTacToeEngine.apply_move(state, state.current_turn, slot).state
    return state


@pytest.fixture
def game() -> GameState:
    return TicTacToeEngine.new_game("host", "guest")


# === New Game ===


class TestNewGame:
    """Tests for TicTacToeEngine.new_game()."""

    def test_board_is_empty(self, game):
        assert game.board == (None,) * BOARD_SIZE

    def test_first_mover_has_turn(self, game):
        assert game.current_turn == "host"
        assert game.status == GameStatus.IN_PROGRESS

    def test_symbols_follow_player_order(self, game):
        assert game.symbol_of("host") == Symbol.X
        assert game.symbol_of("guest") == Symbol.O
        assert game.symbol_of("stranger") is None

    def test_same_player_twice_rejected(self):
        with pytest.raises(ValueError, match="against themselves"):
            TicTacToeEngine.new_game("host", "host")

    def test_empty_player_rejected(self):
        with pytest.raises(ValueError, match="participant id"):
            TicTacToeEngine.new_game("host", "")


# === Apply Move ===


class TestApplyMove:
    """Tests for TicTacToeEngine.apply_move()."""

    def test_move_writes_symbol_and_flips_turn(self, game):
        result = TicTacToeEngine.apply_move(game, "host", 4)
        assert result.state.board[4] == "X"
        assert result.symbol == Symbol.X
        assert result.next_turn == "guest"
        assert result.state.move_count == 1
        assert not result.concluded

    def test_out_of_turn_move_rejected(self, game):
        with pytest.raises(IllegalMove, match="not guest's turn"):
            TicTacToeEngine.apply_move(game, "guest", 0)

    def test_occupied_slot_rejected(self, game):
        state = play(game, 0)
        with pytest.raises(IllegalMove, match="already occupied"):
            TicTacToeEngine.apply_move(state, "guest", 0)

    def test_rejected_move_leaves_board_untouched(self, game):
        state = play(game, 0)
        with pytest.raises(IllegalMove):
            TicTacToeEngine.apply_move(state, "host", 1)
        assert state.board == ("X",) + (None,) * 8
        assert state.current_turn == "guest"

    def test_move_before_game_starts_rejected(self):
        with pytest.raises(IllegalMove, match="waiting_for_players"):
            TicTacToeEngine.apply_move(GameState.waiting(), "host", 0)

    @pytest.mark.parametrize("slot", [-1, 9, 42])
    def test_slot_out_of_range(self, game, slot):
        with pytest.raises(ValueError, match="out of range"):
            TicTacToeEngine.apply_move(game, "host", slot)

    def test_non_integer_slot(self, game):
        with pytest.raises(ValueError, match="must be an integer"):
            TicTacToeEngine.apply_move(game, "host", "4")


# === Win and Draw Detection ===


class TestOutcome:
    """Win lines and draws."""

    @pytest.mark.parametrize("line", TicTacToeEngine.WIN_LINES)
    def test_host_wins_on_every_line(self, game, line):
        filler = [s for s in range(BOARD_SIZE) if s not in line]
        # Guest plays slots that cannot complete a line of their own first.
        moves = []
        guest_slots = iter(filler)
        for slot in line:
            moves.append(slot)
            if len(moves) < 5:
                moves.append(next(guest_slots))
        state = game
        for slot in moves:
            if state.is_concluded:
                break
            state = TicTacToeEngine.apply_move(state, state.current_turn, slot).state

        assert state.status == GameStatus.CONCLUDED
        assert state.winner == "host"
        assert state.current_turn is None

    def test_guest_can_win(self, game):
        state = play(game, 0, 3, 1, 4, 8, 5)
        assert state.winner == "guest"
        assert state.is_concluded

    def test_full_board_without_line_is_draw(self, game):
        # X O X / X O O / O X X
        state = play(game, 0, 1, 2, 4, 3, 5, 7, 6, 8)
        assert state.winner == DRAW
        assert state.status == GameStatus.CONCLUDED

    def test_win_on_last_slot_is_not_draw(self, game):
        # X O X / O X O / O X X -> X wins with the diagonal on the ninth move
        state = play(game, 0, 1, 2, 3, 4, 5, 7, 6, 8)
        assert state.winner == "host"

    def test_board_frozen_after_conclusion(self, game):
        state = play(game, 0, 3, 1, 4, 2)
        with pytest.raises(IllegalMove, match="concluded"):
            TicTacToeEngine.apply_move(state, "guest", 8)

    def test_find_winning_symbol_empty_board(self):
        assert TicTacToeEngine.find_winning_symbol((None,) * BOARD_SIZE) is None


# === Reset ===


class TestReset:
    """Tests for TicTacToeEngine.reset()."""

    def test_reset_clears_board_and_restores_first_mover(self, game):
        state = play(game, 0, 3, 1, 4, 2)
        reset = TicTacToeEngine.reset(state)
        assert reset.board == (None,) * BOARD_SIZE
        assert reset.current_turn == "host"
        assert reset.winner is None
        assert reset.players == ("host", "guest")

    def test_reset_mid_game(self, game):
        state = play(game, 0, 3)
        reset = TicTacToeEngine.reset(state)
        assert reset.status == GameStatus.IN_PROGRESS
        assert reset.move_count == 0

    def test_reset_is_idempotent(self, game):
        once = TicTacToeEngine.reset(play(game, 0, 4))
        twice = TicTacToeEngine.reset(once)
        assert once == twice

    def test_reset_before_start_rejected(self):
        with pytest.raises(IllegalMove, match="not started"):
            TicTacToeEngine.reset(GameState.waiting())


# === Game State ===


class TestGameState:
    """Tests for GameState validation and projections."""

    def test_board_size_validated(self):
        with pytest.raises(ValueError, match="must have 9 slots"):
            GameState(board=(None,) * 8)

    def test_invalid_mark_rejected(self):
        with pytest.raises(ValueError, match="Invalid mark"):
            GameState(board=("Z",) + (None,) * 8)

    def test_turn_must_belong_to_a_player(self):
        with pytest.raises(ValueError, match="Current turn"):
            GameState(players=("a", "b"), current_turn="c", status=GameStatus.IN_PROGRESS)

    def test_view_for_players_is_complementary(self, game):
        host_view = game.view_for("host")
        guest_view = game.view_for("guest")
        assert {host_view["symbol"], guest_view["symbol"]} == {"X", "O"}
        assert host_view["isYourTurn"] is True
        assert guest_view["isYourTurn"] is False
        assert host_view["firstPlayer"] == "host"

    def test_view_for_waiting_game(self):
        view = GameState.waiting().view_for("anyone")
        assert view["status"] == "waiting_for_players"
        assert view["symbol"] is None
        assert view["isYourTurn"] is False

    def test_opponent_of(self, game):
        assert game.opponent_of("host") == "guest"
        assert game.opponent_of("guest") == "host"
        with pytest.raises(ValueError):
            game.opponent_of("stranger")

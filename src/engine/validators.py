"""
Duet - Input Validation Utilities

Provides validation functions for game engine inputs. All validators
either return validated data or raise descriptive ValueError exceptions.
"""

from src.engine.base import BOARD_SIZE


def validate_slot_index(slot_index: int) -> int:
    """
    Validate a board slot index.

    Args:
        slot_index: Slot to validate (0-8, row-major)

    Returns:
        Validated slot index

    Raises:
        ValueError: If the index is not an integer in range
    """
    if isinstance(slot_index, bool) or not isinstance(slot_index, int):
        raise ValueError(f"Slot index must be an integer, got {type(slot_index).__name__}.")

    if not (0 <= slot_index < BOARD_SIZE):
        raise ValueError(
            f"Slot index {slot_index} is out of range. Must be between 0 and {BOARD_SIZE - 1}."
        )

    return slot_index


def validate_players(first_mover: str, second_mover: str) -> tuple[str, str]:
    """
    Validate the two participants of a game.

    Args:
        first_mover: Participant who moves first
        second_mover: Participant who moves second

    Returns:
        Validated (first_mover, second_mover) tuple

    Raises:
        ValueError: If either id is empty or both are the same participant
    """
    if not first_mover or not second_mover:
        raise ValueError("Both players must have a participant id.")

    if first_mover == second_mover:
        raise ValueError("A participant cannot play against themselves.")

    return (first_mover, second_mover)

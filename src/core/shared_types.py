"""
Type definitions used across layers
"""

from enum import Enum, StrEnum, auto


class Status(StrEnum):
    RUNNING = "RUNNING"
    X_WON = "X_WON"
    O_WON = "O_WON"
    DRAW = "DRAW"

    @property
    def is_terminal(self) -> bool:
        return self != Status.RUNNING


# --- Cell covers the empty square as well as the two signs. A "sign" in the rest of the code is always Cell.X or Cell.O
class Cell(StrEnum):
    EMPTY = "-"
    X = "X"
    O = "O"  # noqa: E741


SIGNS: tuple[Cell, Cell] = (Cell.X, Cell.O)


class FirstMove(Enum):
    """Outcome of inspecting the board a client sends along when creating a game."""

    COMPUTER_MOVE = auto()
    X = auto()
    O = auto()  # noqa: E741
    INVALID = auto()

"""The 3x3 board: parsing, winning lines and the per-cell comparison of two boards."""

from enum import Enum, auto

from src.core.exceptions import InvalidInputError
from src.core.shared_types import Cell

BOARD_SIZE = 9

# Board indices are row-major: 0 1 2 / 3 4 5 / 6 7 8
WINNING_LINES: tuple[tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)

Board = list[Cell]

VALID_CHARS: frozenset[str] = frozenset(cell.value for cell in Cell)


class CellChange(Enum):
    """How a single cell differs between the stored board and a submitted one."""

    UNCHANGED = auto()
    PLACED_OWN = auto()  # empty -> the submitting player's sign
    PLACED_OTHER = auto()  # empty -> the opponent's sign
    OVERWRITTEN = auto()  # an occupied cell changed


def is_valid_board(raw: str) -> bool:
    return len(raw) == BOARD_SIZE and all(c in VALID_CHARS for c in raw)


def parse_board(raw: str) -> Board:
    """Convert a 9 character string of '-', 'X' and 'O' into a Board."""
    if len(raw) != BOARD_SIZE:
        raise InvalidInputError(
            f"invalid board length: expected {BOARD_SIZE}, got {len(raw)}"
        )
    if not all(c in VALID_CHARS for c in raw):
        raise InvalidInputError(f"board contains invalid chars: {raw!r}")
    return [Cell(c) for c in raw]


def board_to_str(board: Board) -> str:
    return "".join(cell.value for cell in board)


def empty_cells(board: Board) -> list[int]:
    return [idx for idx, cell in enumerate(board) if cell == Cell.EMPTY]


def has_line(board: Board, sign: Cell) -> bool:
    return any(all(board[idx] == sign for idx in line) for line in WINNING_LINES)


def classify_change(old: Cell, new: Cell, own_sign: Cell) -> CellChange:
    if old == new:
        return CellChange.UNCHANGED
    if old != Cell.EMPTY:
        return CellChange.OVERWRITTEN
    if new == own_sign:
        return CellChange.PLACED_OWN
    return CellChange.PLACED_OTHER


def diff_boards(old: Board, new: Board, own_sign: Cell) -> dict[int, CellChange]:
    """Map every index that differs between both boards to the kind of change."""
    changes = {
        idx: classify_change(old_cell, new_cell, own_sign)
        for idx, (old_cell, new_cell) in enumerate(zip(old, new, strict=True))
    }
    return {
        idx: change
        for idx, change in changes.items()
        if change != CellChange.UNCHANGED
    }

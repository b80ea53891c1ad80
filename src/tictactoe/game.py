"""
The Game class is the entrypoint into the domain layer for the service layer.
It validates the player's move, plays the computer's move and keeps track of the game status.
It knows nothing about persistence: the service loads a GameModel, builds a Game from it, and stores Game.to_model() afterwards.
"""

import random
from dataclasses import dataclass, field
from typing import Self
from uuid import uuid4

from src.core.exceptions import (
    CorruptRecordError,
    InternalGameError,
    InvalidInputError,
    InvalidMoveError,
)
from src.core.models import GameModel
from src.core.shared_types import SIGNS, Cell, FirstMove, Status
from src.tictactoe.board import (
    BOARD_SIZE,
    VALID_CHARS,
    Board,
    CellChange,
    board_to_str,
    diff_boards,
    empty_cells,
    has_line,
    parse_board,
)

# One random source for the whole process. SystemRandom keeps no state, so sharing it between threads is fine.
_RNG: random.Random = random.SystemRandom()

# The first character of a game id tells which sign the user plays.
USER_X_ID_PREFIX = "a"
USER_O_ID_PREFIX = "f"

WIN_STATUS: dict[Cell, Status] = {Cell.X: Status.X_WON, Cell.O: Status.O_WON}


def user_sign(game_id: str) -> Cell:
    if game_id[:1] == USER_X_ID_PREFIX:
        return Cell.X
    return Cell.O


def comp_sign(game_id: str) -> Cell:
    return opponent_of(user_sign(game_id))


def opponent_of(sign: Cell) -> Cell:
    return Cell.O if sign == Cell.X else Cell.X


def new_game_id(sign: Cell) -> str:
    prefix = USER_X_ID_PREFIX if sign == Cell.X else USER_O_ID_PREFIX
    return prefix + str(uuid4())[1:]


def who_moves_first(board: str) -> FirstMove:
    """
    Realize who moves first from the board sent along with a "create game" request.
    ----

    * all empty: the user leaves the first move to the computer
    * exactly one X or O: the user already made a move and plays that sign
    * anything else is not a board a game can start from
    """
    if len(board) != BOARD_SIZE or any(c not in VALID_CHARS for c in board):
        return FirstMove.INVALID

    filled = [c for c in board if c != Cell.EMPTY]
    if not filled:
        return FirstMove.COMPUTER_MOVE
    if len(filled) > 1:
        return FirstMove.INVALID
    return FirstMove.X if filled[0] == Cell.X else FirstMove.O


def gamble_sign(rng: random.Random | None = None) -> tuple[Cell, Cell]:
    """X and O in random order."""
    signs = list(SIGNS)
    (rng or _RNG).shuffle(signs)
    return signs[0], signs[1]


@dataclass
class Game:
    # --- DOMAIN LAYER API CALLED BY SERVICE---

    id: str
    board: Board
    status: Status
    human_sign: Cell
    rng: random.Random = field(default=_RNG, repr=False, compare=False)

    @classmethod
    def new_game(
        cls, board: str, human_sign: Cell, rng: random.Random | None = None
    ) -> Self:
        """Start a game on an empty board or one holding the user's first move, the user playing `human_sign`."""
        if human_sign not in SIGNS:
            raise InvalidInputError(f"user must play X or O, got {human_sign!r}")
        if who_moves_first(board) not in (FirstMove.COMPUTER_MOVE, FirstMove[human_sign.name]):
            raise InvalidInputError(
                f"a new game starts empty or with one move of {human_sign}, got {board!r}"
            )
        return cls(
            id=new_game_id(human_sign),
            board=parse_board(board),
            status=Status.RUNNING,
            human_sign=human_sign,
            rng=rng or _RNG,
        )

    @classmethod
    def from_model(cls, model: GameModel, rng: random.Random | None = None) -> Self:
        """Define how to construct a Game from the information the Service layer actually has"""
        try:
            board = parse_board(model.board)
        except InvalidInputError as e:
            raise CorruptRecordError(f"game {model.id}: stored board is invalid", e)

        if model.status not in Status.__members__:
            raise CorruptRecordError(
                f"game {model.id}: invalid status {model.status!r}. Pick one from {','.join(Status)}"
            )

        return cls(
            id=model.id,
            board=board,
            status=Status(model.status),
            human_sign=user_sign(model.id),
            rng=rng or _RNG,
        )

    def to_model(self) -> GameModel:
        """Encode back into a format the Service layer uses"""
        return GameModel(
            id=self.id, board=board_to_str(self.board), status=self.status.value
        )

    @property
    def comp_sign(self) -> Cell:
        return opponent_of(self.human_sign)

    def set_new_board(self, new_board: str) -> bool:
        """
        Compare the stored board with the one the user sent and accept it if it differs by exactly one valid move.
        ----

        The only change allowed is a single empty cell that now holds the user's own sign.
        Several changed cells, an overwritten cell or the computer's sign are all rejected and leave the board as it was.
        Does not check for a winner, the service calls check_win() separately.
        """
        board = parse_board(new_board)
        changes = diff_boards(self.board, board, self.human_sign)

        if list(changes.values()) != [CellChange.PLACED_OWN]:
            raise InvalidMoveError(
                f"move not valid: {board_to_str(self.board)} -> {new_board}"
            )

        self.board = board
        return True

    def check_win(self, sign: Cell) -> Status:
        """
        Update and return the status after `sign` moved.
        ----

        A finished game keeps its status, whatever the board shows.
        """
        if self.status.is_terminal:
            return self.status

        if sign in WIN_STATUS and has_line(self.board, sign):
            self.status = WIN_STATUS[sign]
        elif not empty_cells(self.board):
            self.status = Status.DRAW
        return self.status

    def make_move(self) -> int:
        """Computer's move: any empty cell, picked at random. Returns the index that was played."""
        free = empty_cells(self.board)
        if not free:
            raise InternalGameError(f"game {self.id}: no empty cell left to play")

        idx = self.rng.choice(free)
        self.board[idx] = self.comp_sign
        return idx

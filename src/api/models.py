"""Requests and Response models"""

from pydantic import BaseModel, field_validator

from src.core.exceptions import InvalidRequestError
from src.core.shared_types import Status
from src.tictactoe.board import is_valid_board


# --- REQUEST MODELS ---
class BoardRequest(BaseModel):
    board: str

    @field_validator("board")
    @classmethod
    def validate_board(cls, value: str) -> str:
        if not is_valid_board(value):
            raise InvalidRequestError(
                f"Cannot interpret board: {value!r}. Expected 9 characters out of '-', 'X', 'O'."
            )
        return value


class CreateGameRequest(BoardRequest):
    """The user's first move, or an empty board to let the computer start."""


class MoveRequest(BoardRequest):
    """The full board after the user's move."""


# --- RESPONSE MODELS ---
class GameResponse(BaseModel):
    id: str
    board: str
    status: Status


class GameCreatedResponse(BaseModel):
    location: str


class ErrorResponse(BaseModel):
    reason: str

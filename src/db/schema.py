"""On-disk schema of a single game file"""

from typing import Self

from pydantic import BaseModel, ConfigDict, Field

from src.core.models import GameModel
from src.core.shared_types import Status

GAME_ID_PATTERN = r"^[0-9a-f-]{36}$"
BOARD_PATTERN = r"^[-XO]{9}$"


class GameRecord(BaseModel):
    """One game file: a flat object with exactly three string fields, serialized as {"id":"...","board":"...","status":"..."}."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(pattern=GAME_ID_PATTERN)
    board: str = Field(pattern=BOARD_PATTERN)
    status: Status

    @classmethod
    def from_model(cls, model: GameModel) -> Self:
        return cls(id=model.id, board=model.board, status=Status(model.status))

    def to_model(self) -> GameModel:
        return GameModel(id=self.id, board=self.board, status=self.status.value)

    def to_bytes(self) -> bytes:
        return self.model_dump_json().encode()

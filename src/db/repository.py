"""Protocol repository (file storage for now, could be implemented for any other storage later)"""

from typing import Protocol

from src.core.models import GameModel


class GameRepository(Protocol):
    """Persistence layer orchestration"""

    def get_game(self, game_id: str) -> GameModel:
        """Get game by ID. Raises NotFoundError if no record exists."""
        ...

    def get_raw(self, game_id: str) -> bytes:
        """Stored record of the game, as is."""
        ...

    def list_games(self) -> list[GameModel]:
        """All stored games."""
        ...

    def list_raw(self) -> list[bytes]:
        """All stored records, as is."""
        ...

    def save_game(self, game: GameModel) -> None:
        """Create the record, or replace the existing one."""
        ...

    def delete_game(self, game_id: str) -> None:
        """Remove a game's record. Raises NotFoundError if no record exists."""
        ...

    def game_exists(self, game_id: str) -> bool: ...

    def is_valid_game_id(self, game_id: str) -> bool: ...

    def shutdown(self) -> bool:
        """Wait for running operations, then refuse new ones."""
        ...

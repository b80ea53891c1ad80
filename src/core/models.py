"""
Boundary layer data model(s).

These objects can be used to communicate with the Service.
The API layer (higher) and the engine/db layers (lower) all use the model defined here to send to/receive from the Service.
(Decouples the on-disk schema, the API models and the engine's Game from the information needed to send across boundaries)
"""

from dataclasses import dataclass

# Type aliases to make GameModel easier to read
GameId = str
BoardString = str


@dataclass
class GameModel:
    """Transport-safe representation of a tic-tac-toe game used between API, Service, DB, and Game layers."""

    id: GameId
    board: BoardString
    status: str

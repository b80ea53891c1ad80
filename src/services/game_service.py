"""Orchestration of communication from API router to business logic and persistence layers (and the reverse direction)."""

import random
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from src.api.models import CreateGameRequest, GameResponse, MoveRequest
from src.core.exceptions import GameFinishedError, InvalidInputError
from src.core.models import GameModel
from src.core.shared_types import Cell, FirstMove, Status
from src.db.repository import GameRepository
from src.tictactoe.game import Game, gamble_sign, who_moves_first


class TicTacToeService:
    """Orchestration of layers for a tic-tac-toe game against the computer."""

    def __init__(
        self, repository: GameRepository, rng: random.Random | None = None
    ) -> None:
        self.repo = repository
        self.rng = rng
        # a move or delete holds its game's lock from load to save
        self._game_locks: dict[str, threading.Lock] = {}
        self._game_locks_guard = threading.Lock()

    # -- API routes logic ---
    def create_new_game(self, request: CreateGameRequest) -> GameResponse:
        """
        User requested a new game, either with their first move on the board or with an empty board.
        ----

        With an empty board the signs are gambled and the computer opens. Otherwise the user plays the sign they put down.
        Either way the computer makes a move before the game gets stored.
        """
        match who_moves_first(request.board):
            case FirstMove.COMPUTER_MOVE:
                _, user = gamble_sign(self.rng)
            case FirstMove.X:
                user = Cell.X
            case FirstMove.O:
                user = Cell.O
            case FirstMove.INVALID:
                raise InvalidInputError(f"invalid first board: {request.board}")

        game = Game.new_game(request.board, user, rng=self.rng)
        game.make_move()

        created = game.to_model()
        self.repo.save_game(created)
        return self._create_game_response(created)

    def get_game_state(self, game_id: str) -> GameResponse:
        """Retrieve current game state."""
        return self._create_game_response(self._fetch_game(game_id))

    def get_game_raw(self, game_id: str) -> bytes:
        """Retrieve the stored record, passed on to the client untouched."""
        self._assert_valid_id(game_id)
        return self.repo.get_raw(game_id)

    def list_games(self) -> list[GameResponse]:
        return [self._create_game_response(model) for model in self.repo.list_games()]

    def list_games_raw(self) -> bytes:
        """JSON array of all stored records."""
        return b"[" + b",".join(self.repo.list_raw()) + b"]"

    def make_move(self, game_id: str, request: MoveRequest) -> GameResponse:
        """
        User submits the board after their move.
        ----

        1. the game must still be running
        2. the new board must differ from the stored one by exactly one move of the user
        3. did the user win? If not, the computer moves and we check again
        4. store the result
        """
        self._assert_valid_id(game_id)
        with self._game_lock(game_id):
            after_move = self._play_move(game_id, request)
        return self._create_game_response(after_move)

    def delete_game(self, game_id: str) -> None:
        """Handle a request to delete a Game record."""
        self._assert_valid_id(game_id)
        with self._game_lock(game_id):
            self.repo.delete_game(game_id)
        with self._game_locks_guard:
            self._game_locks.pop(game_id, None)

    def shutdown(self) -> bool:
        return self.repo.shutdown()

    # -- Internal helpers --
    def _create_game_response(self, model: GameModel) -> GameResponse:
        return GameResponse(id=model.id, board=model.board, status=Status(model.status))

    def _fetch_game(self, game_id: str) -> GameModel:
        self._assert_valid_id(game_id)
        return self.repo.get_game(game_id)

    def _assert_valid_id(self, game_id: str) -> None:
        if not self.repo.is_valid_game_id(game_id):
            raise InvalidInputError(f"invalid game id: {game_id!r}")

    @contextmanager
    def _game_lock(self, game_id: str) -> Iterator[None]:
        with self._game_locks_guard:
            lock = self._game_locks.setdefault(game_id, threading.Lock())
        with lock:
            yield

    def _play_move(self, game_id: str, request: MoveRequest) -> GameModel:
        """Caller holds the game's lock."""
        game = Game.from_model(self._fetch_game(game_id), rng=self.rng)

        if game.status != Status.RUNNING:
            raise GameFinishedError(
                f"game already finished with status {game.status}"
            )

        game.set_new_board(request.board)

        if game.check_win(game.human_sign) == Status.RUNNING:
            game.make_move()
            game.check_win(game.comp_sign)

        after_move = game.to_model()
        self.repo.save_game(after_move)
        return after_move

"""Implementation of (Game)Repository using one JSON file per game in a storage directory"""

import logging
import os
import re
import tempfile
from pathlib import Path

from pydantic import ValidationError

from src.core.exceptions import (
    CorruptRecordError,
    InvalidInputError,
    NotFoundError,
    RecordTooLargeError,
    StorageIOError,
)
from src.core.models import GameModel
from src.db.locking import ReadWriteLock
from src.db.schema import GAME_ID_PATTERN, GameRecord

MAX_RECORD_SIZE = 512  # bytes. A game file is ~80 bytes, anything much larger is not ours
BACKUP_SUFFIX = ".bak"
SHUTDOWN_GRACE = 1.0  # seconds

_GAME_ID_RE = re.compile(GAME_ID_PATTERN)


class FileGameRepository:
    """
    Data stored as files named after the game id, all operations guarded by one store-wide reader/writer lock.
    ----

    Saving over an existing game first moves the old file to `<id>.bak`, writes the new file, then drops the backup.
    Whatever step fails, at least one complete copy of the game stays on disk.
    """

    def __init__(
        self,
        path: str | Path,
        max_record_size: int = MAX_RECORD_SIZE,
        shutdown_grace: float = SHUTDOWN_GRACE,
        logger: logging.Logger | None = None,
    ) -> None:
        self.path = Path(path)
        self.max_record_size = max_record_size
        self.shutdown_grace = shutdown_grace
        self.log = logger or logging.getLogger(__name__)
        self._lock = ReadWriteLock()
        self._check_storage()

    # -- Reads (shared lock) --
    def get_game(self, game_id: str) -> GameModel:
        """Get game by ID, if record exists."""
        return self._parse(game_id, self.get_raw(game_id))

    def get_raw(self, game_id: str) -> bytes:
        """Stored record of the game, without parsing it."""
        self._assert_valid_id(game_id)
        with self._lock.read_locked():
            return self._read(game_id)

    def list_games(self) -> list[GameModel]:
        with self._lock.read_locked():
            raw_records = [(game_id, self._read(game_id)) for game_id in self._game_ids()]
        return [self._parse(game_id, content) for game_id, content in raw_records]

    def list_raw(self) -> list[bytes]:
        with self._lock.read_locked():
            return [self._read(game_id) for game_id in self._game_ids()]

    def game_exists(self, game_id: str) -> bool:
        if not self.is_valid_game_id(game_id):
            return False
        with self._lock.read_locked():
            return self._game_file(game_id).is_file()

    def is_valid_game_id(self, game_id: str) -> bool:
        return _GAME_ID_RE.fullmatch(game_id) is not None

    # -- Mutations (exclusive lock) --
    def save_game(self, game: GameModel) -> None:
        """Create or overwrite the game file: backup -> write -> remove backup."""
        self._assert_valid_id(game.id)
        try:
            content = GameRecord.from_model(game).to_bytes()
        except ValueError as e:
            raise InvalidInputError(f"game {game.id}: can't serialize game", e)
        if len(content) > self.max_record_size:
            raise RecordTooLargeError(
                f"game {game.id}: record of {len(content)} bytes exceeds {self.max_record_size}"
            )

        fname = self._game_file(game.id)
        backup = fname.with_name(fname.name + BACKUP_SUFFIX)
        with self._lock.write_locked():
            has_backup = False
            if fname.exists():
                try:
                    os.replace(fname, backup)
                except OSError as e:
                    raise StorageIOError(
                        f"game {game.id}: can't create game file backup", e
                    )
                has_backup = True

            try:
                fname.write_bytes(content)
            except OSError as e:
                # the backup stays behind as the last good copy
                raise StorageIOError(f"game {game.id}: can't write game file", e)

            if has_backup:
                try:
                    backup.unlink()
                except OSError as e:
                    self.log.warning(
                        "game %s: can't remove backup file %s: %s", game.id, backup, e
                    )

    def delete_game(self, game_id: str) -> None:
        """Remove a game's record. There is no backup of a deleted game."""
        self._assert_valid_id(game_id)
        fname = self._game_file(game_id)
        with self._lock.write_locked():
            if not fname.is_file():
                raise NotFoundError(f"game {game_id} not found")
            try:
                fname.unlink()
            except OSError as e:
                raise StorageIOError(f"game {game_id}: can't remove game file", e)

    def shutdown(self) -> bool:
        """Wait (at most `shutdown_grace` seconds) for running operations to finish. Afterwards the store refuses new ones."""
        drained = self._lock.close(timeout=self.shutdown_grace)
        if not drained:
            self.log.warning(
                "storage %s: operations still running after %.1fs shutdown grace",
                self.path,
                self.shutdown_grace,
            )
        return drained

    # -- Internal helpers (caller holds the lock) --
    def _check_storage(self) -> None:
        """Make sure files can be created and removed in the storage directory."""
        try:
            self.path.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(dir=self.path, prefix="test"):
                pass
        except OSError as e:
            raise StorageIOError(f"can't use {self.path} as game storage", e)

    def _game_file(self, game_id: str) -> Path:
        return self.path / game_id

    def _assert_valid_id(self, game_id: str) -> None:
        if not self.is_valid_game_id(game_id):
            raise InvalidInputError(f"invalid game id: {game_id!r}")

    def _read(self, game_id: str) -> bytes:
        fname = self._game_file(game_id)
        try:
            # check the size first, so a huge file never gets read into memory
            size = fname.stat().st_size
            if size > self.max_record_size:
                raise RecordTooLargeError(
                    f"game {game_id}: file of {size} bytes exceeds {self.max_record_size}"
                )
            return fname.read_bytes()
        except FileNotFoundError as e:
            raise NotFoundError(f"game {game_id} not found") from e
        except OSError as e:
            raise StorageIOError(f"game {game_id}: can't read game file", e)

    def _game_ids(self) -> list[str]:
        try:
            names = sorted(entry.name for entry in self.path.iterdir())
        except OSError as e:
            raise StorageIOError(f"can't read storage dir {self.path}", e)

        game_ids = []
        for name in names:
            if not self.is_valid_game_id(name):
                self.log.warning(
                    "invalid game id (%s) detected in storage. Remove it manually", name
                )
                continue
            game_ids.append(name)
        return game_ids

    def _parse(self, game_id: str, content: bytes) -> GameModel:
        if not content:
            raise CorruptRecordError(f"game {game_id}: file content has zero size")
        try:
            record = GameRecord.model_validate_json(content)
        except ValidationError as e:
            raise CorruptRecordError(f"game {game_id}: can't parse game file", e)
        if record.id != game_id:
            raise CorruptRecordError(f"game {game_id}: file holds game {record.id}")
        return record.to_model()

"""Unit tests for src/db/file_repository.py"""

import json
import logging
import os
import threading
from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

import pytest

from src.core.exceptions import (
    CorruptRecordError,
    InvalidInputError,
    NotFoundError,
    RecordTooLargeError,
    StorageIOError,
    StoreClosedError,
)
from src.core.shared_types import Status
from src.db.file_repository import BACKUP_SUFFIX, FileGameRepository, GameModel


@pytest.fixture
def game_model(make_game_id: Callable[..., str]) -> GameModel:
    return GameModel(id=make_game_id("a"), board="X---O----", status=Status.RUNNING)


# -- Setup --
def test_storage_directory_is_created(tmp_path: Path) -> None:
    path = tmp_path / "not" / "there" / "yet"
    FileGameRepository(path)
    assert path.is_dir()
    # the write probe leaves nothing behind
    assert list(path.iterdir()) == []


def test_unusable_storage_directory(tmp_path: Path) -> None:
    not_a_dir = tmp_path / "file"
    not_a_dir.write_text("I am a file")
    with pytest.raises(StorageIOError):
        FileGameRepository(not_a_dir)


# -- Save / Get --
def test_save_and_get_game(file_repository: FileGameRepository, game_model: GameModel) -> None:
    file_repository.save_game(game_model)
    assert file_repository.get_game(game_model.id) == game_model


def test_saved_file_format(
    file_repository: FileGameRepository, storage_path: Path, game_model: GameModel
) -> None:
    """One flat object with exactly three strings, written compactly."""
    file_repository.save_game(game_model)
    content = (storage_path / game_model.id).read_bytes()
    assert content == (
        f'{{"id":"{game_model.id}","board":"X---O----","status":"RUNNING"}}'.encode()
    )
    assert file_repository.get_raw(game_model.id) == content


def test_overwrite_existing_game(
    file_repository: FileGameRepository, storage_path: Path, game_model: GameModel
) -> None:
    """Saving over an existing record goes through the backup file, which is gone afterwards."""
    file_repository.save_game(game_model)
    after = GameModel(id=game_model.id, board="X-O-O--X-", status=Status.RUNNING)
    file_repository.save_game(after)

    assert file_repository.get_game(game_model.id) == after
    assert not (storage_path / (game_model.id + BACKUP_SUFFIX)).exists()


def test_consecutive_game_updates(
    file_repository: FileGameRepository, game_model: GameModel
) -> None:
    updates = [
        GameModel(id=game_model.id, board="X---O---X", status=Status.RUNNING),
        GameModel(id=game_model.id, board="X--OO---X", status=Status.RUNNING),
        GameModel(id=game_model.id, board="X--OOX--X", status=Status.RUNNING),
        GameModel(id=game_model.id, board="X-OOOX--X", status=Status.RUNNING),
        GameModel(id=game_model.id, board="X-OOOXX-X", status=Status.RUNNING),
        GameModel(id=game_model.id, board="XOOOOXX-X", status=Status.RUNNING),
        GameModel(id=game_model.id, board="XOOOOXXXX", status=Status.X_WON),
    ]
    file_repository.save_game(game_model)
    for update in updates:
        file_repository.save_game(update)
    assert file_repository.get_game(game_model.id) == updates[-1]


def test_failed_write_keeps_backup(
    file_repository: FileGameRepository, storage_path: Path, game_model: GameModel
) -> None:
    """If writing the new file fails, the previous version survives as backup."""
    file_repository.save_game(game_model)
    original = (storage_path / game_model.id).read_bytes()

    after = GameModel(id=game_model.id, board="X-O-O--X-", status=Status.RUNNING)
    with patch.object(Path, "write_bytes", side_effect=OSError("disk full")):
        with pytest.raises(StorageIOError):
            file_repository.save_game(after)

    backup = storage_path / (game_model.id + BACKUP_SUFFIX)
    assert backup.read_bytes() == original


def test_failed_backup_removal_is_not_fatal(
    file_repository: FileGameRepository,
    storage_path: Path,
    game_model: GameModel,
    caplog: pytest.LogCaptureFixture,
) -> None:
    file_repository.save_game(game_model)
    after = GameModel(id=game_model.id, board="X-O-O--X-", status=Status.RUNNING)

    with patch.object(Path, "unlink", side_effect=OSError("busy")):
        with caplog.at_level(logging.WARNING):
            file_repository.save_game(after)

    assert "can't remove backup file" in caplog.text
    assert (storage_path / (game_model.id + BACKUP_SUFFIX)).exists()
    # the stray backup does not change what gets read
    assert file_repository.get_game(game_model.id) == after
    assert file_repository.list_games() == [after]


def test_save_invalid_game(file_repository: FileGameRepository, make_game_id: Callable[..., str]) -> None:
    with pytest.raises(InvalidInputError):
        file_repository.save_game(GameModel(id="not-an-id", board="---------", status="RUNNING"))
    with pytest.raises(InvalidInputError):
        file_repository.save_game(GameModel(id=make_game_id(), board="--", status="RUNNING"))
    with pytest.raises(InvalidInputError):
        file_repository.save_game(GameModel(id=make_game_id(), board="---------", status="LOST"))


def test_save_record_larger_than_ceiling(storage_path: Path, game_model: GameModel) -> None:
    repo = FileGameRepository(storage_path, max_record_size=32)
    with pytest.raises(RecordTooLargeError):
        repo.save_game(game_model)
    assert not repo.game_exists(game_model.id)


# -- Get: failures --
def test_get_unknown_game(file_repository: FileGameRepository, make_game_id: Callable[..., str]) -> None:
    with pytest.raises(NotFoundError):
        file_repository.get_game(make_game_id())
    with pytest.raises(NotFoundError):
        file_repository.get_raw(make_game_id())


@pytest.mark.parametrize("game_id", ["", "../etc/passwd", "A" * 36, "a" * 35, "g" * 36])
def test_get_invalid_id(file_repository: FileGameRepository, game_id: str) -> None:
    with pytest.raises(InvalidInputError):
        file_repository.get_game(game_id)


def test_get_too_large_file(
    file_repository: FileGameRepository, storage_path: Path, make_game_id: Callable[..., str]
) -> None:
    game_id = make_game_id()
    (storage_path / game_id).write_bytes(b" " * 513)
    with pytest.raises(RecordTooLargeError):
        file_repository.get_game(game_id)
    with pytest.raises(RecordTooLargeError):
        file_repository.get_raw(game_id)


@pytest.mark.parametrize(
    "content",
    [
        b"",
        b"not json",
        b'{"id":"x","board":"---------","status":"RUNNING"}',
        b'{"board":"---------","status":"RUNNING"}',
        b'{"id":"ID","board":"----","status":"RUNNING"}',
        b'{"id":"ID","board":"---------","status":"PAUSED"}',
    ],
)
def test_get_corrupt_file(
    file_repository: FileGameRepository,
    storage_path: Path,
    make_game_id: Callable[..., str],
    content: bytes,
) -> None:
    game_id = make_game_id()
    (storage_path / game_id).write_bytes(content.replace(b"ID", game_id.encode()))
    with pytest.raises(CorruptRecordError):
        file_repository.get_game(game_id)


def test_get_file_of_other_game(
    file_repository: FileGameRepository, storage_path: Path, game_model: GameModel, make_game_id: Callable[..., str]
) -> None:
    """A file whose content belongs to a different id is not trusted."""
    file_repository.save_game(game_model)
    other_id = make_game_id()
    os.replace(storage_path / game_model.id, storage_path / other_id)
    with pytest.raises(CorruptRecordError):
        file_repository.get_game(other_id)


def test_extra_fields_are_ignored(
    file_repository: FileGameRepository, storage_path: Path, make_game_id: Callable[..., str]
) -> None:
    game_id = make_game_id("f")
    record = {"id": game_id, "board": "----X----", "status": "RUNNING", "note": "hi"}
    (storage_path / game_id).write_text(json.dumps(record))
    assert file_repository.get_game(game_id) == GameModel(game_id, "----X----", "RUNNING")


# -- List --
def test_list_games(file_repository: FileGameRepository, make_game_id: Callable[..., str]) -> None:
    models = [
        GameModel(id=make_game_id("a"), board="X---O----", status=Status.RUNNING),
        GameModel(id=make_game_id("f"), board="OOOXX-X--", status=Status.X_WON),
        GameModel(id=make_game_id("a"), board="XOXXOOOXX", status=Status.DRAW),
    ]
    for model in models:
        file_repository.save_game(model)

    by_id = {model.id: model for model in models}
    listed = file_repository.list_games()
    assert len(listed) == 3
    assert {model.id: model for model in listed} == by_id

    raw = file_repository.list_raw()
    assert sorted(json.loads(content)["id"] for content in raw) == sorted(by_id)


def test_list_empty_storage(file_repository: FileGameRepository) -> None:
    assert file_repository.list_games() == []
    assert file_repository.list_raw() == []


def test_list_skips_invalid_names(
    file_repository: FileGameRepository,
    storage_path: Path,
    game_model: GameModel,
    caplog: pytest.LogCaptureFixture,
) -> None:
    file_repository.save_game(game_model)
    (storage_path / (game_model.id + BACKUP_SUFFIX)).write_text("stale backup")
    (storage_path / "README").write_text("not a game")

    with caplog.at_level(logging.WARNING):
        assert file_repository.list_games() == [game_model]
        assert len(file_repository.list_raw()) == 1
    assert "README" in caplog.text


# -- Exists / Delete --
def test_game_exists(file_repository: FileGameRepository, game_model: GameModel) -> None:
    assert not file_repository.game_exists(game_model.id)
    file_repository.save_game(game_model)
    assert file_repository.game_exists(game_model.id)
    assert not file_repository.game_exists("../" + game_model.id)


def test_delete_game(file_repository: FileGameRepository, game_model: GameModel) -> None:
    """Record of the game should no longer exist after deletion"""
    file_repository.save_game(game_model)
    file_repository.delete_game(game_model.id)
    assert not file_repository.game_exists(game_model.id)
    with pytest.raises(NotFoundError):
        file_repository.get_game(game_model.id)


def test_attempt_deleting_unknown_game(file_repository: FileGameRepository, make_game_id: Callable[..., str]) -> None:
    game_id = make_game_id()
    with pytest.raises(NotFoundError):
        file_repository.get_game(game_id)
    with pytest.raises(NotFoundError):
        file_repository.delete_game(game_id)


def test_delete_invalid_id(file_repository: FileGameRepository) -> None:
    with pytest.raises(InvalidInputError):
        file_repository.delete_game("..")


# -- Concurrency / Shutdown --
def test_concurrent_saves_and_reads(
    file_repository: FileGameRepository, make_game_id: Callable[..., str]
) -> None:
    """Readers never see a half written file while other threads keep overwriting games."""
    game_ids = [make_game_id() for _ in range(4)]
    boards = ["X--------", "XO-------", "XOX------", "XOXO-----"]
    for game_id in game_ids:
        file_repository.save_game(GameModel(game_id, boards[0], Status.RUNNING))

    errors: list[BaseException] = []

    def writer(game_id: str) -> None:
        try:
            for i in range(50):
                file_repository.save_game(GameModel(game_id, boards[i % 4], Status.RUNNING))
        except BaseException as e:  # noqa: BLE001
            errors.append(e)

    def reader() -> None:
        try:
            for _ in range(50):
                for model in file_repository.list_games():
                    assert model.board in boards
        except BaseException as e:  # noqa: BLE001
            errors.append(e)

    threads = [threading.Thread(target=writer, args=(game_id,)) for game_id in game_ids]
    threads += [threading.Thread(target=reader) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert len(file_repository.list_games()) == 4


def test_shutdown_refuses_new_operations(
    file_repository: FileGameRepository, game_model: GameModel
) -> None:
    file_repository.save_game(game_model)
    assert file_repository.shutdown() is True

    with pytest.raises(StoreClosedError):
        file_repository.get_game(game_model.id)
    with pytest.raises(StoreClosedError):
        file_repository.save_game(game_model)

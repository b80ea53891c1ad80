"""HTTP routes of the tic-tac-toe API and the app factory"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, Request, Response, status
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.api.models import (
    CreateGameRequest,
    ErrorResponse,
    GameCreatedResponse,
    GameResponse,
    MoveRequest,
)
from src.core.config import Config, get_config
from src.core.exceptions import ErrorKind, GameError
from src.db.file_repository import FileGameRepository
from src.db.repository import GameRepository
from src.services.game_service import TicTacToeService

logger = logging.getLogger(__name__)

APPLICATION_JSON = "application/json"

ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_MOVE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.TOO_LARGE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.CORRUPT: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.IO_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

router = APIRouter(prefix="/api/v1/games")


def get_service(request: Request) -> TicTacToeService:
    return request.app.state.service


@router.get("", response_class=Response)
def get_all_games(service: TicTacToeService = Depends(get_service)) -> Response:
    return Response(content=service.list_games_raw(), media_type=APPLICATION_JSON)


@router.post(
    "", status_code=status.HTTP_201_CREATED, response_model=GameCreatedResponse
)
def start_new_game(
    body: CreateGameRequest,
    request: Request,
    response: Response,
    service: TicTacToeService = Depends(get_service),
) -> GameCreatedResponse:
    game = service.create_new_game(body)
    logger.debug("new game: %s", game)

    location = str(request.url_for("get_game", game_id=game.id))
    response.headers["Location"] = location
    return GameCreatedResponse(location=location)


@router.get("/{game_id}", response_class=Response)
def get_game(game_id: str, service: TicTacToeService = Depends(get_service)) -> Response:
    return Response(content=service.get_game_raw(game_id), media_type=APPLICATION_JSON)


@router.put("/{game_id}", response_model=GameResponse)
def make_move(
    game_id: str,
    body: MoveRequest,
    service: TicTacToeService = Depends(get_service),
) -> GameResponse:
    return service.make_move(game_id, body)


@router.delete("/{game_id}", response_class=Response)
def delete_game(game_id: str, service: TicTacToeService = Depends(get_service)) -> Response:
    service.delete_game(game_id)
    return Response(status_code=status.HTTP_200_OK)


# -- Error handling --
async def handle_game_error(request: Request, exc: GameError) -> JSONResponse:
    status_code = ERROR_STATUS[exc.kind]
    logger.error("%s %s: %s", request.method, request.url.path, exc)

    reason = (
        "internal server error"
        if status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        else exc.message
    )
    return JSONResponse(
        status_code=status_code, content=ErrorResponse(reason=reason).model_dump()
    )


async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.error("%s %s: can't parse request: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(reason="can't parse request").model_dump(),
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("%s %s: recover: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(reason="internal server error").model_dump(),
    )


# -- App factory --
def create_app(
    repository: GameRepository | None = None, config: Config | None = None
) -> FastAPI:
    """Wire repository -> service -> routes. Without a repository, a file storage is opened at the configured path."""
    config = config or get_config()
    if repository is None:
        repository = FileGameRepository(
            config.storage_path,
            max_record_size=config.max_record_size,
            shutdown_grace=config.shutdown_grace,
        )
    service = TicTacToeService(repository)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        logger.info("shutting down game storage")
        # blocks for up to the shutdown grace
        if not await run_in_threadpool(service.shutdown):
            logger.error("storage shutdown: operations still running")

    app = FastAPI(title="Tic-tac-toe API", lifespan=lifespan)
    app.state.service = service
    app.include_router(router)
    app.add_exception_handler(GameError, handle_game_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import APIRouter, Body, Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from board_service.actions.errors import BoardServiceError
from board_service.actions.service import BoardService
from board_service.actions.storage import Storage
from board_service.actions.validation import RequestValidator
from board_service.dependency import Settings, build_storage, build_validator
from board_service.logging_config import setup_logging
from board_service.schemas.requests import (
    BoardsRequest,
    BoardsResponse,
    CreateBoardRequest,
    DeleteBoardRequest,
    EmptyResponse,
    UpdateBoardRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/board", tags=["board"])


def get_service(request: Request) -> BoardService:
    return request.app.state.service


def get_validator(request: Request) -> RequestValidator:
    return request.app.state.validator


@router.post("/createBoard", response_model=EmptyResponse)
async def create_board(
    payload: CreateBoardRequest,
    service: BoardService = Depends(get_service),
    validator: RequestValidator = Depends(get_validator),
):
    validator.validate(payload)
    await service.create_board(payload)
    return EmptyResponse(message="Board created successfully")


@router.put("/updateBoard", response_model=EmptyResponse)
async def update_board(
    payload: UpdateBoardRequest,
    service: BoardService = Depends(get_service),
    validator: RequestValidator = Depends(get_validator),
):
    validator.validate(payload)
    await service.update_board(payload)
    return EmptyResponse(message="Board updated successfully")


@router.delete("/deleteBoard", response_model=EmptyResponse)
async def delete_board(
    payload: DeleteBoardRequest = Body(...),
    service: BoardService = Depends(get_service),
    validator: RequestValidator = Depends(get_validator),
):
    validator.validate(payload)
    await service.delete_board(payload)
    return EmptyResponse(message="Board deleted successfully")


@router.post("/getBoards", response_model=BoardsResponse)
async def get_boards(
    payload: BoardsRequest,
    service: BoardService = Depends(get_service),
    validator: RequestValidator = Depends(get_validator),
):
    validator.validate(payload)
    return await service.get_boards(payload)


async def board_error_handler(request: Request, exc: BoardServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "message": str(exc)},
    )


def create_app(settings: Optional[Settings] = None, storage: Optional[Storage] = None) -> FastAPI:
    """Build the board service app.

    ``storage`` overrides the backend picked from settings, which is how the
    tests run the app against MemoryStorage.
    """
    settings = settings or Settings()
    setup_logging(settings.log_level, settings.debug)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = app.state.service.storage
        try:
            try:
                await store.ensure_indexes()
            except BoardServiceError as e:
                # the filter queries depend on the index, refuse to start without it
                logger.critical("index not created: %s", e)
                raise
            yield
        finally:
            await store.close()

    app = FastAPI(title="Board Service", lifespan=lifespan)
    app.state.settings = settings
    app.state.service = BoardService(storage if storage is not None else build_storage(settings))
    app.state.validator = build_validator(settings)

    app.add_exception_handler(BoardServiceError, board_error_handler)
    app.include_router(router)

    @app.get("/health")
    async def health():
        return {"status": True}

    return app


app = create_app()


def run() -> None:
    settings: Settings = app.state.settings
    logger.info("starting: board-service on %s:%s", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
